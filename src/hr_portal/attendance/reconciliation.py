"""Two-phase attendance import.

``analyze`` reads the CSV, looks each row up in the store and classifies it
without writing anything. ``apply`` re-derives the same classification from the
same text and then issues the create/update writes concurrently, waiting for
every write to settle before summarizing.

Rows without an ``attendancedocid`` are only ever created: when a record for
the same (staff, date) already exists the row is rejected and the caller must
export the data and re-import with the id. The natural key is never used as an
update target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import partial
from typing import ClassVar, Optional, Sequence, Union

from ..common.csv_import import RowError, merge_row_errors, read_csv_rows
from ..common.datetime_utils import parse_iso_date, to_instant, to_local
from ..common.settle import Settled, WriteTask, settle_all
from ..core.constants import ATTENDANCE_REQUIRED_HEADERS, DEFAULT_IMPORT_MAX_WORKERS
from ..core.enums import ImportPhase, Role, RowAction
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import TIME_FIELDS, AttendanceRecord, AttendanceTimes, NewAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _fmt_instant(value: Optional[datetime]) -> Optional[str]:
    return to_local(value).isoformat() if value else None


@dataclass(frozen=True)
class ParsedRow:
    row_number: int
    staff_id: str
    work_date: date
    staff_name: str
    attendance_id: str
    times: AttendanceTimes

    @property
    def iso_date(self) -> str:
        return self.work_date.isoformat()


@dataclass(frozen=True)
class Lookup:
    """What the store holds for a row: by explicit id, or by (staff, date)."""

    by_id: Optional[AttendanceRecord] = None
    by_natural_key: Optional[AttendanceRecord] = None


@dataclass(frozen=True)
class FieldChange:
    field: str
    before: Optional[datetime]
    after: Optional[datetime]

    def to_dict(self) -> dict:
        return {"from": _fmt_instant(self.before), "to": _fmt_instant(self.after)}


@dataclass(frozen=True)
class CreateRow:
    action: ClassVar[RowAction] = RowAction.CREATE

    row: ParsedRow

    @property
    def row_number(self) -> int:
        return self.row.row_number

    def to_dict(self) -> dict:
        return {
            "rowNum": self.row.row_number,
            "action": self.action.value,
            "staffId": self.row.staff_id,
            "staffName": self.row.staff_name,
            "date": self.row.iso_date,
            "details": {attr: _fmt_instant(getattr(self.row.times, attr)) for _, attr in TIME_FIELDS},
        }


@dataclass(frozen=True)
class UpdateRow:
    action: ClassVar[RowAction] = RowAction.UPDATE

    row: ParsedRow
    attendance_id: str
    changes: tuple[FieldChange, ...]

    @property
    def row_number(self) -> int:
        return self.row.row_number

    def to_dict(self) -> dict:
        return {
            "rowNum": self.row.row_number,
            "action": self.action.value,
            "attendanceDocId": self.attendance_id,
            "staffId": self.row.staff_id,
            "staffName": self.row.staff_name,
            "date": self.row.iso_date,
            "details": {c.field: c.to_dict() for c in self.changes},
        }


@dataclass(frozen=True)
class NoChangeRow:
    action: ClassVar[RowAction] = RowAction.NO_CHANGE

    row: ParsedRow
    attendance_id: str

    @property
    def row_number(self) -> int:
        return self.row.row_number

    def to_dict(self) -> dict:
        return {
            "rowNum": self.row.row_number,
            "action": self.action.value,
            "attendanceDocId": self.attendance_id,
            "staffId": self.row.staff_id,
            "date": self.row.iso_date,
        }


@dataclass(frozen=True)
class ErrorRow:
    action: ClassVar[RowAction] = RowAction.ERROR

    row_number: int
    message: str
    staff_id: str = ""
    date: str = ""
    attendance_id: str = ""

    @property
    def error(self) -> RowError:
        return RowError(self.row_number, self.message)

    def to_dict(self) -> dict:
        return {
            "rowNum": self.row_number,
            "action": self.action.value,
            "attendanceDocId": self.attendance_id or None,
            "staffId": self.staff_id or None,
            "date": self.date or None,
            "errors": [self.message],
        }


RowOutcome = Union[CreateRow, UpdateRow, NoChangeRow, ErrorRow]


def parse_row(row_number: int, cells: dict[str, str]) -> Union[ParsedRow, ErrorRow]:
    staff_id = cells.get("staffid", "")
    date_s = cells.get("date", "")
    attendance_id = cells.get("attendancedocid", "")

    missing = [h for h in ATTENDANCE_REQUIRED_HEADERS if not cells.get(h)]
    if missing:
        return ErrorRow(
            row_number,
            f"Missing/empty required data for: {', '.join(missing)}",
            staff_id=staff_id,
            date=date_s,
            attendance_id=attendance_id,
        )

    try:
        work_date = parse_iso_date(date_s)
    except ValueError:
        return ErrorRow(
            row_number,
            f"Invalid date '{date_s}' (expected YYYY-MM-DD)",
            staff_id=staff_id,
            date=date_s,
            attendance_id=attendance_id,
        )

    instants: dict[str, Optional[datetime]] = {}
    for column, attr in TIME_FIELDS:
        cell = cells.get(column, "")
        instants[attr] = to_instant(date_s, cell) if cell else None
        if cell and instants[attr] is None:
            return ErrorRow(
                row_number,
                f"Invalid time for {column}: '{cell}' (expected HH:mm or HH:mm:ss)",
                staff_id=staff_id,
                date=date_s,
                attendance_id=attendance_id,
            )

    return ParsedRow(
        row_number=row_number,
        staff_id=staff_id,
        work_date=work_date,
        staff_name=cells.get("staffname", ""),
        attendance_id=attendance_id,
        times=AttendanceTimes(**instants),
    )


def diff_times(stored: AttendanceTimes, incoming: AttendanceTimes) -> tuple[FieldChange, ...]:
    """Field-by-field comparison of instants (formatting differences never count)."""

    changes = []
    for _, attr in TIME_FIELDS:
        before = getattr(stored, attr)
        after = getattr(incoming, attr)
        if before != after:
            changes.append(FieldChange(field=attr, before=before, after=after))
    return tuple(changes)


def classify_row(row: ParsedRow, lookup: Lookup) -> RowOutcome:
    """Pure classification of a parsed row against what the store holds."""

    if row.attendance_id:
        existing = lookup.by_id
        if existing is None:
            return ErrorRow(
                row.row_number,
                f'attendancedocid "{row.attendance_id}" not found',
                staff_id=row.staff_id,
                date=row.iso_date,
                attendance_id=row.attendance_id,
            )
        if existing.staff_id != row.staff_id or existing.work_date != row.work_date:
            return ErrorRow(
                row.row_number,
                (
                    f"Identity mismatch: record {row.attendance_id} belongs to staff {existing.staff_id} "
                    f"on {existing.work_date.isoformat()}, not staff {row.staff_id} on {row.iso_date}"
                ),
                staff_id=row.staff_id,
                date=row.iso_date,
                attendance_id=row.attendance_id,
            )

        changes = diff_times(existing.times, row.times)
        if changes:
            return UpdateRow(row=row, attendance_id=existing.attendance_id, changes=changes)
        return NoChangeRow(row=row, attendance_id=existing.attendance_id)

    existing = lookup.by_natural_key
    if existing is not None:
        return ErrorRow(
            row.row_number,
            (
                f"Record already exists for {row.staff_id} on {row.iso_date}. To update it, export the data "
                f"first to get the attendancedocid ('{existing.attendance_id}') and include it in your import CSV."
            ),
            staff_id=row.staff_id,
            date=row.iso_date,
        )
    return CreateRow(row=row)


@dataclass(frozen=True)
class AnalysisResult:
    creates: tuple[CreateRow, ...] = ()
    updates: tuple[UpdateRow, ...] = ()
    no_changes: tuple[NoChangeRow, ...] = ()
    errors: tuple[ErrorRow, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[RowOutcome]) -> "AnalysisResult":
        return cls(
            creates=tuple(o for o in outcomes if isinstance(o, CreateRow)),
            updates=tuple(o for o in outcomes if isinstance(o, UpdateRow)),
            no_changes=tuple(o for o in outcomes if isinstance(o, NoChangeRow)),
            errors=tuple(o for o in outcomes if isinstance(o, ErrorRow)),
        )

    @property
    def processed(self) -> int:
        return len(self.creates) + len(self.updates) + len(self.no_changes) + len(self.errors)

    def to_dict(self) -> dict:
        return {
            "phase": ImportPhase.REVIEW.value,
            "creates": [r.to_dict() for r in self.creates],
            "updates": [r.to_dict() for r in self.updates],
            "noChanges": [r.to_dict() for r in self.no_changes],
            "errors": [r.to_dict() for r in self.errors],
        }


@dataclass(frozen=True)
class ApplySummary:
    processed: int
    created: int
    updated: int
    errors: list[RowError] = field(default_factory=list)

    @property
    def summary_message(self) -> str:
        return (
            f"Attendance import finished. Processed: {self.processed}. "
            f"Created: {self.created}. Updated: {self.updated}. Errors: {len(self.errors)}."
        )

    def to_dict(self) -> dict:
        return {
            "phase": ImportPhase.DONE.value,
            "summaryMessage": self.summary_message,
            "created": self.created,
            "updated": self.updated,
            "errors": [str(e) for e in self.errors],
        }


class AttendanceImportService:
    def __init__(self, attendance: AttendanceRepository, *, max_workers: int = DEFAULT_IMPORT_MAX_WORKERS):
        self._attendance = attendance
        self._max_workers = int(max_workers)

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")

    def _lookup(self, row: ParsedRow) -> Lookup:
        if row.attendance_id:
            return Lookup(by_id=self._attendance.get_by_id(row.attendance_id))
        return Lookup(by_natural_key=self._attendance.find_by_staff_and_date(row.staff_id, row.work_date))

    def _analyze(self, csv_text) -> AnalysisResult:
        outcomes: list[RowOutcome] = []
        for row_number, cells in read_csv_rows(csv_text, required=ATTENDANCE_REQUIRED_HEADERS):
            parsed = parse_row(row_number, cells)
            if isinstance(parsed, ErrorRow):
                outcomes.append(parsed)
                continue
            outcomes.append(classify_row(parsed, self._lookup(parsed)))
        return AnalysisResult.from_outcomes(outcomes)

    def analyze(self, current_role: Role, csv_text) -> AnalysisResult:
        """Dry run: classify every row, write nothing."""

        self._require_manager(current_role)
        result = self._analyze(csv_text)
        logger.info(
            "Attendance import analyzed: %d creates, %d updates, %d unchanged, %d errors",
            len(result.creates),
            len(result.updates),
            len(result.no_changes),
            len(result.errors),
        )
        return result

    def _patch(self, update: UpdateRow) -> str:
        if not self._attendance.patch_times(update.attendance_id, update.row.times):
            raise NotFoundError(f"attendancedocid \"{update.attendance_id}\" no longer exists")
        return update.attendance_id

    def _write_tasks(self, analysis: AnalysisResult) -> list[WriteTask]:
        tasks: list[WriteTask] = []
        for c in analysis.creates:
            record = NewAttendance(
                staff_id=c.row.staff_id,
                work_date=c.row.work_date,
                staff_name=c.row.staff_name,
                times=c.row.times,
            )
            tasks.append(
                WriteTask(
                    key=(c.row_number, RowAction.CREATE),
                    label=f"Row {c.row_number} create",
                    run=partial(self._attendance.insert, record),
                )
            )
        for u in analysis.updates:
            tasks.append(
                WriteTask(
                    key=(u.row_number, RowAction.UPDATE),
                    label=f"Row {u.row_number} update",
                    run=partial(self._patch, u),
                )
            )
        return tasks

    @staticmethod
    def _write_errors(settled: Sequence[Settled]) -> list[RowError]:
        out = []
        for s in settled:
            if s.ok:
                continue
            row_number, action = s.task.key
            verb = "Create" if action == RowAction.CREATE else "Update"
            out.append(RowError(row_number, f"{verb} failed: {s.outcome.message}"))
        return out

    def apply(self, current_role: Role, csv_text, *, confirm: bool) -> ApplySummary:
        """Commit the writes the analysis of ``csv_text`` calls for.

        Each write settles independently; a failed write is reported against
        its row and never aborts the others.
        """

        self._require_manager(current_role)
        if not confirm:
            raise ValidationError("Import must be confirmed after reviewing the analysis")

        analysis = self._analyze(csv_text)
        settled = settle_all(self._write_tasks(analysis), max_workers=self._max_workers)

        created = sum(1 for s in settled if s.ok and s.task.key[1] == RowAction.CREATE)
        updated = sum(1 for s in settled if s.ok and s.task.key[1] == RowAction.UPDATE)
        errors = merge_row_errors((e.error for e in analysis.errors), self._write_errors(settled))

        summary = ApplySummary(processed=analysis.processed, created=created, updated=updated, errors=errors)
        logger.info(summary.summary_message)
        return summary
