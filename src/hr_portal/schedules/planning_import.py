"""Schedule (planning) CSV import, same analyze/apply protocol as attendance.

Unlike attendance, schedule entries live under a deterministic
``{staff_id}_{date}`` id, so rows are upserted by that id.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from functools import partial
from typing import Optional, Sequence

from ..common.csv_import import RowError, merge_row_errors, read_csv_rows
from ..common.datetime_utils import parse_iso_date
from ..common.settle import WriteTask, settle_all
from ..core.constants import DEFAULT_IMPORT_MAX_WORKERS, PLANNING_REQUIRED_HEADERS
from ..core.enums import ImportPhase, Role, RowAction, ScheduleKind
from ..core.exceptions import AuthorizationError, ValidationError
from .model import ScheduleEntry, schedule_id_for
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)

_HHMM_RE = re.compile(r"^\d{2}:\d{2}$")

COMPARED_FIELDS = ("kind", "start_time", "end_time", "notes", "staff_name")


@dataclass(frozen=True)
class PlanningOutcome:
    action: RowAction
    row_number: int
    entry: Optional[ScheduleEntry] = None
    changes: dict = field(default_factory=dict)
    message: str = ""
    staff_id: str = ""
    date: str = ""

    def to_dict(self) -> dict:
        out = {"rowNum": self.row_number, "action": self.action.value, "staffId": self.staff_id, "date": self.date}
        if self.action == RowAction.ERROR:
            out["errors"] = [self.message]
        elif self.action == RowAction.UPDATE:
            out["details"] = self.changes
        elif self.action == RowAction.CREATE and self.entry:
            out["details"] = {
                "type": self.entry.kind.value,
                "startTime": self.entry.start_time,
                "endTime": self.entry.end_time,
                "notes": self.entry.notes,
            }
        return out


def _field_value(entry: ScheduleEntry, name: str):
    value = getattr(entry, name)
    if isinstance(value, ScheduleKind):
        return value.value
    return value or None


def build_entry(row_number: int, cells: dict[str, str]) -> PlanningOutcome | ScheduleEntry:
    staff_id = cells.get("staffid", "")
    date_s = cells.get("date", "")

    def error(message: str) -> PlanningOutcome:
        return PlanningOutcome(RowAction.ERROR, row_number, message=message, staff_id=staff_id, date=date_s)

    if not staff_id:
        return error("Missing or empty data for: staffid")
    try:
        work_date = parse_iso_date(date_s)
    except ValueError:
        return error("Missing or invalid data for: date (Must be YYYY-MM-DD)")

    kind_s = (cells.get("type") or "off").lower()
    start_time = cells.get("starttime") or None
    end_time = cells.get("endtime") or None

    if start_time and end_time:
        kind_s = ScheduleKind.WORK.value
    try:
        kind = ScheduleKind(kind_s)
    except ValueError:
        return error(f"Invalid type: '{kind_s}' (Must be work or off)")

    if kind == ScheduleKind.OFF:
        start_time = end_time = None
    else:
        if not start_time or not _HHMM_RE.match(start_time):
            return error(f'Invalid starttime format: "{start_time or ""}" (Must be HH:mm)')
        if not end_time or not _HHMM_RE.match(end_time):
            return error(f'Invalid endtime format: "{end_time or ""}" (Must be HH:mm)')
        if start_time >= end_time:
            return error(f"Invalid time range: starttime ({start_time}) must be before endtime ({end_time})")

    return ScheduleEntry(
        schedule_id=schedule_id_for(staff_id, work_date),
        staff_id=staff_id,
        work_date=work_date,
        kind=kind,
        start_time=start_time,
        end_time=end_time,
        staff_name=cells.get("staffname", ""),
        notes=cells.get("notes") or None,
    )


def classify_entry(row_number: int, entry: ScheduleEntry, existing: Optional[ScheduleEntry]) -> PlanningOutcome:
    common = dict(staff_id=entry.staff_id, date=entry.work_date.isoformat())
    if existing is None:
        return PlanningOutcome(RowAction.CREATE, row_number, entry=entry, **common)

    # The import format has no break column; keep whatever the entry already says.
    entry = replace(entry, break_included=existing.break_included)
    changes = {}
    for name in COMPARED_FIELDS:
        before, after = _field_value(existing, name), _field_value(entry, name)
        if before != after:
            changes[name] = {"from": before, "to": after}
    if changes:
        return PlanningOutcome(RowAction.UPDATE, row_number, entry=entry, changes=changes, **common)
    return PlanningOutcome(RowAction.NO_CHANGE, row_number, entry=entry, **common)


@dataclass(frozen=True)
class PlanningAnalysis:
    outcomes: tuple[PlanningOutcome, ...]

    def bucket(self, action: RowAction) -> list[PlanningOutcome]:
        return [o for o in self.outcomes if o.action == action]

    def to_dict(self) -> dict:
        return {
            "phase": ImportPhase.REVIEW.value,
            "creates": [o.to_dict() for o in self.bucket(RowAction.CREATE)],
            "updates": [o.to_dict() for o in self.bucket(RowAction.UPDATE)],
            "noChanges": [o.to_dict() for o in self.bucket(RowAction.NO_CHANGE)],
            "errors": [o.to_dict() for o in self.bucket(RowAction.ERROR)],
        }


class PlanningImportService:
    def __init__(self, schedules: ScheduleRepository, *, max_workers: int = DEFAULT_IMPORT_MAX_WORKERS):
        self._schedules = schedules
        self._max_workers = int(max_workers)

    def _analyze(self, csv_text) -> PlanningAnalysis:
        outcomes = []
        for row_number, cells in read_csv_rows(csv_text, required=PLANNING_REQUIRED_HEADERS):
            built = build_entry(row_number, cells)
            if isinstance(built, PlanningOutcome):
                outcomes.append(built)
                continue
            existing = self._schedules.get_by_id(built.schedule_id)
            outcomes.append(classify_entry(row_number, built, existing))
        return PlanningAnalysis(tuple(outcomes))

    def analyze(self, current_role: Role, csv_text) -> PlanningAnalysis:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")
        return self._analyze(csv_text)

    def apply(self, current_role: Role, csv_text, *, confirm: bool) -> dict:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")
        if not confirm:
            raise ValidationError("Import must be confirmed after reviewing the analysis")

        analysis = self._analyze(csv_text)
        writes: Sequence[PlanningOutcome] = [
            o for o in analysis.outcomes if o.action in (RowAction.CREATE, RowAction.UPDATE)
        ]
        settled = settle_all(
            [
                WriteTask(key=o, label=f"Row {o.row_number} {o.action.value}", run=partial(self._schedules.upsert, o.entry))
                for o in writes
            ],
            max_workers=self._max_workers,
        )

        created = sum(1 for s in settled if s.ok and s.task.key.action == RowAction.CREATE)
        updated = sum(1 for s in settled if s.ok and s.task.key.action == RowAction.UPDATE)
        errors = merge_row_errors(
            (RowError(o.row_number, o.message) for o in analysis.bucket(RowAction.ERROR)),
            (
                RowError(s.task.key.row_number, f"{s.task.key.action.value.capitalize()} failed: {s.outcome.message}")
                for s in settled
                if not s.ok
            ),
        )

        message = (
            f"Planning import finished. Processed: {len(analysis.outcomes)}. "
            f"Created: {created}. Updated: {updated}. Errors: {len(errors)}."
        )
        logger.info(message)
        return {
            "phase": ImportPhase.DONE.value,
            "summaryMessage": message,
            "created": created,
            "updated": updated,
            "errors": [str(e) for e in errors],
        }
