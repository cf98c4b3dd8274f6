from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from functools import partial
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import today_local
from ..common.settle import WriteTask, settle_all
from ..core.constants import DEFAULT_IMPORT_MAX_WORKERS, DEFAULT_OVERTIME_THRESHOLD_MINUTES
from ..core.enums import OvertimeDecision, OvertimeStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..schedules.repository import ScheduleRepository
from .classifier import OvertimeAssessment, assess, is_open

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkDecisionResult:
    decision: OvertimeDecision
    succeeded: int
    failures: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "decision": self.decision.value,
            "succeeded": self.succeeded,
            "failed": len(self.failures),
            "failures": self.failures,
        }


class OvertimeService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        *,
        threshold_minutes: int = DEFAULT_OVERTIME_THRESHOLD_MINUTES,
        max_workers: int = DEFAULT_IMPORT_MAX_WORKERS,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._threshold = int(threshold_minutes)
        self._max_workers = int(max_workers)

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")

    @staticmethod
    def _default_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
        today = today_local()
        start = start or today.replace(day=1)
        end = end or today
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return start, end

    def _assess(self, record: AttendanceRecord) -> Optional[OvertimeAssessment]:
        schedule = self._schedules.get_for_staff_and_date(staff_id=record.staff_id, work_date=record.work_date)
        return assess(record, schedule, threshold_minutes=self._threshold)

    def _candidates(self, start: date, end: date, staff_id: Optional[str]) -> list[OvertimeAssessment]:
        records = self._attendance.list_range(start=start, end=end, staff_id=staff_id)
        schedules = {
            (s.staff_id, s.work_date): s for s in self._schedules.list_range(start=start, end=end, staff_id=staff_id)
        }
        out = []
        for r in records:
            if not is_open(r):
                continue
            a = assess(r, schedules.get((r.staff_id, r.work_date)), threshold_minutes=self._threshold)
            if a and a.is_candidate:
                out.append(a)
        return out

    def list_candidates(
        self,
        *,
        current_role: Role,
        start: Optional[date] = None,
        end: Optional[date] = None,
        staff_id: Optional[str] = None,
    ) -> list[OvertimeAssessment]:
        self._require_manager(current_role)
        start, end = self._default_range(start, end)
        return self._candidates(start, end, staff_id)

    def _get_open(self, attendance_id: str) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        if not is_open(record):
            raise ValidationError("Overtime has already been decided; revert it first")
        return record

    def _write_decision(self, attendance_id: str, status: OvertimeStatus, minutes: int) -> str:
        if not self._attendance.set_overtime_decision(attendance_id, status=status, approved_minutes=minutes):
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        return attendance_id

    def _write_revert(self, attendance_id: str) -> str:
        if not self._attendance.clear_overtime_decision(attendance_id):
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        return attendance_id

    def approve(self, *, current_role: Role, attendance_id: str, minutes: Optional[int] = None) -> int:
        """Approve overtime; ``minutes`` overrides the proposed amount. Returns approved minutes."""

        self._require_manager(current_role)
        record = self._get_open(attendance_id)

        if minutes is None:
            a = self._assess(record)
            if a is None:
                raise ValidationError("Record has no check-in/check-out to compute overtime from")
            minutes = max(a.overtime_minutes, 0)
        else:
            try:
                minutes = int(minutes)
            except (TypeError, ValueError):
                raise ValidationError("Approved minutes must be an integer")
            if minutes < 0:
                raise ValidationError("Approved minutes cannot be negative")

        self._write_decision(record.attendance_id, OvertimeStatus.APPROVED, minutes)
        logger.info("Overtime approved for %s: %d minutes", attendance_id, minutes)
        return minutes

    def reject(self, *, current_role: Role, attendance_id: str) -> None:
        self._require_manager(current_role)
        record = self._get_open(attendance_id)
        self._write_decision(record.attendance_id, OvertimeStatus.REJECTED, 0)
        logger.info("Overtime rejected for %s", attendance_id)

    def revert(self, *, current_role: Role, attendance_id: str) -> None:
        """Clear a decision so the record becomes eligible again."""

        self._require_manager(current_role)
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError(f"Attendance record {attendance_id} not found")
        if record.ot_status is None and not record.ot_processed:
            raise ValidationError("There is no overtime decision to revert")
        self._write_revert(record.attendance_id)
        logger.info("Overtime decision reverted for %s", attendance_id)

    def bulk_decide(
        self,
        *,
        current_role: Role,
        decision: OvertimeDecision,
        start: Optional[date] = None,
        end: Optional[date] = None,
        staff_id: Optional[str] = None,
    ) -> BulkDecisionResult:
        """Apply one decision to every record in the filter.

        Approve/reject target the open candidates; revert targets decided
        records. Each record is its own atomic update and settles independently;
        the set as a whole is not atomic, so some records may change while others fail.
        """

        self._require_manager(current_role)
        start, end = self._default_range(start, end)

        tasks: list[WriteTask] = []
        if decision == OvertimeDecision.REVERT:
            for r in self._attendance.list_range(start=start, end=end, staff_id=staff_id):
                if r.ot_status is not None or r.ot_processed:
                    tasks.append(WriteTask(r.attendance_id, f"Revert {r.attendance_id}", partial(self._write_revert, r.attendance_id)))
        else:
            for a in self._candidates(start, end, staff_id):
                if decision == OvertimeDecision.APPROVE:
                    run = partial(self._write_decision, a.attendance_id, OvertimeStatus.APPROVED, max(a.overtime_minutes, 0))
                else:
                    run = partial(self._write_decision, a.attendance_id, OvertimeStatus.REJECTED, 0)
                tasks.append(WriteTask(a.attendance_id, f"{decision.value.capitalize()} {a.attendance_id}", run))

        settled = settle_all(tasks, max_workers=self._max_workers)
        failures = [{"attendanceId": s.task.key, "message": s.outcome.message} for s in settled if not s.ok]
        result = BulkDecisionResult(decision=decision, succeeded=len(settled) - len(failures), failures=failures)
        logger.info("Bulk overtime %s: %d ok, %d failed", decision.value, result.succeeded, len(failures))
        return result
