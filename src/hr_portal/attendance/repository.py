from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import OvertimeStatus
from .model import AttendanceRecord, AttendanceTimes, NewAttendance


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_by_staff_and_date(self, staff_id: str, work_date: date) -> Optional[AttendanceRecord]:
        """Natural-key lookup. Used to detect conflicts, never to pick an update target."""

        raise NotImplementedError

    def list_range(self, *, start: date, end: date, staff_id: Optional[str] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, record: NewAttendance) -> str:
        """Insert under a generated id; the store stamps created_at. Returns the new id."""

        raise NotImplementedError

    def patch_times(self, attendance_id: str, times: AttendanceTimes) -> bool:
        """Overwrite the four clock fields; the store stamps updated_at."""

        raise NotImplementedError

    def set_overtime_decision(self, attendance_id: str, *, status: OvertimeStatus, approved_minutes: int) -> bool:
        """Record a manager decision; the store stamps ot_decided_at."""

        raise NotImplementedError

    def clear_overtime_decision(self, attendance_id: str) -> bool:
        raise NotImplementedError

    def stage_delete_for_staff_and_date(self, batch, *, staff_id: str, work_date: date) -> None:
        raise NotImplementedError
