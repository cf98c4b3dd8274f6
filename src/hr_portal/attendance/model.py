from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import OvertimeStatus

# (CSV column, record attribute) for the clock fields compared during import.
TIME_FIELDS: tuple[tuple[str, str], ...] = (
    ("checkintime", "check_in_time"),
    ("checkouttime", "check_out_time"),
    ("breakstarttime", "break_start"),
    ("breakendtime", "break_end"),
)


@dataclass(frozen=True)
class AttendanceTimes:
    """The four clock instants of a working day (aware UTC, any may be missing)."""

    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per (staff, work date)."""

    attendance_id: str
    staff_id: str
    work_date: date
    staff_name: str = ""
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    ot_status: Optional[OvertimeStatus] = None
    ot_approved_minutes: Optional[int] = None
    ot_processed: bool = False
    ot_decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def times(self) -> AttendanceTimes:
        return AttendanceTimes(
            check_in_time=self.check_in_time,
            check_out_time=self.check_out_time,
            break_start=self.break_start,
            break_end=self.break_end,
        )


@dataclass(frozen=True)
class NewAttendance:
    staff_id: str
    work_date: date
    staff_name: str
    times: AttendanceTimes
