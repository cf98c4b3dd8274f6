"""Overtime eligibility.

Worked time is the check-in/check-out span minus the break. When no explicit
break was clocked, shifts longer than 300 minutes are assumed to include an
unpaid 60 minute break. Overtime is worked minus scheduled minutes; a day
without a work schedule counts entirely as overtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import minutes_between
from ..core.constants import AUTO_BREAK_MINUTES, AUTO_BREAK_THRESHOLD_MINUTES
from ..core.enums import OvertimeStatus
from ..schedules.model import ScheduleEntry


@dataclass(frozen=True)
class OvertimeAssessment:
    attendance_id: str
    staff_id: str
    staff_name: str
    work_date: date
    raw_minutes: int
    break_minutes: int
    worked_minutes: int
    scheduled_minutes: int
    overtime_minutes: int
    has_work_schedule: bool
    is_candidate: bool

    def to_dict(self) -> dict:
        return {
            "attendanceId": self.attendance_id,
            "staffId": self.staff_id,
            "staffName": self.staff_name,
            "date": self.work_date.isoformat(),
            "workedMinutes": self.worked_minutes,
            "scheduledMinutes": self.scheduled_minutes,
            "breakMinutes": self.break_minutes,
            "overtimeMinutes": self.overtime_minutes,
            "hasSchedule": self.has_work_schedule,
        }


def is_open(record: AttendanceRecord) -> bool:
    """No final decision yet."""
    return record.ot_status in (None, OvertimeStatus.PENDING)


def break_minutes(record: AttendanceRecord, raw_minutes: int) -> int:
    if record.break_start and record.break_end:
        return max(minutes_between(record.break_start, record.break_end), 0)
    if raw_minutes > AUTO_BREAK_THRESHOLD_MINUTES:
        return AUTO_BREAK_MINUTES
    return 0


def assess(
    record: AttendanceRecord,
    schedule: Optional[ScheduleEntry],
    *,
    threshold_minutes: int,
) -> Optional[OvertimeAssessment]:
    """Compute worked/scheduled/overtime minutes; None without both clock times."""

    if record.check_in_time is None or record.check_out_time is None:
        return None

    raw = minutes_between(record.check_in_time, record.check_out_time)
    brk = break_minutes(record, raw)
    worked = raw - brk

    has_work_schedule = schedule is not None and schedule.is_work
    scheduled = schedule.net_minutes() if has_work_schedule else 0
    overtime = worked - scheduled

    if has_work_schedule:
        candidate = overtime >= int(threshold_minutes)
    else:
        candidate = overtime > 0

    return OvertimeAssessment(
        attendance_id=record.attendance_id,
        staff_id=record.staff_id,
        staff_name=record.staff_name,
        work_date=record.work_date,
        raw_minutes=raw,
        break_minutes=brk,
        worked_minutes=worked,
        scheduled_minutes=scheduled,
        overtime_minutes=overtime,
        has_work_schedule=has_work_schedule,
        is_candidate=candidate,
    )
