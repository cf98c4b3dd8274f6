"""Per-employee attendance facts for one pay period."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import combine_local, iter_dates, minutes_between
from ..core.constants import DEFAULT_SICK_LEAVE_QUOTA_DAYS
from ..core.enums import OvertimeStatus
from ..leave.model import LeaveRequest
from ..schedules.model import ScheduleEntry
from ..staff.model import StaffProfile


@dataclass(frozen=True)
class MonthStats:
    unpaid_days: int = 0
    lates: int = 0
    worked_minutes: int = 0
    approved_overtime_minutes: int = 0
    # Sick days this month beyond the yearly quota.
    sick_overage_days: int = 0
    # Approved annual leave taken this year up to the period end (or leaving date).
    used_annual_leave_days: int = 0

    @property
    def worked_hours(self) -> Decimal:
        return Decimal(self.worked_minutes) / Decimal(60)


def worked_minutes(record: AttendanceRecord) -> int:
    """Clocked span minus the clocked break; 0 without both check-in and check-out."""

    if record.check_in_time is None or record.check_out_time is None:
        return 0
    raw = minutes_between(record.check_in_time, record.check_out_time)
    if record.break_start and record.break_end:
        raw -= max(minutes_between(record.break_start, record.break_end), 0)
    return max(raw, 0)


def is_late(record: AttendanceRecord, schedule: Optional[ScheduleEntry]) -> bool:
    if record.check_in_time is None or schedule is None or not schedule.is_work:
        return False
    scheduled_start = combine_local(schedule.work_date, schedule.start_time)
    return scheduled_start is not None and record.check_in_time > scheduled_start


def compute_month_stats(
    staff: StaffProfile,
    *,
    start: date,
    end: date,
    attendance: Iterable[AttendanceRecord],
    schedules: Iterable[ScheduleEntry],
    leaves: Iterable[LeaveRequest],
    public_holidays: frozenset[date] = frozenset(),
    as_of: Optional[date] = None,
    sick_leave_quota_days: int = DEFAULT_SICK_LEAVE_QUOTA_DAYS,
) -> MonthStats:
    """Count unpaid days and lates between ``start`` and ``end``.

    An unpaid day is a work schedule entry with no attendance, not covered by
    approved leave and not a public holiday. Days after ``as_of`` or outside
    the employment window are not counted yet.

    Leave totals look back to January 1st of the period year, so ``leaves``
    should hold the approved requests since then. Sick days beyond
    ``sick_leave_quota_days`` for the year are charged to the month they fall in.
    """

    records = {r.work_date: r for r in attendance if r.staff_id == staff.staff_id}
    plan = {s.work_date: s for s in schedules if s.staff_id == staff.staff_id and s.is_work}
    own_leaves = [lv for lv in leaves if lv.staff_id == staff.staff_id]

    last = min(end, as_of) if as_of else end
    if staff.end_date and staff.end_date < last:
        last = staff.end_date
    first = max(start, staff.start_date) if staff.start_date else start

    unpaid = 0
    for day in iter_dates(first, last):
        if day not in plan or day in records or day in public_holidays:
            continue
        if any(lv.covers(day) for lv in own_leaves):
            continue
        unpaid += 1

    lates = sum(1 for day, r in records.items() if start <= day <= end and is_late(r, plan.get(day)))
    worked = sum(worked_minutes(r) for day, r in records.items() if start <= day <= end)
    overtime = sum(
        int(r.ot_approved_minutes or 0)
        for day, r in records.items()
        if start <= day <= end and r.ot_status == OvertimeStatus.APPROVED
    )
    year_start = date(start.year, 1, 1)
    sick = [lv for lv in own_leaves if lv.is_sick]
    sick_to_date = sum(lv.days_within(year_start, end) for lv in sick)
    sick_this_month = sum(lv.days_within(start, end) for lv in sick)
    sick_overage = min(sick_this_month, max(sick_to_date - sick_leave_quota_days, 0))

    annual_until = min(end, staff.end_date) if staff.end_date else end
    used_annual = sum(lv.days_within(year_start, annual_until) for lv in own_leaves if lv.is_annual)

    return MonthStats(
        unpaid_days=unpaid,
        lates=lates,
        worked_minutes=worked,
        approved_overtime_minutes=overtime,
        sick_overage_days=sick_overage,
        used_annual_leave_days=used_annual,
    )
