"""Attendance export in the same column layout the importer reads back."""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import combine_local, format_local_time, iter_dates, now_utc, to_local
from ..core.enums import Role, ScheduleKind
from ..core.exceptions import AuthorizationError, ValidationError
from ..leave.repository import LeaveRepository
from ..schedules.model import ScheduleEntry
from ..schedules.repository import ScheduleRepository
from ..staff.repository import StaffRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "attendancedocid",
    "staffid",
    "staffname",
    "date",
    "attendancestatus",
    "checkintime",
    "checkouttime",
    "breakstarttime",
    "breakendtime",
]


@dataclass(frozen=True)
class ExportFile:
    content: bytes
    filename: str
    row_count: int


def infer_status(
    record: Optional[AttendanceRecord],
    schedule: Optional[ScheduleEntry],
    on_leave: bool,
) -> Optional[str]:
    """Day status label; None when nothing is known about the day."""

    is_off = schedule is not None and schedule.kind == ScheduleKind.OFF
    is_work = schedule is not None and schedule.is_work

    if record is not None:
        if is_work:
            if record.check_in_time is None:
                return "Present (No Check-in)"
            scheduled = combine_local(schedule.work_date, schedule.start_time)
            if scheduled is not None and record.check_in_time > scheduled:
                late = math.ceil((record.check_in_time - scheduled).total_seconds() / 60)
                return f"Late ({late}m)"
            return "Present"
        if is_off:
            return "Worked on Day Off"
        return "Present (Unscheduled)"

    if on_leave:
        return "Leave"
    if is_work:
        return "Absent"
    if is_off:
        return "Off"
    return None


class AttendanceExportService:
    def __init__(
        self,
        *,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        leaves: LeaveRepository,
        staff: StaffRepository,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._leaves = leaves
        self._staff = staff

    def build_rows(self, *, start: date, end: date) -> list[dict]:
        records = {(r.staff_id, r.work_date): r for r in self._attendance.list_range(start=start, end=end)}
        plan = {(s.staff_id, s.work_date): s for s in self._schedules.list_range(start=start, end=end)}

        leave_days: set[tuple[str, date]] = set()
        for lv in self._leaves.list_approved_overlapping(start=start, end=end):
            for day in iter_dates(max(lv.start_date, start), min(lv.end_date, end)):
                leave_days.add((lv.staff_id, day))

        staff_ids = {k[0] for k in records} | {k[0] for k in plan} | {k[0] for k in leave_days}
        names = {s.staff_id: s.display_name for s in self._staff.list_all()}

        rows = []
        for staff_id in staff_ids:
            for day in iter_dates(start, end):
                key = (staff_id, day)
                record = records.get(key)
                status = infer_status(record, plan.get(key), key in leave_days)
                if status is None:
                    continue
                rows.append(
                    {
                        "attendancedocid": record.attendance_id if record else "",
                        "staffid": staff_id,
                        "staffname": names.get(staff_id) or (record.staff_name if record else "") or "Unknown",
                        "date": day.isoformat(),
                        "attendancestatus": status,
                        "checkintime": format_local_time(record.check_in_time) if record else "",
                        "checkouttime": format_local_time(record.check_out_time) if record else "",
                        "breakstarttime": format_local_time(record.break_start) if record else "",
                        "breakendtime": format_local_time(record.break_end) if record else "",
                    }
                )

        rows.sort(key=lambda r: (r["staffname"], r["date"]))
        return rows

    def export_csv(self, *, current_role: Role, start: date, end: date) -> ExportFile:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")
        if end < start:
            raise ValidationError("Start date cannot be after end date")

        rows = self.build_rows(start=start, end=end)
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        stamp = to_local(now_utc()).strftime("%Y%m%d%H%M%S")
        filename = f"attendance_export_{start.isoformat()}_to_{end.isoformat()}_{stamp}.csv"
        logger.info("Exported %d attendance rows for %s..%s", len(rows), start, end)
        return ExportFile(content=out.getvalue().encode("utf-8-sig"), filename=filename, row_count=len(rows))
