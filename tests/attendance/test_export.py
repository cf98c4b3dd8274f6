from __future__ import annotations

import csv
import io
from datetime import date

from fakes import (
    InMemoryAttendance,
    InMemoryLeave,
    InMemorySchedules,
    InMemoryStaff,
    approved_leave,
    make_record,
    make_schedule,
    make_staff,
)
from hr_portal.attendance.export import AttendanceExportService, infer_status
from hr_portal.attendance.reconciliation import AttendanceImportService
from hr_portal.core.enums import Role, ScheduleKind


def _service(records=(), schedules=(), leaves=(), staff=()):
    attendance = InMemoryAttendance(records)
    service = AttendanceExportService(
        attendance=attendance,
        schedules=InMemorySchedules(schedules),
        leaves=InMemoryLeave(leaves),
        staff=InMemoryStaff(staff),
    )
    return service, attendance


def test_status_inference():
    work = make_schedule("S1", "2025-01-06", "09:00", "18:00")
    off = make_schedule("S1", "2025-01-06", kind=ScheduleKind.OFF)

    on_time = make_record("a", "S1", "2025-01-06", check_in="08:55")
    late = make_record("a", "S1", "2025-01-06", check_in="09:07:30")

    assert infer_status(on_time, work, False) == "Present"
    assert infer_status(late, work, False) == "Late (8m)"
    assert infer_status(on_time, off, False) == "Worked on Day Off"
    assert infer_status(on_time, None, False) == "Present (Unscheduled)"
    assert infer_status(None, work, True) == "Leave"
    assert infer_status(None, work, False) == "Absent"
    assert infer_status(None, off, False) == "Off"
    assert infer_status(None, None, False) is None


def test_export_rows_cover_attendance_schedules_and_leave():
    service, _ = _service(
        records=[make_record("att-1", "S1", "2025-01-06", check_in="09:00", check_out="18:00")],
        schedules=[
            make_schedule("S1", "2025-01-06"),
            make_schedule("S1", "2025-01-07"),
            make_schedule("S2", "2025-01-06"),
        ],
        leaves=[approved_leave("lv-1", "S2", "2025-01-06", "2025-01-06")],
        staff=[make_staff("S1", nickname="Alice"), make_staff("S2", nickname="Bob")],
    )

    rows = service.build_rows(start=date(2025, 1, 6), end=date(2025, 1, 7))

    assert [(r["staffname"], r["date"], r["attendancestatus"]) for r in rows] == [
        ("Alice", "2025-01-06", "Present"),
        ("Alice", "2025-01-07", "Absent"),
        ("Bob", "2025-01-06", "Leave"),
    ]
    assert rows[0]["attendancedocid"] == "att-1"
    assert rows[0]["checkintime"] == "09:00:00"
    assert rows[1]["checkintime"] == ""


def test_exported_csv_reimports_as_no_change():
    service, attendance = _service(
        records=[
            make_record(
                "att-1", "S1", "2025-01-06", check_in="09:00", check_out="18:00", break_start="12:00", break_end="13:00"
            )
        ],
        schedules=[make_schedule("S1", "2025-01-06")],
        staff=[make_staff("S1")],
    )

    export = service.export_csv(current_role=Role.MANAGER, start=date(2025, 1, 6), end=date(2025, 1, 6))
    text = export.content.decode("utf-8-sig")
    assert list(csv.DictReader(io.StringIO(text)))[0]["attendancedocid"] == "att-1"

    analysis = AttendanceImportService(attendance).analyze(Role.MANAGER, text)
    assert len(analysis.no_changes) == 1
    assert not analysis.creates and not analysis.updates and not analysis.errors
