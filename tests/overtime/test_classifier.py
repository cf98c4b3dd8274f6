from __future__ import annotations

from fakes import make_record, make_schedule
from hr_portal.core.enums import OvertimeStatus, ScheduleKind
from hr_portal.overtime.classifier import assess, is_open


def test_worked_beyond_schedule_by_threshold_is_candidate():
    # 08:00-16:00 with the included hour break = 420 scheduled minutes.
    schedule = make_schedule("S1", "2025-03-03", "08:00", "16:00")
    # 08:00-17:20 is 560 raw minutes, minus the automatic 60 minute break = 500.
    record = make_record("att-1", "S1", "2025-03-03", check_in="08:00", check_out="17:20")

    a = assess(record, schedule, threshold_minutes=15)

    assert a.scheduled_minutes == 420
    assert a.worked_minutes == 500
    assert a.overtime_minutes == 80
    assert a.is_candidate


def test_below_threshold_is_not_candidate():
    schedule = make_schedule("S1", "2025-03-03", "08:00", "16:00")
    record = make_record("att-1", "S1", "2025-03-03", check_in="08:00", check_out="16:10")

    a = assess(record, schedule, threshold_minutes=15)

    assert a.overtime_minutes == 10
    assert not a.is_candidate


def test_explicit_break_replaces_automatic_break():
    schedule = make_schedule("S1", "2025-03-03", "08:00", "16:00")
    record = make_record(
        "att-1", "S1", "2025-03-03", check_in="08:00", check_out="17:00", break_start="12:00", break_end="12:30"
    )

    a = assess(record, schedule, threshold_minutes=15)

    assert a.break_minutes == 30
    assert a.worked_minutes == 510


def test_short_shift_has_no_automatic_break():
    record = make_record("att-1", "S1", "2025-03-03", check_in="09:00", check_out="13:00")
    a = assess(record, None, threshold_minutes=15)
    assert a.break_minutes == 0
    assert a.worked_minutes == 240


def test_day_without_work_schedule_counts_entirely_as_overtime():
    off = make_schedule("S1", "2025-03-03", kind=ScheduleKind.OFF)
    record = make_record("att-1", "S1", "2025-03-03", check_in="10:00", check_out="10:05")

    a = assess(record, off, threshold_minutes=15)

    assert a.scheduled_minutes == 0
    assert a.overtime_minutes == 5
    assert a.is_candidate


def test_missing_clock_time_is_not_assessed():
    record = make_record("att-1", "S1", "2025-03-03", check_in="10:00")
    assert assess(record, None, threshold_minutes=15) is None


def test_open_means_undecided():
    assert is_open(make_record("a", "S1", "2025-03-03"))
    assert is_open(make_record("a", "S1", "2025-03-03", ot_status=OvertimeStatus.PENDING))
    assert not is_open(make_record("a", "S1", "2025-03-03", ot_status=OvertimeStatus.APPROVED))
