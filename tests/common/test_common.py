from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from hr_portal.common.csv_import import RowError, merge_row_errors, read_csv_rows
from hr_portal.common.datetime_utils import format_local_time, to_instant
from hr_portal.common.money import money, total
from hr_portal.common.settle import Failure, Ok, WriteTask, settle_all
from hr_portal.common.validators import require_pay_period
from hr_portal.core.exceptions import ImportFormatError, ValidationError


def test_to_instant_uses_business_timezone():
    assert to_instant("2025-01-05", "09:00") == datetime(2025, 1, 5, 2, 0, tzinfo=timezone.utc)
    assert format_local_time(datetime(2025, 1, 5, 2, 0, tzinfo=timezone.utc)) == "09:00:00"


@pytest.mark.parametrize("day, clock", [("", "09:00"), ("2025-01-05", ""), ("2025-13-01", "09:00"), ("2025-01-05", "25:00")])
def test_to_instant_returns_none_for_bad_input(day, clock):
    assert to_instant(day, clock) is None


def test_money_rounds_half_up():
    assert money("2.345") == Decimal("2.35")
    assert money(None) == Decimal("0.00")
    assert total(["1.005", 2, Decimal("0.1")]) == Decimal("3.11")


def test_require_pay_period():
    assert require_pay_period("2025", "7") == (2025, 7)
    with pytest.raises(ValidationError):
        require_pay_period(2025, 0)
    with pytest.raises(ValidationError):
        require_pay_period("x", 1)


def test_read_csv_rows_numbers_rows_from_two_and_skips_blank_lines():
    rows = read_csv_rows(" StaffID , Date \nS1,2025-01-05\n\n S2 ,2025-01-06\n", required=("staffid", "date"))

    assert rows == [
        (2, {"staffid": "S1", "date": "2025-01-05"}),
        (3, {"staffid": "S2", "date": "2025-01-06"}),
    ]


def test_read_csv_rows_missing_column():
    with pytest.raises(ImportFormatError, match="date"):
        read_csv_rows("staffid\nS1\n", required=("staffid", "date"))


def test_merge_row_errors_keeps_first_error_per_row():
    merged = merge_row_errors(
        [RowError(3, "Invalid date"), RowError(5, "staffid is required")],
        [RowError(3, "Create failed"), RowError(4, "Update failed")],
    )
    assert [str(e) for e in merged] == [
        "Row 3: Invalid date",
        "Row 5: staffid is required",
        "Row 4: Update failed",
    ]


def test_settle_all_collects_every_outcome_in_order():
    def boom():
        raise RuntimeError("lost connection")

    tasks = [
        WriteTask(key=1, label="first", run=lambda: "a"),
        WriteTask(key=2, label="second", run=boom),
        WriteTask(key=3, label="third", run=lambda: "c"),
    ]

    settled = settle_all(tasks, max_workers=3)

    assert [s.task.key for s in settled] == [1, 2, 3]
    assert settled[0].outcome == Ok("a")
    assert isinstance(settled[1].outcome, Failure)
    assert settled[1].outcome.message == "lost connection"
    assert settled[2].ok
    assert settle_all([]) == []
