from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from fakes import make_staff
from hr_portal.core.enums import PayType
from hr_portal.payroll.attendance_stats import MonthStats
from hr_portal.payroll.calculator.factory import calculator_for
from hr_portal.payroll.calculator.hourly_calculator import HourlyCalculator
from hr_portal.payroll.calculator.salaried_calculator import SalariedCalculator, active_days, annual_leave_entitlement
from hr_portal.payroll.model import PayPeriod

NOVEMBER = PayPeriod(2025, 11)


def test_factory_picks_calculator_by_pay_type():
    assert isinstance(calculator_for(PayType.SALARY), SalariedCalculator)
    assert isinstance(calculator_for(PayType.HOURLY), HourlyCalculator)


def test_salaried_unpaid_day_deduction():
    staff = make_staff("S1", base_salary="30000")
    base = SalariedCalculator().base_pay(staff, staff.current_job(), NOVEMBER, MonthStats(unpaid_days=3))

    assert base.base_pay == Decimal("30000.00")
    assert base.unpaid_day_deduction == Decimal("3000.00")
    assert base.hourly_equivalent == Decimal("125")


def test_salaried_pro_rata_for_mid_month_start_and_end():
    joiner = make_staff("S1", base_salary="30000", start_date=date(2025, 11, 16))
    leaver = make_staff("S2", base_salary="30000", end_date=date(2025, 11, 10))

    assert active_days(joiner, NOVEMBER) == 15
    assert SalariedCalculator().base_pay(joiner, joiner.current_job(), NOVEMBER, MonthStats()).base_pay == Decimal(
        "15000.00"
    )
    assert SalariedCalculator().base_pay(leaver, leaver.current_job(), NOVEMBER, MonthStats()).base_pay == Decimal(
        "10000.00"
    )


def test_hourly_pays_worked_hours():
    staff = make_staff("S3", pay_type=PayType.HOURLY, hourly_rate="120")
    base = HourlyCalculator().base_pay(staff, staff.current_job(), NOVEMBER, MonthStats(worked_minutes=16 * 60 + 30))

    assert base.base_pay == Decimal("1980.00")
    assert base.unpaid_day_deduction == Decimal("0")


@pytest.mark.parametrize(
    "hired, leaving, expected",
    [
        (date(2024, 1, 1), date(2025, 11, 20), 6),
        (date(2024, 11, 20), date(2025, 11, 20), 6),
        (date(2024, 11, 21), date(2025, 11, 20), 0),
        (date(2025, 3, 10), date(2025, 11, 20), 4),
        (date(2024, 6, 1), date(2025, 3, 31), 0),
    ],
)
def test_annual_leave_entitlement_by_service(hired, leaving, expected):
    staff = make_staff("S1", start_date=hired, end_date=leaving)
    assert annual_leave_entitlement(staff, leaving, 6) == expected


def test_salaried_sick_overage_and_leave_payout():
    leaver = make_staff("S2", base_salary="30000", end_date=date(2025, 11, 10))
    stats = MonthStats(sick_overage_days=2, used_annual_leave_days=1)

    base = SalariedCalculator().base_pay(leaver, leaver.current_job(), NOVEMBER, stats)

    assert base.sick_leave_deduction == Decimal("2000.00")
    assert base.leave_payout.annual_days == 5
    assert base.leave_payout.amount == Decimal("5000.00")


def test_hourly_ignores_leave_rules():
    leaver = make_staff("S3", pay_type=PayType.HOURLY, end_date=date(2025, 11, 10))
    base = HourlyCalculator().base_pay(leaver, leaver.current_job(), NOVEMBER, MonthStats(sick_overage_days=2))

    assert base.sick_leave_deduction == Decimal("0")
    assert base.leave_payout is None
