from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from ...common.money import money
from ...staff.model import JobHistoryEntry, StaffProfile
from ..attendance_stats import MonthStats
from ..model import CompanyConfig, LeavePayout, PayPeriod
from .base import BasePay, PayrollCalculator


def active_days(staff: StaffProfile, period: PayPeriod) -> int:
    """Employed days inside the period, both ends inclusive."""

    first = max(period.first_day, staff.start_date) if staff.start_date else period.first_day
    last = min(period.last_day, staff.end_date) if staff.end_date else period.last_day
    if last < first:
        return 0
    return (last - first).days + 1


def full_years_between(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return max(years, 0)


def annual_leave_entitlement(staff: StaffProfile, leaving: date, annual_days: int) -> int:
    """Annual leave earned by the leaving date.

    A full year of service earns the whole allowance; someone hired during the
    leaving year earns a pro-rated share per started month.
    """

    hired = staff.start_date
    if hired is None:
        return 0
    if full_years_between(hired, leaving) >= 1:
        return annual_days
    if hired.year == leaving.year:
        months = leaving.month - hired.month + 1
        return annual_days * months // 12
    return 0


def leave_payout(
    staff: StaffProfile, period: PayPeriod, stats: MonthStats, config: CompanyConfig, daily_rate: Decimal
) -> Optional[LeavePayout]:
    leaving = staff.end_date
    if not period.contains(leaving):
        return None

    policy = config.leave
    entitled = annual_leave_entitlement(staff, leaving, policy.annual_leave_days)
    annual = max(entitled - stats.used_annual_leave_days, 0)
    holidays = sum(1 for d in config.public_holidays if d.year == period.year and d <= leaving)
    credits = min(holidays, policy.public_holiday_credit_cap)
    if annual + credits <= 0:
        return None
    return LeavePayout(
        annual_days=annual,
        holiday_credits=credits,
        daily_rate=daily_rate,
        amount=money(daily_rate * (annual + credits)),
    )


class SalariedCalculator(PayrollCalculator):
    def base_pay(
        self,
        staff: StaffProfile,
        job: JobHistoryEntry,
        period: PayPeriod,
        stats: MonthStats,
        config: Optional[CompanyConfig] = None,
    ) -> BasePay:
        monthly = job.monthly_salary
        daily_rate = monthly / Decimal(period.days)

        days = active_days(staff, period)
        if days >= period.days:
            base = money(monthly)
        else:
            base = money(daily_rate * days)

        return BasePay(
            base_pay=base,
            unpaid_day_deduction=money(daily_rate * stats.unpaid_days),
            hourly_equivalent=daily_rate / Decimal(job.day_hours),
            sick_leave_deduction=money(daily_rate * stats.sick_overage_days),
            leave_payout=leave_payout(staff, period, stats, config or CompanyConfig(), daily_rate),
        )
