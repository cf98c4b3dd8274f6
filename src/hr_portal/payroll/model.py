from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from ..common.datetime_utils import days_in_month, month_bounds
from ..common.money import ZERO, money, to_decimal, total
from ..common.validators import require_pay_period
from ..core.constants import (
    DEFAULT_ADVANCE_PERCENTAGE,
    DEFAULT_ANNUAL_LEAVE_DAYS,
    DEFAULT_OVERTIME_RATE,
    DEFAULT_PUBLIC_HOLIDAY_CREDIT_CAP,
    DEFAULT_SICK_LEAVE_QUOTA_DAYS,
    DEFAULT_SSO_CAP,
    DEFAULT_SSO_RATE_PERCENT,
)
from ..core.enums import AdjustmentType, AdvanceStatus, PayType


@dataclass(frozen=True, order=True)
class PayPeriod:
    year: int
    month: int

    @classmethod
    def of(cls, year, month) -> "PayPeriod":
        y, m = require_pay_period(year, month)
        return cls(y, m)

    @property
    def first_day(self) -> date:
        return month_bounds(self.year, self.month)[0]

    @property
    def last_day(self) -> date:
        return month_bounds(self.year, self.month)[1]

    @property
    def days(self) -> int:
        return days_in_month(self.year, self.month)

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.first_day <= day <= self.last_day

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"


def payslip_id_for(staff_id: str, period: PayPeriod) -> str:
    return f"{staff_id}_{period.year}_{period.month}"


@dataclass(frozen=True)
class BonusRules:
    allowed_absences: int = 0
    allowed_lates: int = 2
    month1: Decimal = Decimal("400")
    month2: Decimal = Decimal("500")
    month3: Decimal = Decimal("600")


@dataclass(frozen=True)
class LeavePolicy:
    annual_leave_days: int = DEFAULT_ANNUAL_LEAVE_DAYS
    public_holiday_credit_cap: int = DEFAULT_PUBLIC_HOLIDAY_CREDIT_CAP
    sick_leave_quota_days: int = DEFAULT_SICK_LEAVE_QUOTA_DAYS


@dataclass(frozen=True)
class CompanyConfig:
    """Payroll settings (loaded from PAYROLL_SETTINGS)."""

    sso_rate_percent: Decimal = Decimal(DEFAULT_SSO_RATE_PERCENT)
    sso_cap: Decimal = Decimal(DEFAULT_SSO_CAP)
    overtime_rate: Decimal = Decimal(DEFAULT_OVERTIME_RATE)
    advance_percentage: int = DEFAULT_ADVANCE_PERCENTAGE
    public_holidays: frozenset[date] = frozenset()
    bonus: BonusRules = field(default_factory=BonusRules)
    leave: LeavePolicy = field(default_factory=LeavePolicy)

    @classmethod
    def from_settings(cls, settings: Optional[dict]) -> "CompanyConfig":
        settings = settings or {}
        bonus = settings.get("attendance_bonus") or {}
        leave = settings.get("leave_entitlements") or {}
        return cls(
            sso_rate_percent=to_decimal(settings.get("sso_rate_percent", DEFAULT_SSO_RATE_PERCENT)),
            sso_cap=to_decimal(settings.get("sso_cap", DEFAULT_SSO_CAP)),
            overtime_rate=to_decimal(settings.get("overtime_rate", DEFAULT_OVERTIME_RATE)),
            advance_percentage=int(settings.get("advance_percentage", DEFAULT_ADVANCE_PERCENTAGE)),
            public_holidays=frozenset(date.fromisoformat(str(d).strip()) for d in settings.get("public_holidays") or []),
            bonus=BonusRules(
                allowed_absences=int(bonus.get("allowed_absences", 0)),
                allowed_lates=int(bonus.get("allowed_lates", 2)),
                month1=to_decimal(bonus.get("month1", "400")),
                month2=to_decimal(bonus.get("month2", "500")),
                month3=to_decimal(bonus.get("month3", "600")),
            ),
            leave=LeavePolicy(
                annual_leave_days=int(leave.get("annual_days", DEFAULT_ANNUAL_LEAVE_DAYS)),
                public_holiday_credit_cap=int(leave.get("public_holiday_credit_cap", DEFAULT_PUBLIC_HOLIDAY_CREDIT_CAP)),
                sick_leave_quota_days=int(leave.get("sick_days", DEFAULT_SICK_LEAVE_QUOTA_DAYS)),
            ),
        )


@dataclass(frozen=True)
class Loan:
    loan_id: str
    staff_id: str
    amount: Decimal
    monthly_repayment: Decimal
    remaining_balance: Decimal
    is_active: bool = True

    @property
    def repayment_due(self) -> Decimal:
        """Never charge more than what is left on the loan."""
        return money(min(self.monthly_repayment, self.remaining_balance))


@dataclass(frozen=True)
class SalaryAdvance:
    advance_id: str
    staff_id: str
    amount: Decimal
    pay_period_year: int
    pay_period_month: int
    status: AdvanceStatus
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MonthlyAdjustment:
    adjustment_id: str
    staff_id: str
    pay_period_year: int
    pay_period_month: int
    adjustment_type: AdjustmentType
    amount: Decimal
    description: str = ""


@dataclass(frozen=True)
class LineItem:
    description: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"description": self.description, "amount": str(self.amount)}


@dataclass(frozen=True)
class LeavePayout:
    """Unused annual leave and public-holiday credits paid out to a leaver."""

    annual_days: int
    holiday_credits: int
    daily_rate: Decimal
    amount: Decimal

    @property
    def days(self) -> int:
        return self.annual_days + self.holiday_credits

    def to_dict(self) -> dict:
        return {
            "annualDays": self.annual_days,
            "holidayCredits": self.holiday_credits,
            "dailyRate": str(money(self.daily_rate)),
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class Earnings:
    base_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    attendance_bonus: Decimal = ZERO
    sso_allowance: Decimal = ZERO
    leave_payout: Decimal = ZERO
    others: tuple[LineItem, ...] = ()
    leave_payout_details: Optional[LeavePayout] = None

    @property
    def other_total(self) -> Decimal:
        return total(i.amount for i in self.others)

    @property
    def total(self) -> Decimal:
        return total(
            [
                self.base_pay,
                self.overtime_pay,
                self.attendance_bonus,
                self.sso_allowance,
                self.leave_payout,
                self.other_total,
            ]
        )

    def to_dict(self) -> dict:
        return {
            "basePay": str(self.base_pay),
            "overtimePay": str(self.overtime_pay),
            "attendanceBonus": str(self.attendance_bonus),
            "ssoAllowance": str(self.sso_allowance),
            "leavePayout": str(self.leave_payout),
            "leavePayoutDetails": self.leave_payout_details.to_dict() if self.leave_payout_details else None,
            "others": [i.to_dict() for i in self.others],
        }


@dataclass(frozen=True)
class Deductions:
    unpaid_days: int = 0
    absences: Decimal = ZERO
    sick_leave_days: int = 0
    sick_leave: Decimal = ZERO
    sso: Decimal = ZERO
    advance: Decimal = ZERO
    loan: Decimal = ZERO
    others: tuple[LineItem, ...] = ()

    @property
    def other_total(self) -> Decimal:
        return total(i.amount for i in self.others)

    @property
    def total(self) -> Decimal:
        return total([self.absences, self.sick_leave, self.sso, self.advance, self.loan, self.other_total])

    def to_dict(self) -> dict:
        return {
            "unpaidDays": self.unpaid_days,
            "absences": str(self.absences),
            "sickLeaveDays": self.sick_leave_days,
            "sickLeave": str(self.sick_leave),
            "sso": str(self.sso),
            "advance": str(self.advance),
            "loan": str(self.loan),
            "others": [i.to_dict() for i in self.others],
        }


@dataclass(frozen=True)
class LoanRepayment:
    loan_id: str
    amount: Decimal


@dataclass(frozen=True)
class PayrollRow:
    """One employee's computed pay for a period. Not persisted until finalized."""

    staff_id: str
    name: str
    position: str
    department: str
    pay_type: PayType
    earnings: Earnings
    deductions: Deductions
    current_streak: int = 0
    new_streak: int = 0
    absences: int = 0
    lates: int = 0
    loan_repayments: tuple[LoanRepayment, ...] = ()
    advance_ids: tuple[str, ...] = ()

    @property
    def total_earnings(self) -> Decimal:
        return self.earnings.total

    @property
    def total_deductions(self) -> Decimal:
        return self.deductions.total

    @property
    def net_pay(self) -> Decimal:
        return money(self.total_earnings - self.total_deductions)

    def breakdown(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position,
            "department": self.department,
            "payType": self.pay_type.value,
            "earnings": self.earnings.to_dict(),
            "deductions": self.deductions.to_dict(),
            "bonusInfo": {"newStreak": self.new_streak, "absences": self.absences, "lates": self.lates},
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "staffId": self.staff_id,
            **self.breakdown(),
            "totalEarnings": str(self.total_earnings),
            "totalDeductions": str(self.total_deductions),
            "netPay": str(self.net_pay),
        }


@dataclass(frozen=True)
class Payslip:
    """Finalized, write-once pay record for (staff, period)."""

    payslip_id: str
    staff_id: str
    pay_period_year: int
    pay_period_month: int
    total_earnings: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    breakdown: dict
    finalized_by: Optional[str] = None
    generated_at: Optional[datetime] = None
