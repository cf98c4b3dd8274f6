"""Salary advance eligibility for monthly-salaried staff."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import today_local
from ..common.money import ZERO, money, total
from ..common.validators import require_positive_amount
from ..core.enums import AdvanceStatus, PayType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..leave.repository import LeaveRepository
from ..schedules.repository import ScheduleRepository
from ..staff.repository import StaffRepository
from .attendance_stats import compute_month_stats
from .model import CompanyConfig, PayPeriod
from .repository import PayrollRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvanceEligibility:
    staff_id: str
    period: PayPeriod
    base_salary: Decimal
    unpaid_absences: int
    absence_deductions: Decimal
    current_salary_due: Decimal
    max_theoretical_advance: Decimal
    advances_already_taken: Decimal
    max_advance: Decimal

    def to_dict(self) -> dict:
        return {
            "staffId": self.staff_id,
            "year": self.period.year,
            "month": self.period.month,
            "baseSalary": str(self.base_salary),
            "unpaidAbsences": self.unpaid_absences,
            "absenceDeductions": str(self.absence_deductions),
            "currentSalaryDue": str(self.current_salary_due),
            "maxTheoreticalAdvance": str(self.max_theoretical_advance),
            "advancesAlreadyTaken": str(self.advances_already_taken),
            "maxAdvance": str(self.max_advance),
        }


class AdvanceService:
    def __init__(
        self,
        *,
        staff: StaffRepository,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        leaves: LeaveRepository,
        payroll: PayrollRepository,
        config: CompanyConfig,
    ):
        self._staff = staff
        self._attendance = attendance
        self._schedules = schedules
        self._leaves = leaves
        self._payroll = payroll
        self._config = config

    def eligibility(self, *, current_role: Role, staff_id: str, as_of: Optional[date] = None) -> AdvanceEligibility:
        if current_role not in (Role.MANAGER, Role.STAFF):
            raise AuthorizationError("Permission denied")

        profile = self._staff.get_by_id(staff_id)
        if not profile:
            raise NotFoundError("Staff profile could not be found")
        job = profile.current_job()
        if job is None or job.pay_type != PayType.SALARY or job.monthly_salary <= 0:
            raise ValidationError("Salary advances are only available to monthly salaried staff")

        today = as_of or today_local()
        period = PayPeriod(today.year, today.month)
        start = period.first_day

        stats = compute_month_stats(
            profile,
            start=start,
            end=today,
            attendance=self._attendance.list_range(start=start, end=today, staff_id=profile.staff_id),
            schedules=self._schedules.list_range(start=start, end=today, staff_id=profile.staff_id),
            leaves=self._leaves.list_approved_overlapping(start=start, end=today),
            public_holidays=self._config.public_holidays,
            as_of=today,
        )

        base = money(job.monthly_salary)
        daily_rate = base / Decimal(period.days)
        deductions = money(daily_rate * stats.unpaid_days)
        due = max(ZERO, money(base - deductions))

        theoretical = Decimal(math.floor(due * Decimal(self._config.advance_percentage) / Decimal(100)))
        taken = total(
            a.amount
            for a in self._payroll.list_advances(period, statuses=[AdvanceStatus.PENDING, AdvanceStatus.APPROVED])
            if a.staff_id == profile.staff_id
        )

        return AdvanceEligibility(
            staff_id=profile.staff_id,
            period=period,
            base_salary=base,
            unpaid_absences=stats.unpaid_days,
            absence_deductions=deductions,
            current_salary_due=due,
            max_theoretical_advance=money(theoretical),
            advances_already_taken=taken,
            max_advance=money(max(ZERO, theoretical - taken)),
        )

    def request_advance(self, *, current_role: Role, staff_id: str, amount, as_of: Optional[date] = None) -> str:
        amount = money(require_positive_amount(amount, "Advance amount"))
        eligibility = self.eligibility(current_role=current_role, staff_id=staff_id, as_of=as_of)
        if amount > eligibility.max_advance:
            raise ValidationError(f"Requested amount exceeds the available advance ({eligibility.max_advance})")

        advance_id = self._payroll.create_advance(staff_id=eligibility.staff_id, amount=amount, period=eligibility.period)
        logger.info("Advance %s requested by %s: %s", advance_id, staff_id, amount)
        return advance_id
