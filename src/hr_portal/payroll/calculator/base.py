from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ...common.money import ZERO
from ...staff.model import JobHistoryEntry, StaffProfile
from ..attendance_stats import MonthStats
from ..model import CompanyConfig, LeavePayout, PayPeriod


@dataclass(frozen=True)
class BasePay:
    base_pay: Decimal
    unpaid_day_deduction: Decimal = ZERO
    # Rate that approved overtime minutes are paid against (before the multiplier).
    hourly_equivalent: Decimal = ZERO
    sick_leave_deduction: Decimal = ZERO
    leave_payout: Optional[LeavePayout] = None


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern, one per pay type)."""

    @abstractmethod
    def base_pay(
        self,
        staff: StaffProfile,
        job: JobHistoryEntry,
        period: PayPeriod,
        stats: MonthStats,
        config: Optional[CompanyConfig] = None,
    ) -> BasePay:
        raise NotImplementedError
