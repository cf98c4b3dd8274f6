from __future__ import annotations

from typing import Optional

from ...common.money import money
from ...staff.model import JobHistoryEntry, StaffProfile
from ..attendance_stats import MonthStats
from ..model import CompanyConfig, PayPeriod
from .base import BasePay, PayrollCalculator


class HourlyCalculator(PayrollCalculator):
    # Paid for clocked time only; missed shifts and leave rules do not apply.
    def base_pay(
        self,
        staff: StaffProfile,
        job: JobHistoryEntry,
        period: PayPeriod,
        stats: MonthStats,
        config: Optional[CompanyConfig] = None,
    ) -> BasePay:
        return BasePay(
            base_pay=money(stats.worked_hours * job.hourly),
            hourly_equivalent=job.hourly,
        )
