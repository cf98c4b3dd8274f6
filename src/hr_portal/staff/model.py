from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_STANDARD_DAY_HOURS
from ..core.enums import PayType


@dataclass(frozen=True)
class JobHistoryEntry:
    position: str
    department: str
    pay_type: PayType
    start_date: date
    rate: Optional[Decimal] = None
    base_salary: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    standard_day_hours: Optional[int] = None

    @property
    def monthly_salary(self) -> Decimal:
        return self.base_salary if self.base_salary is not None else (self.rate or Decimal("0"))

    @property
    def hourly(self) -> Decimal:
        return self.hourly_rate if self.hourly_rate is not None else (self.rate or Decimal("0"))

    @property
    def day_hours(self) -> int:
        return int(self.standard_day_hours or DEFAULT_STANDARD_DAY_HOURS)


@dataclass(frozen=True)
class StaffProfile:
    staff_id: str
    first_name: str
    last_name: str
    nickname: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    bonus_streak: int = 0
    job_history: tuple[JobHistoryEntry, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        if self.nickname:
            return self.nickname
        return f"{self.first_name} {self.last_name}".strip() or self.staff_id

    def current_job(self) -> Optional[JobHistoryEntry]:
        """The most recent job entry by start date."""

        if not self.job_history:
            return None
        return max(self.job_history, key=lambda j: j.start_date)

    def is_employed_during(self, start: date, end: date) -> bool:
        if self.start_date is None or self.start_date > end:
            return False
        return self.end_date is None or self.end_date >= start
