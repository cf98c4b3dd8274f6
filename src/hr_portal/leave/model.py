from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: str
    staff_id: str
    leave_type: str
    start_date: date
    end_date: date
    total_days: int
    status: RequestStatus
    reason: Optional[str] = None
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def kind(self) -> str:
        """Leave type without case or a trailing "leave" ("Sick Leave" -> "sick")."""

        kind = (self.leave_type or "").strip().lower()
        if kind.endswith(" leave"):
            kind = kind[: -len(" leave")].rstrip()
        return kind

    @property
    def is_sick(self) -> bool:
        return self.kind == "sick"

    @property
    def is_annual(self) -> bool:
        return self.kind == "annual"

    def days_within(self, start: date, end: date) -> int:
        """Inclusive number of requested days that fall between ``start`` and ``end``."""

        first = max(self.start_date, start)
        last = min(self.end_date, end)
        if last < first:
            return 0
        return (last - first).days + 1
