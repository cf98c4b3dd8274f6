from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import clock_minutes
from ..core.constants import SCHEDULE_INCLUDED_BREAK_MINUTES
from ..core.enums import ScheduleKind


def schedule_id_for(staff_id: str, work_date: date) -> str:
    """Deterministic id: one schedule entry per (staff, date)."""
    return f"{staff_id}_{work_date.isoformat()}"


@dataclass(frozen=True)
class ScheduleEntry:
    schedule_id: str
    staff_id: str
    work_date: date
    kind: ScheduleKind
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    break_included: bool = True
    staff_name: str = ""
    notes: Optional[str] = None

    @property
    def is_work(self) -> bool:
        return self.kind == ScheduleKind.WORK and bool(self.start_time) and bool(self.end_time)

    def net_minutes(self) -> int:
        """Scheduled minutes net of the included break; 0 for days off.

        A shift ending at or before its start wraps past midnight.
        """

        if not self.is_work:
            return 0
        span = clock_minutes(self.end_time) - clock_minutes(self.start_time)
        if span <= 0:
            span += 24 * 60
        if self.break_included:
            span -= SCHEDULE_INCLUDED_BREAK_MINUTES
        return max(span, 0)
