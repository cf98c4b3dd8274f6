from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import ScheduleEntry


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: str) -> Optional[ScheduleEntry]:
        raise NotImplementedError

    def get_for_staff_and_date(self, *, staff_id: str, work_date: date) -> Optional[ScheduleEntry]:
        raise NotImplementedError

    def list_range(self, *, start: date, end: date, staff_id: Optional[str] = None) -> Sequence[ScheduleEntry]:
        raise NotImplementedError

    def upsert(self, entry: ScheduleEntry) -> str:
        """Create or replace the entry stored under its deterministic id.

        Returns schedule_id.
        """

        raise NotImplementedError

    def stage_delete(self, batch, *, schedule_id: str) -> None:
        raise NotImplementedError
