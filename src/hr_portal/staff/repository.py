from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import StaffProfile


class StaffRepository(Protocol):
    def get_by_id(self, staff_id: str) -> Optional[StaffProfile]:
        raise NotImplementedError

    def list_all(self) -> Sequence[StaffProfile]:
        """All staff profiles with their job history loaded."""

        raise NotImplementedError

    def stage_bonus_streak(self, batch, *, staff_id: str, bonus_streak: int) -> None:
        raise NotImplementedError
