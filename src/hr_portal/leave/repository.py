from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create(
        self,
        *,
        staff_id: str,
        leave_type: str,
        start_date: date,
        end_date: date,
        total_days: int,
        reason: Optional[str],
    ) -> str:
        raise NotImplementedError

    def get_by_id(self, leave_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def decide(self, leave_id: str, *, status: RequestStatus, decided_by: str) -> bool:
        """Move a pending request to approved/rejected. False when not pending."""

        raise NotImplementedError

    def list_approved_overlapping(self, *, start: date, end: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError
