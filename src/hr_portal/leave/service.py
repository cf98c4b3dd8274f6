from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..common.validators import require_non_empty
from ..core.enums import RequestStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveService:
    def __init__(self, leave: LeaveRepository):
        self._leave = leave

    def create_leave(
        self,
        *,
        current_role: Role,
        staff_id: str,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
    ) -> str:
        if current_role not in {Role.MANAGER, Role.STAFF}:
            raise AuthorizationError("Not allowed")

        staff_id = require_non_empty(staff_id, "Staff id")
        leave_type = require_non_empty(leave_type, "Leave type")
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")

        total_days = (end_date - start_date).days + 1
        return self._leave.create(
            staff_id=staff_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            total_days=total_days,
            reason=(reason or "").strip() or None,
        )

    def _decide(self, *, current_role: Role, manager_id: str, leave_id: str, status: RequestStatus) -> None:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")

        req = self._leave.get_by_id(leave_id)
        if not req:
            raise NotFoundError("Leave request not found")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Leave request has already been processed")

        if not self._leave.decide(leave_id, status=status, decided_by=manager_id):
            raise ValidationError("Leave request has already been processed")
        logger.info("Leave %s %s by %s", leave_id, status.value, manager_id)

    def approve_leave(self, *, current_role: Role, manager_id: str, leave_id: str) -> None:
        self._decide(current_role=current_role, manager_id=manager_id, leave_id=leave_id, status=RequestStatus.APPROVED)

    def reject_leave(self, *, current_role: Role, manager_id: str, leave_id: str) -> None:
        self._decide(current_role=current_role, manager_id=manager_id, leave_id=leave_id, status=RequestStatus.REJECTED)
