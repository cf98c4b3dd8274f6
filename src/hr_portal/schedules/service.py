from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.batch import WriteBatch
from .model import ScheduleEntry
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(
        self,
        schedules: ScheduleRepository,
        attendance: AttendanceRepository,
        *,
        batch_factory: Callable[[], WriteBatch],
    ):
        self._schedules = schedules
        self._attendance = attendance
        self._batch_factory = batch_factory

    def list_range(self, *, start: date, end: date, staff_id: Optional[str] = None) -> Sequence[ScheduleEntry]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return self._schedules.list_range(start=start, end=end, staff_id=staff_id)

    def delete_entry(self, *, current_role: Role, schedule_id: str) -> None:
        """Delete a schedule entry together with that day's attendance, atomically."""

        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")

        entry = self._schedules.get_by_id(schedule_id)
        if not entry:
            raise NotFoundError(f"Schedule {schedule_id} not found")

        batch = self._batch_factory()
        self._schedules.stage_delete(batch, schedule_id=entry.schedule_id)
        self._attendance.stage_delete_for_staff_and_date(batch, staff_id=entry.staff_id, work_date=entry.work_date)
        batch.commit()
        logger.info("Deleted schedule %s and attendance for %s on %s", entry.schedule_id, entry.staff_id, entry.work_date)
