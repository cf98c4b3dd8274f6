from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_date
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    leave_id, staff_id, leave_type, start_date, end_date, total_days, reason,
    status, decided_by, decided_at, created_at
"""


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=str(r["leave_id"]),
        staff_id=str(r["staff_id"]),
        leave_type=r["leave_type"],
        start_date=to_date(r["start_date"]),
        end_date=to_date(r["end_date"]),
        total_days=int(r["total_days"]),
        status=RequestStatus(r["status"]),
        reason=r.get("reason"),
        decided_by=r.get("decided_by"),
        decided_at=from_db_datetime(r.get("decided_at")),
        created_at=from_db_datetime(r.get("created_at")),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        leave_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    leave_id, staff_id, leave_type, start_date, end_date, total_days, reason, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,UTC_TIMESTAMP())
                """,
                (
                    leave_id,
                    str(staff_id),
                    leave_type,
                    start_date,
                    end_date,
                    int(total_days),
                    reason,
                    RequestStatus.PENDING.value,
                ),
            )
        return leave_id

    def get_by_id(self, leave_id: str) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (str(leave_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def decide(self, leave_id: str, *, status: RequestStatus, decided_by: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=UTC_TIMESTAMP()
                WHERE leave_id=%s AND status=%s
                """,
                (status.value, str(decided_by), str(leave_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_approved_overlapping(self, *, start: date, end: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE status=%s AND start_date <= %s AND end_date >= %s
                ORDER BY start_date ASC
                """,
                (RequestStatus.APPROVED.value, end, start),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]
