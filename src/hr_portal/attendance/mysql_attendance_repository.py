from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from ..core.enums import OvertimeStatus
from ..database.batch import WriteBatch
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_date, to_db_datetime
from .model import AttendanceRecord, AttendanceTimes, NewAttendance
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, staff_id, staff_name, work_date,
    check_in_time, check_out_time, break_start, break_end,
    ot_status, ot_approved_minutes, ot_processed, ot_decided_at,
    created_at, updated_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str(r["attendance_id"]),
        staff_id=str(r["staff_id"]),
        work_date=to_date(r["work_date"]),
        staff_name=r.get("staff_name") or "",
        check_in_time=from_db_datetime(r.get("check_in_time")),
        check_out_time=from_db_datetime(r.get("check_out_time")),
        break_start=from_db_datetime(r.get("break_start")),
        break_end=from_db_datetime(r.get("break_end")),
        ot_status=OvertimeStatus(r["ot_status"]) if r.get("ot_status") else None,
        ot_approved_minutes=int(r["ot_approved_minutes"]) if r.get("ot_approved_minutes") is not None else None,
        ot_processed=bool(r.get("ot_processed")),
        ot_decided_at=from_db_datetime(r.get("ot_decided_at")),
        created_at=from_db_datetime(r.get("created_at")),
        updated_at=from_db_datetime(r.get("updated_at")),
    )


def _time_params(times: AttendanceTimes) -> tuple:
    return (
        to_db_datetime(times.check_in_time),
        to_db_datetime(times.check_out_time),
        to_db_datetime(times.break_start),
        to_db_datetime(times.break_end),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (str(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def find_by_staff_and_date(self, staff_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance
                WHERE staff_id=%s AND work_date=%s
                ORDER BY created_at ASC
                LIMIT 1
                """,
                (str(staff_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_range(self, *, start: date, end: date, staff_id: Optional[str] = None) -> Sequence[AttendanceRecord]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if staff_id is not None:
            clauses.append("staff_id=%s")
            params.append(str(staff_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE {where} ORDER BY work_date ASC, staff_id ASC",
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def insert(self, record: NewAttendance) -> str:
        attendance_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    attendance_id, staff_id, staff_name, work_date,
                    check_in_time, check_out_time, break_start, break_end, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,UTC_TIMESTAMP())
                """,
                (attendance_id, record.staff_id, record.staff_name, record.work_date, *_time_params(record.times)),
            )
        return attendance_id

    def patch_times(self, attendance_id: str, times: AttendanceTimes) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_in_time=%s, check_out_time=%s, break_start=%s, break_end=%s,
                    updated_at=UTC_TIMESTAMP()
                WHERE attendance_id=%s
                """,
                (*_time_params(times), str(attendance_id)),
            )
            return cur.rowcount > 0

    def set_overtime_decision(self, attendance_id: str, *, status: OvertimeStatus, approved_minutes: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET ot_status=%s, ot_approved_minutes=%s, ot_processed=1, ot_decided_at=UTC_TIMESTAMP()
                WHERE attendance_id=%s
                """,
                (status.value, int(approved_minutes), str(attendance_id)),
            )
            return cur.rowcount > 0

    def clear_overtime_decision(self, attendance_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET ot_status=NULL, ot_approved_minutes=NULL, ot_processed=0, ot_decided_at=NULL
                WHERE attendance_id=%s
                """,
                (str(attendance_id),),
            )
            return cur.rowcount > 0

    def stage_delete_for_staff_and_date(self, batch: WriteBatch, *, staff_id: str, work_date: date) -> None:
        batch.add("DELETE FROM attendance WHERE staff_id=%s AND work_date=%s", (str(staff_id), work_date))
