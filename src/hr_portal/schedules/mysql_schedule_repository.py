from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ScheduleKind
from ..database.batch import WriteBatch
from ..database.connection import DatabaseConnection
from ..database.mysql_base import clock_string, db_cursor, fetchall, fetchone, to_date
from .model import ScheduleEntry
from .repository import ScheduleRepository

_COLUMNS = "schedule_id, staff_id, staff_name, work_date, kind, start_time, end_time, break_included, notes"


def _row_to_entry(r: dict) -> ScheduleEntry:
    return ScheduleEntry(
        schedule_id=str(r["schedule_id"]),
        staff_id=str(r["staff_id"]),
        work_date=to_date(r["work_date"]),
        kind=ScheduleKind(r["kind"]),
        start_time=clock_string(r.get("start_time")),
        end_time=clock_string(r.get("end_time")),
        break_included=bool(r.get("break_included")),
        staff_name=r.get("staff_name") or "",
        notes=r.get("notes"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: str) -> Optional[ScheduleEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (str(schedule_id),))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def get_for_staff_and_date(self, *, staff_id: str, work_date: date) -> Optional[ScheduleEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedules WHERE staff_id=%s AND work_date=%s",
                (str(staff_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def list_range(self, *, start: date, end: date, staff_id: Optional[str] = None) -> Sequence[ScheduleEntry]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if staff_id is not None:
            clauses.append("staff_id=%s")
            params.append(str(staff_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedules WHERE {where} ORDER BY work_date ASC, staff_id ASC",
                tuple(params),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def upsert(self, entry: ScheduleEntry) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO schedules(
                    schedule_id, staff_id, staff_name, work_date, kind, start_time, end_time, break_included, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    staff_name=VALUES(staff_name), kind=VALUES(kind),
                    start_time=VALUES(start_time), end_time=VALUES(end_time),
                    break_included=VALUES(break_included), notes=VALUES(notes)
                """,
                (
                    entry.schedule_id,
                    entry.staff_id,
                    entry.staff_name,
                    entry.work_date,
                    entry.kind.value,
                    entry.start_time,
                    entry.end_time,
                    1 if entry.break_included else 0,
                    entry.notes,
                ),
            )
        return entry.schedule_id

    def stage_delete(self, batch: WriteBatch, *, schedule_id: str) -> None:
        batch.add("DELETE FROM schedules WHERE schedule_id=%s", (str(schedule_id),))
