from __future__ import annotations

from collections import defaultdict
from typing import Optional, Sequence

from ..common.money import to_decimal
from ..core.enums import PayType
from ..database.batch import WriteBatch
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_date
from .model import JobHistoryEntry, StaffProfile
from .repository import StaffRepository


def _row_to_job(r: dict) -> JobHistoryEntry:
    return JobHistoryEntry(
        position=r.get("position") or "",
        department=r.get("department") or "",
        pay_type=PayType.normalize(r.get("pay_type")),
        start_date=to_date(r["start_date"]),
        rate=to_decimal(r["rate"]) if r.get("rate") is not None else None,
        base_salary=to_decimal(r["base_salary"]) if r.get("base_salary") is not None else None,
        hourly_rate=to_decimal(r["hourly_rate"]) if r.get("hourly_rate") is not None else None,
        standard_day_hours=int(r["standard_day_hours"]) if r.get("standard_day_hours") is not None else None,
    )


def _row_to_profile(r: dict, jobs: Sequence[JobHistoryEntry]) -> StaffProfile:
    return StaffProfile(
        staff_id=str(r["staff_id"]),
        first_name=r.get("first_name") or "",
        last_name=r.get("last_name") or "",
        nickname=r.get("nickname"),
        start_date=to_date(r.get("start_date")),
        end_date=to_date(r.get("end_date")),
        bonus_streak=int(r.get("bonus_streak") or 0),
        job_history=tuple(jobs),
    )


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, staff_id: str) -> Optional[StaffProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT staff_id, first_name, last_name, nickname, start_date, end_date, bonus_streak
                FROM staff_profiles
                WHERE staff_id=%s
                """,
                (str(staff_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT staff_id, position, department, pay_type, rate, base_salary, hourly_rate,
                       standard_day_hours, start_date
                FROM job_history
                WHERE staff_id=%s
                """,
                (str(staff_id),),
            )
            jobs = [_row_to_job(j) for j in fetchall(cur)]
            return _row_to_profile(r, jobs)

    def list_all(self) -> Sequence[StaffProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT staff_id, first_name, last_name, nickname, start_date, end_date, bonus_streak
                FROM staff_profiles
                ORDER BY staff_id ASC
                """
            )
            profiles = fetchall(cur)
            cur.execute(
                """
                SELECT staff_id, position, department, pay_type, rate, base_salary, hourly_rate,
                       standard_day_hours, start_date
                FROM job_history
                """
            )
            jobs_by_staff: dict[str, list[JobHistoryEntry]] = defaultdict(list)
            for j in fetchall(cur):
                jobs_by_staff[str(j["staff_id"])].append(_row_to_job(j))

            return [_row_to_profile(r, jobs_by_staff.get(str(r["staff_id"]), [])) for r in profiles]

    def stage_bonus_streak(self, batch: WriteBatch, *, staff_id: str, bonus_streak: int) -> None:
        batch.add("UPDATE staff_profiles SET bonus_streak=%s WHERE staff_id=%s", (int(bonus_streak), str(staff_id)))
