from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..common.money import to_decimal
from ..core.enums import AdjustmentType, AdvanceStatus
from ..database.batch import WriteBatch
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, from_db_datetime, load_json
from .model import Loan, MonthlyAdjustment, PayPeriod, Payslip, SalaryAdvance
from .repository import PayrollRepository

_PAYSLIP_COLUMNS = """
    payslip_id, staff_id, pay_period_year, pay_period_month, total_earnings,
    total_deductions, net_pay, breakdown, finalized_by, generated_at
"""


def _row_to_payslip(r: dict) -> Payslip:
    return Payslip(
        payslip_id=str(r["payslip_id"]),
        staff_id=str(r["staff_id"]),
        pay_period_year=int(r["pay_period_year"]),
        pay_period_month=int(r["pay_period_month"]),
        total_earnings=to_decimal(r["total_earnings"]),
        total_deductions=to_decimal(r["total_deductions"]),
        net_pay=to_decimal(r["net_pay"]),
        breakdown=load_json(r.get("breakdown")) or {},
        finalized_by=r.get("finalized_by"),
        generated_at=from_db_datetime(r.get("generated_at")),
    )


def _row_to_loan(r: dict) -> Loan:
    return Loan(
        loan_id=str(r["loan_id"]),
        staff_id=str(r["staff_id"]),
        amount=to_decimal(r["amount"]),
        monthly_repayment=to_decimal(r["monthly_repayment"]),
        remaining_balance=to_decimal(r["remaining_balance"]),
        is_active=bool(r.get("is_active", 1)),
    )


def _row_to_advance(r: dict) -> SalaryAdvance:
    return SalaryAdvance(
        advance_id=str(r["advance_id"]),
        staff_id=str(r["staff_id"]),
        amount=to_decimal(r["amount"]),
        pay_period_year=int(r["pay_period_year"]),
        pay_period_month=int(r["pay_period_month"]),
        status=AdvanceStatus(r["status"]),
        created_at=from_db_datetime(r.get("created_at")),
    )


def _row_to_adjustment(r: dict) -> MonthlyAdjustment:
    return MonthlyAdjustment(
        adjustment_id=str(r["adjustment_id"]),
        staff_id=str(r["staff_id"]),
        pay_period_year=int(r["pay_period_year"]),
        pay_period_month=int(r["pay_period_month"]),
        adjustment_type=AdjustmentType(r["adjustment_type"]),
        amount=to_decimal(r["amount"]),
        description=r.get("description") or "",
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def finalized_staff_ids(self, period: PayPeriod) -> set[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT staff_id FROM payslips WHERE pay_period_year=%s AND pay_period_month=%s",
                (period.year, period.month),
            )
            return {str(r["staff_id"]) for r in fetchall(cur)}

    def get_payslip(self, payslip_id: str) -> Optional[Payslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PAYSLIP_COLUMNS} FROM payslips WHERE payslip_id=%s", (str(payslip_id),))
            r = fetchone(cur)
            return _row_to_payslip(r) if r else None

    def list_payslips(self, period: PayPeriod) -> Sequence[Payslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PAYSLIP_COLUMNS}
                FROM payslips
                WHERE pay_period_year=%s AND pay_period_month=%s
                ORDER BY staff_id ASC
                """,
                (period.year, period.month),
            )
            return [_row_to_payslip(r) for r in fetchall(cur)]

    def list_active_loans(self) -> Sequence[Loan]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT loan_id, staff_id, amount, monthly_repayment, remaining_balance, is_active
                FROM loans
                WHERE is_active=1 AND remaining_balance > 0
                """
            )
            return [_row_to_loan(r) for r in fetchall(cur)]

    def list_advances(self, period: PayPeriod, *, statuses: Iterable[AdvanceStatus]) -> Sequence[SalaryAdvance]:
        wanted = [s.value for s in statuses]
        if not wanted:
            return []
        placeholders = ",".join(["%s"] * len(wanted))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT advance_id, staff_id, amount, pay_period_year, pay_period_month, status, created_at
                FROM salary_advances
                WHERE pay_period_year=%s AND pay_period_month=%s AND status IN ({placeholders})
                """,
                (period.year, period.month, *wanted),
            )
            return [_row_to_advance(r) for r in fetchall(cur)]

    def list_adjustments(self, period: PayPeriod) -> Sequence[MonthlyAdjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT adjustment_id, staff_id, pay_period_year, pay_period_month, adjustment_type, amount, description
                FROM monthly_adjustments
                WHERE pay_period_year=%s AND pay_period_month=%s
                """,
                (period.year, period.month),
            )
            return [_row_to_adjustment(r) for r in fetchall(cur)]

    def create_advance(self, *, staff_id: str, amount: Decimal, period: PayPeriod) -> str:
        advance_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO salary_advances(
                    advance_id, staff_id, amount, pay_period_year, pay_period_month, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,UTC_TIMESTAMP())
                """,
                (advance_id, str(staff_id), amount, period.year, period.month, AdvanceStatus.PENDING.value),
            )
        return advance_id

    def stage_payslip(self, batch: WriteBatch, payslip: Payslip) -> None:
        # Plain INSERT: the primary key rejects a second payslip for the same staff and period.
        batch.add(
            """
            INSERT INTO payslips(
                payslip_id, staff_id, pay_period_year, pay_period_month, total_earnings,
                total_deductions, net_pay, breakdown, finalized_by, generated_at
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,UTC_TIMESTAMP())
            """,
            (
                payslip.payslip_id,
                payslip.staff_id,
                payslip.pay_period_year,
                payslip.pay_period_month,
                payslip.total_earnings,
                payslip.total_deductions,
                payslip.net_pay,
                dump_json(payslip.breakdown),
                payslip.finalized_by,
            ),
        )

    def stage_loan_repayment(self, batch: WriteBatch, *, loan_id: str, amount: Decimal) -> None:
        batch.add(
            """
            UPDATE loans
            SET remaining_balance = GREATEST(remaining_balance - %s, 0),
                is_active = IF(remaining_balance <= 0, 0, 1)
            WHERE loan_id=%s
            """,
            (amount, str(loan_id)),
        )

    def stage_advance_deducted(self, batch: WriteBatch, *, advance_id: str) -> None:
        batch.add(
            "UPDATE salary_advances SET status=%s, deducted_at=UTC_TIMESTAMP() WHERE advance_id=%s",
            (AdvanceStatus.DEDUCTED.value, str(advance_id)),
        )
