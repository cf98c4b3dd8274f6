from __future__ import annotations

import csv
import io
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

import pandas as pd

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import today_local
from ..common.money import ZERO, money, total
from ..core.enums import AdjustmentType, AdvanceStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..database.batch import WriteBatch
from ..leave.repository import LeaveRepository
from ..schedules.repository import ScheduleRepository
from ..staff.model import StaffProfile
from ..staff.repository import StaffRepository
from .attendance_stats import MonthStats, compute_month_stats
from .bonus import AttendanceBonusEvaluator, BonusOutcome, BonusStreakEvaluator
from .calculator.factory import calculator_for
from .model import (
    CompanyConfig,
    Deductions,
    Earnings,
    LineItem,
    LoanRepayment,
    PayPeriod,
    PayrollRow,
    Payslip,
    payslip_id_for,
)
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

REGISTER_COLUMNS = [
    "staffId",
    "name",
    "position",
    "department",
    "payType",
    "basePay",
    "overtimePay",
    "attendanceBonus",
    "ssoAllowance",
    "leavePayout",
    "otherEarnings",
    "totalEarnings",
    "unpaidDays",
    "absenceDeduction",
    "sickLeaveDeduction",
    "ssoDeduction",
    "advanceDeduction",
    "loanDeduction",
    "otherDeductions",
    "totalDeductions",
    "netPay",
    "status",
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class FinalizeResult:
    period: PayPeriod
    finalized: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "year": self.period.year,
            "month": self.period.month,
            "finalized": self.finalized,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class RegisterFile:
    content: bytes
    mimetype: str
    filename: str


def _sum_items(items: list) -> str:
    return str(total(Decimal(str(i["amount"])) for i in items or []))


def _register_line(staff_id: str, breakdown: dict, totals: dict, status: str) -> dict:
    earnings = breakdown.get("earnings") or {}
    deductions = breakdown.get("deductions") or {}
    return {
        "staffId": staff_id,
        "name": breakdown.get("name", ""),
        "position": breakdown.get("position", ""),
        "department": breakdown.get("department", ""),
        "payType": breakdown.get("payType", ""),
        "basePay": earnings.get("basePay", "0"),
        "overtimePay": earnings.get("overtimePay", "0"),
        "attendanceBonus": earnings.get("attendanceBonus", "0"),
        "ssoAllowance": earnings.get("ssoAllowance", "0"),
        "leavePayout": earnings.get("leavePayout", "0"),
        "otherEarnings": _sum_items(earnings.get("others")),
        "totalEarnings": str(totals["totalEarnings"]),
        "unpaidDays": deductions.get("unpaidDays", 0),
        "absenceDeduction": deductions.get("absences", "0"),
        "sickLeaveDeduction": deductions.get("sickLeave", "0"),
        "ssoDeduction": deductions.get("sso", "0"),
        "advanceDeduction": deductions.get("advance", "0"),
        "loanDeduction": deductions.get("loan", "0"),
        "otherDeductions": _sum_items(deductions.get("others")),
        "totalDeductions": str(totals["totalDeductions"]),
        "netPay": str(totals["netPay"]),
        "status": status,
    }


class PayrollService:
    """Monthly payroll: compute rows on demand, persist them only on finalize."""

    def __init__(
        self,
        *,
        staff: StaffRepository,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        leaves: LeaveRepository,
        payroll: PayrollRepository,
        config: CompanyConfig,
        batch_factory: Callable[[], WriteBatch],
        bonus: Optional[BonusStreakEvaluator] = None,
    ):
        self._staff = staff
        self._attendance = attendance
        self._schedules = schedules
        self._leaves = leaves
        self._payroll = payroll
        self._config = config
        self._batch_factory = batch_factory
        self._bonus = bonus or AttendanceBonusEvaluator(config.bonus)

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Manager role required")

    def _select_staff(self, period: PayPeriod, staff_ids: Optional[Iterable[str]]) -> list[StaffProfile]:
        wanted = {str(s) for s in staff_ids or [] if str(s).strip()}
        finalized = self._payroll.finalized_staff_ids(period)

        selected = []
        for s in self._staff.list_all():
            if wanted and s.staff_id not in wanted:
                continue
            if s.staff_id in finalized:
                continue
            if not s.is_employed_during(period.first_day, period.last_day):
                continue
            if s.current_job() is None:
                logger.warning("Staff %s has no job history; skipped from payroll %s", s.staff_id, period)
                continue
            selected.append(s)
        return selected

    def _bonus_for(self, staff: StaffProfile, period: PayPeriod, stats: MonthStats) -> BonusOutcome:
        if period.contains(staff.end_date):
            return BonusOutcome(amount=ZERO, new_streak=staff.bonus_streak)
        return self._bonus.evaluate(absences=stats.unpaid_days, lates=stats.lates, current_streak=staff.bonus_streak)

    def _sso(self, gross: Decimal) -> Decimal:
        contribution = money(gross * self._config.sso_rate_percent / Decimal(100))
        return min(contribution, money(self._config.sso_cap))

    def generate(
        self,
        current_role: Role,
        period: PayPeriod,
        staff_ids: Optional[Sequence[str]] = None,
        *,
        as_of: Optional[date] = None,
    ) -> list[PayrollRow]:
        """Compute draft payroll rows for the period.

        Staff already finalized for the period, or not employed during it, are
        left out. Nothing is written.
        """

        self._require_manager(current_role)
        today = as_of or today_local()
        if period.first_day > today:
            raise ValidationError(f"Cannot generate payroll for a future period ({period})")

        staff = self._select_staff(period, staff_ids)
        if not staff:
            return []

        start, end = period.first_day, period.last_day
        attendance = self._attendance.list_range(start=start, end=end)
        schedules = self._schedules.list_range(start=start, end=end)
        # Year-to-date leave feeds the sick quota and the leaver payout.
        leaves = self._leaves.list_approved_overlapping(start=date(period.year, 1, 1), end=end)

        loans = defaultdict(list)
        for loan in self._payroll.list_active_loans():
            loans[loan.staff_id].append(loan)
        advances = defaultdict(list)
        for adv in self._payroll.list_advances(period, statuses=[AdvanceStatus.APPROVED]):
            advances[adv.staff_id].append(adv)
        adjustments = defaultdict(list)
        for adj in self._payroll.list_adjustments(period):
            adjustments[adj.staff_id].append(adj)

        rows = []
        for s in staff:
            job = s.current_job()
            stats = compute_month_stats(
                s,
                start=start,
                end=end,
                attendance=attendance,
                schedules=schedules,
                leaves=leaves,
                public_holidays=self._config.public_holidays,
                as_of=today,
                sick_leave_quota_days=self._config.leave.sick_leave_quota_days,
            )
            base = calculator_for(job.pay_type).base_pay(s, job, period, stats, self._config)
            bonus = self._bonus_for(s, period, stats)

            other_earnings = tuple(
                LineItem(a.description, money(a.amount))
                for a in adjustments[s.staff_id]
                if a.adjustment_type == AdjustmentType.EARNING
            )
            other_deductions = tuple(
                LineItem(a.description, money(a.amount))
                for a in adjustments[s.staff_id]
                if a.adjustment_type == AdjustmentType.DEDUCTION
            )

            payout = base.leave_payout.amount if base.leave_payout else ZERO
            sso = self._sso(base.base_pay + payout + total(i.amount for i in other_earnings))
            overtime_pay = money(
                Decimal(stats.approved_overtime_minutes) / Decimal(60) * base.hourly_equivalent * self._config.overtime_rate
            )
            repayments = tuple(
                LoanRepayment(loan.loan_id, loan.repayment_due) for loan in loans[s.staff_id] if loan.repayment_due > 0
            )
            staff_advances = advances[s.staff_id]

            rows.append(
                PayrollRow(
                    staff_id=s.staff_id,
                    name=s.display_name,
                    position=job.position,
                    department=job.department,
                    pay_type=job.pay_type,
                    earnings=Earnings(
                        base_pay=base.base_pay,
                        overtime_pay=overtime_pay,
                        attendance_bonus=bonus.amount,
                        sso_allowance=sso,
                        leave_payout=payout,
                        others=other_earnings,
                        leave_payout_details=base.leave_payout,
                    ),
                    deductions=Deductions(
                        unpaid_days=stats.unpaid_days,
                        absences=base.unpaid_day_deduction,
                        sick_leave_days=stats.sick_overage_days,
                        sick_leave=base.sick_leave_deduction,
                        sso=sso,
                        advance=total(a.amount for a in staff_advances),
                        loan=total(r.amount for r in repayments),
                        others=other_deductions,
                    ),
                    current_streak=s.bonus_streak,
                    new_streak=bonus.new_streak,
                    absences=stats.unpaid_days,
                    lates=stats.lates,
                    loan_repayments=repayments,
                    advance_ids=tuple(a.advance_id for a in staff_advances),
                )
            )

        logger.info("Generated payroll %s for %d staff", period, len(rows))
        return rows

    def finalize(
        self,
        current_role: Role,
        rows: Sequence[PayrollRow],
        period: PayPeriod,
        finalized_by: Optional[str] = None,
    ) -> FinalizeResult:
        """Persist one payslip per row in a single atomic batch.

        The batch also carries each employee's new bonus streak, loan
        repayments and the period's approved advances (marked deducted).
        Staff already holding a payslip for the period are skipped.
        """

        self._require_manager(current_role)
        already = self._payroll.finalized_staff_ids(period)

        batch = self._batch_factory()
        finalized: list[str] = []
        skipped: list[str] = []
        for row in rows:
            if row.staff_id in already or row.staff_id in finalized:
                skipped.append(row.staff_id)
                continue

            self._payroll.stage_payslip(
                batch,
                Payslip(
                    payslip_id=payslip_id_for(row.staff_id, period),
                    staff_id=row.staff_id,
                    pay_period_year=period.year,
                    pay_period_month=period.month,
                    total_earnings=row.total_earnings,
                    total_deductions=row.total_deductions,
                    net_pay=row.net_pay,
                    breakdown=row.breakdown(),
                    finalized_by=finalized_by,
                ),
            )
            self._staff.stage_bonus_streak(batch, staff_id=row.staff_id, bonus_streak=row.new_streak)
            for repayment in row.loan_repayments:
                self._payroll.stage_loan_repayment(batch, loan_id=repayment.loan_id, amount=repayment.amount)
            for advance_id in row.advance_ids:
                self._payroll.stage_advance_deducted(batch, advance_id=advance_id)
            finalized.append(row.staff_id)

        if finalized:
            batch.commit()
        if skipped:
            logger.warning("Payroll %s: skipped already finalized staff %s", period, ", ".join(skipped))
        logger.info("Finalized payroll %s for %d staff", period, len(finalized))
        return FinalizeResult(period=period, finalized=finalized, skipped=skipped)

    def finalize_selected(
        self,
        current_role: Role,
        period: PayPeriod,
        staff_ids: Optional[Sequence[str]] = None,
        *,
        finalized_by: Optional[str] = None,
        as_of: Optional[date] = None,
    ) -> FinalizeResult:
        """Recompute rows for the selection and finalize them.

        An empty selection is refused; it never means "everyone".
        """

        self._require_manager(current_role)
        requested = [str(s) for s in staff_ids or [] if str(s).strip()]
        if not requested:
            raise ValidationError("Select at least one staff member to finalize")
        already = self._payroll.finalized_staff_ids(period)

        rows = self.generate(current_role, period, requested, as_of=as_of)
        result = self.finalize(current_role, rows, period, finalized_by)
        pre_skipped = [s for s in requested if s in already and s not in result.skipped]
        if not pre_skipped:
            return result
        return FinalizeResult(period=period, finalized=result.finalized, skipped=pre_skipped + result.skipped)

    def register_lines(self, current_role: Role, period: PayPeriod, *, as_of: Optional[date] = None) -> list[dict]:
        """Finalized payslips plus draft rows for everyone not finalized yet."""

        self._require_manager(current_role)
        lines = [
            _register_line(
                p.staff_id,
                p.breakdown,
                {"totalEarnings": p.total_earnings, "totalDeductions": p.total_deductions, "netPay": p.net_pay},
                "finalized",
            )
            for p in self._payroll.list_payslips(period)
        ]
        today = as_of or today_local()
        if period.first_day <= today:
            for row in self.generate(current_role, period, as_of=today):
                lines.append(_register_line(row.staff_id, row.to_dict(), row.to_dict(), "draft"))
        lines.sort(key=lambda line: line["staffId"])
        return lines

    def export_register(
        self,
        current_role: Role,
        period: PayPeriod,
        fmt: str = "csv",
        *,
        as_of: Optional[date] = None,
    ) -> RegisterFile:
        fmt = (fmt or "csv").strip().lower()
        if fmt not in ("csv", "xlsx"):
            raise ValidationError("Export format must be csv or xlsx")

        lines = self.register_lines(current_role, period, as_of=as_of)
        filename = f"payroll_{period.year}_{period.month:02d}.{fmt}"

        if fmt == "csv":
            out = io.StringIO()
            writer = csv.DictWriter(out, fieldnames=REGISTER_COLUMNS)
            writer.writeheader()
            for line in lines:
                writer.writerow(line)
            return RegisterFile(out.getvalue().encode("utf-8-sig"), "text/csv", filename)

        df = pd.DataFrame(lines, columns=REGISTER_COLUMNS)
        out = io.BytesIO()
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=str(period))
        return RegisterFile(out.getvalue(), XLSX_MIMETYPE, filename)
