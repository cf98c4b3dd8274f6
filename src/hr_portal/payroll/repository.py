from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AdvanceStatus
from .model import Loan, MonthlyAdjustment, PayPeriod, Payslip, SalaryAdvance


class PayrollRepository(Protocol):
    def finalized_staff_ids(self, period: PayPeriod) -> set[str]:
        raise NotImplementedError

    def get_payslip(self, payslip_id: str) -> Optional[Payslip]:
        raise NotImplementedError

    def list_payslips(self, period: PayPeriod) -> Sequence[Payslip]:
        raise NotImplementedError

    def list_active_loans(self) -> Sequence[Loan]:
        raise NotImplementedError

    def list_advances(self, period: PayPeriod, *, statuses: Iterable[AdvanceStatus]) -> Sequence[SalaryAdvance]:
        raise NotImplementedError

    def list_adjustments(self, period: PayPeriod) -> Sequence[MonthlyAdjustment]:
        raise NotImplementedError

    def create_advance(self, *, staff_id: str, amount: Decimal, period: PayPeriod) -> str:
        """Insert a pending advance request; the store stamps created_at. Returns advance_id."""

        raise NotImplementedError

    def stage_payslip(self, batch, payslip: Payslip) -> None:
        """Write-once insert; the store stamps generated_at."""

        raise NotImplementedError

    def stage_loan_repayment(self, batch, *, loan_id: str, amount: Decimal) -> None:
        raise NotImplementedError

    def stage_advance_deducted(self, batch, *, advance_id: str) -> None:
        raise NotImplementedError
