from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from fakes import (
    InMemoryAttendance,
    InMemoryLeave,
    InMemoryPayroll,
    InMemorySchedules,
    InMemoryStaff,
    make_schedule,
    make_staff,
)
from hr_portal.core.enums import AdvanceStatus, PayType, Role
from hr_portal.core.exceptions import NotFoundError, ValidationError
from hr_portal.payroll.advances import AdvanceService
from hr_portal.payroll.model import CompanyConfig, SalaryAdvance

AS_OF = date(2025, 11, 10)


@pytest.fixture()
def payroll():
    return InMemoryPayroll()


@pytest.fixture()
def service(payroll):
    return AdvanceService(
        staff=InMemoryStaff([make_staff("S1", base_salary="30000"), make_staff("H1", pay_type=PayType.HOURLY)]),
        attendance=InMemoryAttendance(),
        schedules=InMemorySchedules([make_schedule("S1", f"2025-11-0{d}") for d in (3, 4, 5)]),
        leaves=InMemoryLeave(),
        payroll=payroll,
        config=CompanyConfig(),
    )


def test_eligibility_subtracts_absences_and_open_advances(service, payroll):
    payroll.advances["adv-1"] = SalaryAdvance("adv-1", "S1", Decimal("2000"), 2025, 11, AdvanceStatus.PENDING)
    payroll.advances["adv-2"] = SalaryAdvance("adv-2", "S1", Decimal("900"), 2025, 10, AdvanceStatus.APPROVED)
    payroll.advances["adv-3"] = SalaryAdvance("adv-3", "S1", Decimal("900"), 2025, 11, AdvanceStatus.DEDUCTED)

    result = service.eligibility(current_role=Role.STAFF, staff_id="S1", as_of=AS_OF)

    assert result.unpaid_absences == 3
    assert result.absence_deductions == Decimal("3000.00")
    assert result.current_salary_due == Decimal("27000.00")
    assert result.max_theoretical_advance == Decimal("13500.00")
    assert result.advances_already_taken == Decimal("2000.00")
    assert result.max_advance == Decimal("11500.00")
    assert result.to_dict()["maxAdvance"] == "11500.00"


def test_request_within_limit_creates_pending_advance(service, payroll):
    advance_id = service.request_advance(current_role=Role.MANAGER, staff_id="S1", amount="11500", as_of=AS_OF)

    advance = payroll.advances[advance_id]
    assert advance.status == AdvanceStatus.PENDING
    assert (advance.pay_period_year, advance.pay_period_month) == (2025, 11)
    assert service.eligibility(current_role=Role.MANAGER, staff_id="S1", as_of=AS_OF).max_advance == Decimal("2000.00")


@pytest.mark.parametrize("amount", ["13500.01", "0", "-5", "abc"])
def test_request_outside_limit_is_rejected(service, payroll, amount):
    with pytest.raises(ValidationError):
        service.request_advance(current_role=Role.MANAGER, staff_id="S1", amount=amount, as_of=AS_OF)
    assert payroll.advances == {}


def test_hourly_and_unknown_staff(service):
    with pytest.raises(ValidationError):
        service.eligibility(current_role=Role.MANAGER, staff_id="H1", as_of=AS_OF)
    with pytest.raises(NotFoundError):
        service.eligibility(current_role=Role.MANAGER, staff_id="nobody", as_of=AS_OF)
