from __future__ import annotations

from ...core.enums import PayType
from .base import PayrollCalculator
from .hourly_calculator import HourlyCalculator
from .salaried_calculator import SalariedCalculator

_CALCULATORS: dict[PayType, PayrollCalculator] = {
    PayType.SALARY: SalariedCalculator(),
    PayType.HOURLY: HourlyCalculator(),
}


def calculator_for(pay_type: PayType) -> PayrollCalculator:
    return _CALCULATORS[PayType.normalize(pay_type.value if isinstance(pay_type, PayType) else pay_type)]
