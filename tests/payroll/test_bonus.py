from __future__ import annotations

from decimal import Decimal

import pytest

from hr_portal.payroll.bonus import AttendanceBonusEvaluator
from hr_portal.payroll.model import BonusRules


@pytest.fixture()
def evaluator():
    return AttendanceBonusEvaluator(BonusRules(allowed_absences=0, allowed_lates=2))


@pytest.mark.parametrize(
    "current, amount, new_streak",
    [(0, "400", 1), (1, "500", 2), (2, "600", 3), (7, "600", 8)],
)
def test_clean_month_raises_the_tier(evaluator, current, amount, new_streak):
    outcome = evaluator.evaluate(absences=0, lates=2, current_streak=current)
    assert outcome.amount == Decimal(amount)
    assert outcome.new_streak == new_streak


def test_absence_resets_streak(evaluator):
    outcome = evaluator.evaluate(absences=1, lates=0, current_streak=5)
    assert outcome.amount == Decimal("0")
    assert outcome.new_streak == 0


def test_too_many_lates_resets_streak(evaluator):
    outcome = evaluator.evaluate(absences=0, lates=3, current_streak=2)
    assert outcome.new_streak == 0
