from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from ..common.money import ZERO, money
from .model import BonusRules


@dataclass(frozen=True)
class BonusOutcome:
    amount: Decimal
    new_streak: int


class BonusStreakEvaluator(Protocol):
    def evaluate(self, *, absences: int, lates: int, current_streak: int) -> BonusOutcome:
        raise NotImplementedError


class AttendanceBonusEvaluator(BonusStreakEvaluator):
    """Consecutive clean months raise the bonus tier; any bad month resets it."""

    def __init__(self, rules: BonusRules):
        self._rules = rules

    def _amount_for(self, streak: int) -> Decimal:
        if streak >= 3:
            return money(self._rules.month3)
        if streak == 2:
            return money(self._rules.month2)
        return money(self._rules.month1)

    def evaluate(self, *, absences: int, lates: int, current_streak: int) -> BonusOutcome:
        clean = absences <= self._rules.allowed_absences and lates <= self._rules.allowed_lates
        if not clean:
            return BonusOutcome(amount=ZERO, new_streak=0)

        streak = max(int(current_streak or 0), 0) + 1
        return BonusOutcome(amount=self._amount_for(streak), new_streak=streak)
