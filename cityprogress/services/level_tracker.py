"""
Level tracker - owns level and EXP
Author: BrandjuhNL
"""

import logging
from typing import List

from .experience import ExperienceCurve

log = logging.getLogger("red.cityprogress.levels")


class LevelTracker:
    """Applies EXP grants and resolves the level-up cascade."""

    def __init__(self, curve: ExperienceCurve, level: int = 1, exp: int = 0):
        self.curve = curve
        self._level = level
        self._exp = exp

    @property
    def level(self) -> int:
        return self._level

    @property
    def exp(self) -> int:
        return self._exp

    @property
    def exp_to_next_level(self) -> int:
        """EXP cost of the next level-up."""
        return self.curve.required_exp(self._level)

    def get_level_progress(self) -> float:
        """Fraction (0-1) of the current level's cost already earned."""
        needed = self.exp_to_next_level
        if needed <= 0:
            return 1.0
        return max(0.0, min(1.0, self._exp / needed))

    def add_exp(self, amount: int) -> List[int]:
        """
        Add EXP and level up as many times as the total allows.

        Returns every level reached, in order. Negative grants are rejected
        and leave the tracker untouched.
        """
        if amount < 0:
            log.warning(f"Rejected negative EXP grant of {amount}")
            return []

        self._exp += amount
        reached: List[int] = []

        cost = self.curve.required_exp(self._level)
        while cost > 0 and self._exp >= cost:
            self._exp -= cost
            self._level += 1
            reached.append(self._level)
            cost = self.curve.required_exp(self._level)

        if cost <= 0:
            log.error(f"EXP curve yields non-positive cost {cost} at level {self._level}")

        if reached:
            log.debug(f"Levelled up {len(reached)} time(s) to {self._level} ({self._exp} EXP left)")
        return reached

    def restore(self, level: int, exp: int):
        """Overwrite level and EXP from a save."""
        self._level = level
        self._exp = exp
