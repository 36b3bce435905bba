"""
Experience curve
Author: BrandjuhNL
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExperienceCurve:
    """Exponential EXP cost per level: base_cost * multiplier ^ (level - 1)."""

    base_cost: int = 100
    multiplier: float = 1.5

    def required_exp(self, level: int) -> int:
        """EXP needed to advance out of ``level``. Level must be at least 1."""
        return round(self.base_cost * self.multiplier ** (level - 1))

    def total_exp_for_level(self, level: int) -> int:
        """Cumulative EXP needed to reach ``level`` from level 1."""
        return sum(self.required_exp(step) for step in range(1, level))
