"""
Progression tunables
Author: BrandjuhNL
"""

from dataclasses import asdict, dataclass

from .region import DEFAULT_BUILDINGS_REQUIRED


@dataclass(frozen=True)
class ProgressionSettings:
    """Numbers that shape the progression curve."""

    base_exp_cost: int = 100  # EXP needed to leave level 1
    exp_multiplier: float = 1.5  # Growth factor per level
    max_unlock_level: int = 40  # Last level that unlocks a building
    buildings_required: int = DEFAULT_BUILDINGS_REQUIRED  # Fallback region threshold

    @classmethod
    def from_config(cls, data: dict) -> "ProgressionSettings":
        """Build settings from a Red config dump, ignoring unknown keys."""
        defaults = cls()
        return cls(
            base_exp_cost=int(data.get("base_exp_cost", defaults.base_exp_cost)),
            exp_multiplier=float(data.get("exp_multiplier", defaults.exp_multiplier)),
            max_unlock_level=int(data.get("max_unlock_level", defaults.max_unlock_level)),
            buildings_required=int(data.get("buildings_required", defaults.buildings_required)),
        )

    def to_dict(self) -> dict:
        return asdict(self)
