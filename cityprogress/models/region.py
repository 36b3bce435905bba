"""
Region models
Author: BrandjuhNL
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_BUILDINGS_REQUIRED = 3


class Region(str, Enum):
    """The four city regions. Declaration order is the canonical order."""

    HEALTH_HARBOR = "health_harbor"
    MIND_PALACE = "mind_palace"
    CREATIVE_COMMONS = "creative_commons"
    SOCIAL_SQUARE = "social_square"

    @property
    def display_name(self) -> str:
        """Get formatted display name."""
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, value) -> Optional["Region"]:
        """Resolve a region from its value, member name or display name.

        Returns None for anything that is not a known region.
        """
        if isinstance(value, Region):
            return value
        if not isinstance(value, str):
            return None

        key = value.strip().lower().replace(" ", "_").replace("-", "_")
        for region in cls:
            if key == region.value:
                return region
        return None


CANONICAL_ORDER = tuple(Region)


@dataclass
class RegionInfo:
    """Static content describing a region."""

    id: str
    name: str
    description: str = ""
    buildings_required: int = DEFAULT_BUILDINGS_REQUIRED  # Placements needed to open the next region
    color: str = "#ffffff"

    @property
    def region(self) -> Optional[Region]:
        """The enum member this content entry describes."""
        return Region.parse(self.id)

    def get_display_name(self) -> str:
        """Get formatted display name."""
        return self.name


@dataclass
class RegionState:
    """Mutable unlock state for one region, owned by the region gate."""

    region: Region
    is_unlocked: bool = False
    building_count: int = 0
    buildings_required: int = DEFAULT_BUILDINGS_REQUIRED

    def get_progress(self) -> float:
        """Fraction (0-1) of the placements needed to open the next region."""
        if self.buildings_required <= 0:
            return 1.0
        return max(0.0, min(1.0, self.building_count / self.buildings_required))


DEFAULT_REGION_INFO = {
    Region.HEALTH_HARBOR: RegionInfo(
        id=Region.HEALTH_HARBOR.value,
        name="Health Harbor",
        description="Clinics, gyms and gardens for body care.",
        color="#7dd957",
    ),
    Region.MIND_PALACE: RegionInfo(
        id=Region.MIND_PALACE.value,
        name="Mind Palace",
        description="Libraries and quiet places for the mind.",
        color="#b39edb",
    ),
    Region.CREATIVE_COMMONS: RegionInfo(
        id=Region.CREATIVE_COMMONS.value,
        name="Creative Commons",
        description="Studios and stages for making things.",
        color="#ffe066",
    ),
    Region.SOCIAL_SQUARE: RegionInfo(
        id=Region.SOCIAL_SQUARE.value,
        name="Social Square",
        description="Cafes and plazas for meeting people.",
        color="#ffb347",
    ),
}


def is_permutation(order) -> bool:
    """True when ``order`` names every region exactly once."""
    order = list(order)
    return len(order) == len(CANONICAL_ORDER) and set(order) == set(CANONICAL_ORDER)
