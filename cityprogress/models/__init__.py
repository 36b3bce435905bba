"""
Data models for CityProgress
"""

from .region import (
    Region,
    RegionInfo,
    RegionState,
    CANONICAL_ORDER,
    is_permutation,
    DEFAULT_BUILDINGS_REQUIRED,
    DEFAULT_REGION_INFO,
)
from .building import BuildingCatalogEntry
from .save_state import BuildingLevel, SaveState, RegionSnapshot, SaveStateError, SAVE_STATE_VERSION
from .settings import ProgressionSettings

__all__ = [
    "Region",
    "RegionInfo",
    "RegionState",
    "CANONICAL_ORDER",
    "is_permutation",
    "DEFAULT_BUILDINGS_REQUIRED",
    "DEFAULT_REGION_INFO",
    "BuildingCatalogEntry",
    "BuildingLevel",
    "SaveState",
    "RegionSnapshot",
    "SaveStateError",
    "SAVE_STATE_VERSION",
    "ProgressionSettings",
]
