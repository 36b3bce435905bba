"""
Services layer for CityProgress
"""

from .content_loader import ContentLoader
from .events import (
    EventBus,
    LevelUp,
    ExpChanged,
    BuildingUnlocked,
    RegionUnlocked,
    BuildingCountChanged,
)
from .experience import ExperienceCurve
from .level_tracker import LevelTracker
from .unlock_sequencer import UnlockSequencer, UnlockPlan
from .region_gate import RegionGate
from .progression_engine import ProgressionEngine

__all__ = [
    "ContentLoader",
    "EventBus",
    "LevelUp",
    "ExpChanged",
    "BuildingUnlocked",
    "RegionUnlocked",
    "BuildingCountChanged",
    "ExperienceCurve",
    "LevelTracker",
    "UnlockSequencer",
    "UnlockPlan",
    "RegionGate",
    "ProgressionEngine",
]
