"""
Region gate - building counters and count-based region unlocks
Author: BrandjuhNL
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..models import (
    CANONICAL_ORDER,
    DEFAULT_BUILDINGS_REQUIRED,
    Region,
    RegionSnapshot,
    RegionState,
)

log = logging.getLogger("red.cityprogress.region_gate")


class RegionGate:
    """Tracks placements per region and opens regions in unlock order."""

    def __init__(
        self,
        unlock_order: Sequence[Region],
        starting_region: Region,
        thresholds: Optional[Mapping[Region, int]] = None,
        default_threshold: int = DEFAULT_BUILDINGS_REQUIRED,
    ):
        self.unlock_order: Tuple[Region, ...] = tuple(unlock_order)
        self.starting_region = starting_region
        self.current_unlock_index = 0

        thresholds = thresholds or {}
        self._states: Dict[Region, RegionState] = {
            region: RegionState(
                region=region,
                buildings_required=thresholds.get(region, default_threshold),
            )
            for region in CANONICAL_ORDER
        }
        self._states[starting_region].is_unlocked = True

    def get_state(self, region: Region) -> RegionState:
        return self._states[region]

    def is_unlocked(self, region: Region) -> bool:
        """Check if a region is unlocked."""
        return self._states[region].is_unlocked

    def get_building_count(self, region: Region) -> int:
        return self._states[region].building_count

    def get_buildings_required(self, region: Region) -> int:
        return self._states[region].buildings_required

    def get_unlock_progress(self, region: Region) -> float:
        """Progress (0-1) of a region towards opening the next one."""
        return self._states[region].get_progress()

    def get_unlocked_regions(self) -> List[Region]:
        return [region for region in CANONICAL_ORDER if self._states[region].is_unlocked]

    def get_locked_regions(self) -> List[Region]:
        return [region for region in CANONICAL_ORDER if not self._states[region].is_unlocked]

    def all_unlocked(self) -> bool:
        return all(state.is_unlocked for state in self._states.values())

    def next_region_to_unlock(self) -> Optional[Region]:
        """First still-locked region in unlock order, or None when all are open."""
        for region in self.unlock_order:
            if not self._states[region].is_unlocked:
                return region
        return None

    def add_building(self, region: Region) -> Tuple[int, Optional[Region]]:
        """
        Count a placed building.

        Returns (new_count, region_unlocked). Reaching the threshold opens the
        next locked region in the order, which is not necessarily ``region``.
        """
        state = self._states[region]
        state.building_count += 1

        unlocked = None
        if state.building_count >= state.buildings_required:
            unlocked = self._unlock_next_region()

        log.debug(
            f"Added building to {region.display_name}. "
            f"Count: {state.building_count}/{state.buildings_required}"
        )
        return state.building_count, unlocked

    def remove_building(self, region: Region) -> int:
        """Count a removed building. Never relocks anything."""
        state = self._states[region]
        state.building_count = max(0, state.building_count - 1)
        log.debug(
            f"Removed building from {region.display_name}. "
            f"Count: {state.building_count}/{state.buildings_required}"
        )
        return state.building_count

    def force_unlock(self, region: Region) -> bool:
        """Open a region regardless of counters. Returns True if it was locked."""
        state = self._states[region]
        if state.is_unlocked:
            return False
        state.is_unlocked = True
        return True

    def _unlock_next_region(self) -> Optional[Region]:
        next_region = self.next_region_to_unlock()
        if next_region is None:
            return None

        self._states[next_region].is_unlocked = True
        self.current_unlock_index = self.unlock_order.index(next_region) + 1
        log.info(f"Unlocked new region: {next_region.display_name}")
        return next_region

    def reset(self):
        """Relock everything except the starting region and clear counters."""
        for state in self._states.values():
            state.is_unlocked = state.region == self.starting_region
            state.building_count = 0
        self.current_unlock_index = 0

    def snapshot(self) -> Dict[Region, RegionSnapshot]:
        return {
            region: RegionSnapshot(
                is_unlocked=state.is_unlocked,
                building_count=state.building_count,
            )
            for region, state in self._states.items()
        }

    def restore(self, snapshots: Mapping[Region, RegionSnapshot], current_unlock_index: int):
        """Overwrite flags, counters and cursor from a save."""
        for region, snapshot in snapshots.items():
            state = self._states[region]
            state.is_unlocked = snapshot.is_unlocked
            state.building_count = snapshot.building_count
        self.current_unlock_index = current_unlock_index
