"""
Unlock sequencer - region order and building unlock levels
Author: BrandjuhNL
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..models import BuildingCatalogEntry, BuildingLevel, CANONICAL_ORDER, Region, is_permutation

log = logging.getLogger("red.cityprogress.sequencer")

MAX_UNLOCK_LEVEL = 40


@dataclass(frozen=True)
class UnlockPlan:
    """Result of sequencing: the region order and the building unlock table."""

    unlock_order: Tuple[Region, ...]
    building_levels: Dict[str, int] = field(default_factory=dict)  # insertion order = flat index
    region_buildings: Dict[Region, Tuple[str, ...]] = field(default_factory=dict)

    def level_for(self, building_name: str) -> int:
        """Required level for a building, or -1 when it is not catalogued."""
        return self.building_levels.get(building_name, -1)

    def buildings_unlocking_at(self, level: int) -> List[str]:
        """Buildings whose required level is exactly ``level``."""
        return [name for name, required in self.building_levels.items() if required == level]

    def buildings_for_region(self, region: Region) -> Tuple[str, ...]:
        return self.region_buildings.get(region, ())

    def first_building(self, region: Region) -> Optional[str]:
        """The least exciting building of a region, or None for an empty catalog."""
        buildings = self.buildings_for_region(region)
        return buildings[0] if buildings else None

    @property
    def total_buildings(self) -> int:
        return len(self.building_levels)

    def table_rows(self) -> List[BuildingLevel]:
        """The unlock table as save rows, region by region in unlock order."""
        return [
            BuildingLevel(name=name, region=region, level=self.level_for(name))
            for region in self.unlock_order
            for name in self.buildings_for_region(region)
        ]


class UnlockSequencer:
    """Derives the per-player unlock order and building unlock levels."""

    def __init__(
        self,
        catalog: Mapping[Region, Sequence[BuildingCatalogEntry]],
        max_unlock_level: int = MAX_UNLOCK_LEVEL,
    ):
        self.catalog = catalog
        self.max_unlock_level = max_unlock_level

    @staticmethod
    def order_from_quiz_scores(quiz_scores: Mapping[Region, int]) -> Tuple[Region, ...]:
        """
        Sort regions by quiz score, highest first.

        Ties keep canonical order. Regions absent from the scores go last,
        also in canonical order.
        """
        def sort_key(region: Region):
            if region in quiz_scores:
                return (0, -quiz_scores[region])
            return (1, 0)

        return tuple(sorted(CANONICAL_ORDER, key=sort_key))

    @staticmethod
    def default_order(starting_region: Region) -> Tuple[Region, ...]:
        """Starting region first, then the rest in canonical order."""
        return (starting_region,) + tuple(
            region for region in CANONICAL_ORDER if region != starting_region
        )

    def build_unlock_order(
        self,
        starting_region: Region,
        quiz_scores: Optional[Mapping[Region, int]] = None,
    ) -> Tuple[Region, ...]:
        if quiz_scores:
            return self.order_from_quiz_scores(quiz_scores)
        return self.default_order(starting_region)

    def flatten_catalog(self, unlock_order: Sequence[Region]) -> List[BuildingCatalogEntry]:
        """Concatenate every region catalog following the unlock order."""
        flat: List[BuildingCatalogEntry] = []
        for region in unlock_order:
            entries = self.catalog.get(region) or []
            if not entries:
                log.warning(f"No buildings catalogued for {region.display_name}; it contributes none")
                continue
            flat.extend(sorted(entries, key=lambda entry: entry.excitement_rank))
        return flat

    def assign_unlock_levels(self, entries: Sequence[BuildingCatalogEntry]) -> Dict[str, int]:
        """Spread buildings over levels 1..max_unlock_level by flat position."""
        total = len(entries)
        levels: Dict[str, int] = {}

        for index, entry in enumerate(entries):
            # More buildings land on early levels, fewer later
            level = round(1 + (index * self.max_unlock_level) / total)
            level = max(1, min(self.max_unlock_level, level))

            if entry.name in levels:
                log.warning(
                    f"Building '{entry.name}' is catalogued twice; keeping level {levels[entry.name]}"
                )
                continue

            levels[entry.name] = level
            log.debug(f"Building '{entry.name}' unlocks at level {level}")

        return levels

    def plan_for_order(self, unlock_order: Sequence[Region]) -> UnlockPlan:
        """Build the unlock table for an already decided order (new game or save load)."""
        if not is_permutation(unlock_order):
            raise ValueError(f"Unlock order must name every region once, got {list(unlock_order)}")

        flat = self.flatten_catalog(unlock_order)
        region_buildings = {
            region: tuple(
                entry.name
                for entry in sorted(self.catalog.get(region) or [], key=lambda entry: entry.excitement_rank)
            )
            for region in unlock_order
        }
        plan = UnlockPlan(
            unlock_order=tuple(unlock_order),
            building_levels=self.assign_unlock_levels(flat),
            region_buildings=region_buildings,
        )
        log.info(
            f"Sequenced {plan.total_buildings} buildings over order "
            f"{' -> '.join(region.display_name for region in plan.unlock_order)}"
        )
        return plan

    def plan_from_table(self, unlock_order: Sequence[Region], rows: Sequence[BuildingLevel]) -> UnlockPlan:
        """Rebuild a plan exactly as saved, ignoring the current catalog and level cap."""
        if not is_permutation(unlock_order):
            raise ValueError(f"Unlock order must name every region once, got {list(unlock_order)}")

        building_levels: Dict[str, int] = {}
        region_buildings: Dict[Region, List[str]] = {region: [] for region in unlock_order}
        for row in rows:
            building_levels.setdefault(row.name, row.level)
            region_buildings[row.region].append(row.name)

        return UnlockPlan(
            unlock_order=tuple(unlock_order),
            building_levels=building_levels,
            region_buildings={region: tuple(names) for region, names in region_buildings.items()},
        )

    def sequence(
        self,
        starting_region: Region,
        quiz_scores: Optional[Mapping[Region, int]] = None,
    ) -> UnlockPlan:
        """Compute the full plan for a new game."""
        return self.plan_for_order(self.build_unlock_order(starting_region, quiz_scores))
