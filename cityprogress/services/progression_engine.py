"""
Progression engine - wires levels, building unlocks and region unlocks together
Author: BrandjuhNL
"""

import logging
from collections import deque
from dataclasses import replace
from typing import Callable, Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..models import (
    BuildingCatalogEntry,
    CANONICAL_ORDER,
    DEFAULT_REGION_INFO,
    ProgressionSettings,
    Region,
    RegionInfo,
    RegionState,
    SaveState,
    SaveStateError,
)
from .events import (
    BuildingCountChanged,
    BuildingUnlocked,
    EventBus,
    ExpChanged,
    LevelUp,
    RegionUnlocked,
)
from .experience import ExperienceCurve
from .level_tracker import LevelTracker
from .region_gate import RegionGate
from .unlock_sequencer import UnlockPlan, UnlockSequencer

log = logging.getLogger("red.cityprogress.engine")


class ProgressionEngine:
    """
    Owns one player's progression state.

    Every mutation runs in two phases: state changes are computed and applied
    first, then the resulting events are published in order. Mutating calls
    made by event handlers while a publication is in progress are queued and
    run once it finishes.
    """

    def __init__(
        self,
        catalog: Mapping[Region, Sequence[BuildingCatalogEntry]],
        settings: Optional[ProgressionSettings] = None,
        region_info: Optional[Mapping[Region, RegionInfo]] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.settings = settings or ProgressionSettings()
        self.events = event_bus or EventBus()
        self.region_info: Dict[Region, RegionInfo] = dict(DEFAULT_REGION_INFO)
        if region_info:
            self.region_info.update(region_info)

        self.curve = ExperienceCurve(self.settings.base_exp_cost, self.settings.exp_multiplier)
        self.sequencer = UnlockSequencer(catalog, self.settings.max_unlock_level)

        self._tracker = LevelTracker(self.curve)
        self._plan: Optional[UnlockPlan] = None
        self._gate: Optional[RegionGate] = None

        self._busy = False
        self._deferred: Deque[Tuple[Callable, tuple]] = deque()

    # -- Mutation plumbing ---------------------------------------------------

    def _mutate(self, operation: Callable, *args):
        """Run ``operation`` (which returns (result, events)) then publish its events."""
        if self._busy:
            log.debug(f"Deferring nested {operation.__name__} call until the current one finishes")
            self._deferred.append((operation, args))
            return None

        self._busy = True
        try:
            result, events = operation(*args)
            self.events.publish_all(events)
        except Exception:
            # Calls queued behind a failed operation are dropped with it
            self._deferred.clear()
            raise
        finally:
            self._busy = False

        while self._deferred:
            pending, pending_args = self._deferred.popleft()
            self._mutate(pending, *pending_args)

        return result

    def _require_started(self, action: str) -> bool:
        if self._plan is None:
            log.warning(f"Ignored {action}: no game has been started")
            return False
        return True

    def _build_gate(self, unlock_order: Sequence[Region], starting_region: Region) -> RegionGate:
        thresholds = {
            region: info.buildings_required
            for region, info in self.region_info.items()
        }
        return RegionGate(
            unlock_order,
            starting_region,
            thresholds=thresholds,
            default_threshold=self.settings.buildings_required,
        )

    # -- Game lifecycle ------------------------------------------------------

    @property
    def started(self) -> bool:
        return self._plan is not None

    def new_game(
        self,
        starting_region: Optional[Region] = None,
        quiz_scores: Optional[Mapping[Region, int]] = None,
    ) -> Optional[bool]:
        """
        Sequence a fresh game.

        The starting region defaults to the top quiz region, or the first
        canonical region without scores. Rejected if a game already exists;
        use ``reset`` to start over.
        """
        if self.started:
            log.warning("Ignored new_game: a game is already in progress")
            return False
        return self._mutate(self._apply_start, starting_region, quiz_scores)

    def reset(
        self,
        starting_region: Optional[Region] = None,
        quiz_scores: Optional[Mapping[Region, int]] = None,
    ) -> Optional[bool]:
        """Throw away all progress and sequence again."""
        return self._mutate(self._apply_start, starting_region, quiz_scores)

    def _apply_start(self, starting_region, quiz_scores):
        scores: Dict[Region, int] = {}
        for key, score in (quiz_scores or {}).items():
            region = Region.parse(key)
            if region is None:
                log.warning(f"Ignoring quiz score for unknown region {key!r}")
                continue
            scores[region] = score

        if starting_region is not None:
            parsed = Region.parse(starting_region)
            if parsed is None:
                log.warning(f"Ignored game start: unknown starting region {starting_region!r}")
                return False, []
            starting_region = parsed

        if starting_region is None:
            if scores:
                starting_region = self.sequencer.order_from_quiz_scores(scores)[0]
            else:
                starting_region = CANONICAL_ORDER[0]

        unlock_order = self.sequencer.build_unlock_order(starting_region, scores)
        plan = self.sequencer.plan_for_order(unlock_order)
        gate = self._build_gate(unlock_order, starting_region)

        self._plan = plan
        self._gate = gate
        self._tracker = LevelTracker(self.curve)

        log.info(f"New game started in {starting_region.display_name}")
        return True, []

    def reset_region_unlocks(self) -> Optional[bool]:
        """Relock every region but the starting one, keeping level and order."""
        return self._mutate(self._apply_region_reset)

    def _apply_region_reset(self):
        if not self._require_started("region reset"):
            return False, []
        self._gate.reset()
        log.info("Region unlocks reset")
        return True, []

    # -- EXP and levels ------------------------------------------------------

    def add_exp(self, amount: int) -> Optional[List[int]]:
        """
        Grant EXP. Returns the levels reached by this grant.

        Returns None when the call was deferred because it came from an
        event handler.
        """
        return self._mutate(self._apply_exp, amount)

    def _apply_exp(self, amount: int):
        if not self._require_started("EXP grant"):
            return [], []
        if isinstance(amount, bool) or not isinstance(amount, int):
            log.warning(f"Rejected EXP grant of non-integer amount {amount!r}")
            return [], []
        if amount < 0:
            log.warning(f"Rejected negative EXP grant of {amount}")
            return [], []
        if amount == 0:
            return [], []

        reached = self._tracker.add_exp(amount)
        events: list = [ExpChanged(self._tracker.exp)]

        for level in reached:
            events.append(LevelUp(level))
            events.extend(self._scan_unlocks(level))
            log.info(f"Player reached level {level}")

        return reached, events

    def _scan_unlocks(self, level: int) -> list:
        """Building and region unlocks granted by reaching ``level`` exactly."""
        events: list = []

        for name in self._plan.buildings_unlocking_at(level):
            events.append(BuildingUnlocked(name=name, level=level))
            log.debug(f"Building '{name}' unlocked at level {level}")

        for region in self._plan.unlock_order:
            first_building = self._plan.first_building(region)
            if (
                (not self._gate.is_unlocked(region))
                and (first_building is not None)
                and (self._plan.level_for(first_building) == level)
            ):
                self._gate.force_unlock(region)
                events.append(RegionUnlocked(region=region, trigger="level"))
                log.info(f"Region {region.display_name} unlocked at level {level}")

        return events

    # -- Building placement --------------------------------------------------

    def add_building_to_region(self, region: Union[Region, str]) -> Optional[int]:
        """Count a placed building. Returns the region's new count."""
        return self._mutate(self._apply_add_building, region)

    def _apply_add_building(self, region):
        parsed = Region.parse(region)
        if parsed is None:
            log.warning(f"Ignored building placement in unknown region {region!r}")
            return None, []
        if not self._require_started("building placement"):
            return None, []

        count, unlocked = self._gate.add_building(parsed)
        events: list = [BuildingCountChanged(region=parsed, count=count)]
        if unlocked is not None:
            events.append(RegionUnlocked(region=unlocked, trigger="buildings"))
        return count, events

    def remove_building_from_region(self, region: Union[Region, str]) -> Optional[int]:
        """Count a removed building. Returns the region's new count."""
        return self._mutate(self._apply_remove_building, region)

    def _apply_remove_building(self, region):
        parsed = Region.parse(region)
        if parsed is None:
            log.warning(f"Ignored building removal in unknown region {region!r}")
            return None, []
        if not self._require_started("building removal"):
            return None, []

        count = self._gate.remove_building(parsed)
        return count, [BuildingCountChanged(region=parsed, count=count)]

    # -- Queries -------------------------------------------------------------

    @property
    def level(self) -> int:
        return self._tracker.level

    @property
    def exp(self) -> int:
        return self._tracker.exp

    @property
    def exp_to_next_level(self) -> int:
        return self._tracker.exp_to_next_level

    def get_level_progress(self) -> float:
        return self._tracker.get_level_progress()

    @property
    def unlock_order(self) -> Tuple[Region, ...]:
        return self._plan.unlock_order if self._plan else ()

    @property
    def starting_region(self) -> Optional[Region]:
        return self._gate.starting_region if self._gate else None

    @property
    def total_buildings(self) -> int:
        return self._plan.total_buildings if self._plan else 0

    def building_unlock_level(self, name: str) -> int:
        """Level a building unlocks at, or -1 for an uncatalogued building."""
        if self._plan is None:
            return -1
        return self._plan.level_for(name)

    def is_building_unlocked(self, name: str) -> bool:
        required = self.building_unlock_level(name)
        return 0 < required <= self.level

    def unlocked_buildings_at_current_level(self) -> List[str]:
        """Every building available at the current level, in unlock order."""
        if self._plan is None:
            return []
        return [
            name for name, required in self._plan.building_levels.items()
            if required <= self.level
        ]

    def get_upcoming_buildings(self, limit: int = 5) -> List[Tuple[str, int]]:
        """The next ``limit`` buildings still above the current level."""
        if self._plan is None:
            return []
        upcoming = [
            (name, required) for name, required in self._plan.building_levels.items()
            if required > self.level
        ]
        return upcoming[:limit]

    def get_buildings_for_region(self, region: Union[Region, str]) -> Tuple[str, ...]:
        parsed = Region.parse(region)
        if parsed is None or self._plan is None:
            return ()
        return self._plan.buildings_for_region(parsed)

    def is_region_unlocked(self, region: Union[Region, str]) -> bool:
        parsed = Region.parse(region)
        if parsed is None or self._gate is None:
            return False
        return self._gate.is_unlocked(parsed)

    def get_region_state(self, region: Union[Region, str]) -> Optional[RegionState]:
        """A copy of a region's unlock state."""
        parsed = Region.parse(region)
        if parsed is None or self._gate is None:
            return None
        return replace(self._gate.get_state(parsed))

    def get_unlocked_regions(self) -> List[Region]:
        return self._gate.get_unlocked_regions() if self._gate else []

    def get_locked_regions(self) -> List[Region]:
        return self._gate.get_locked_regions() if self._gate else list(CANONICAL_ORDER)

    def next_region_to_unlock(self) -> Optional[Region]:
        return self._gate.next_region_to_unlock() if self._gate else None

    # -- Persistence ---------------------------------------------------------

    def export_state(self) -> Optional[SaveState]:
        """Snapshot everything needed to restore this player exactly."""
        if not self._require_started("export"):
            return None
        return SaveState(
            starting_region=self._gate.starting_region,
            unlock_order=list(self._plan.unlock_order),
            regions=self._gate.snapshot(),
            current_unlock_index=self._gate.current_unlock_index,
            level=self._tracker.level,
            exp=self._tracker.exp,
            unlock_table=self._plan.table_rows(),
        )

    def import_state(self, state: Union[SaveState, dict, str, bytes]) -> Optional[bool]:
        """
        Replace all progression state with a saved snapshot.

        The saved unlock order is authoritative; building levels are derived
        from it, never from quiz scores. Invalid saves are rejected as a whole
        and the current state is kept.
        """
        return self._mutate(self._apply_import, state)

    def _apply_import(self, state):
        try:
            if isinstance(state, SaveState):
                save = SaveState.from_dict(state.to_dict())
            elif isinstance(state, (str, bytes)):
                save = SaveState.from_json(state)
            else:
                save = SaveState.from_dict(state)
        except SaveStateError as exc:
            log.error(f"Rejected save state: {exc}")
            return False, []

        if save.unlock_table is None:
            log.info("Save has no unlock table; deriving building levels from the current catalog")
            plan = self.sequencer.plan_for_order(save.unlock_order)
        else:
            plan = self.sequencer.plan_from_table(save.unlock_order, save.unlock_table)
        gate = self._build_gate(save.unlock_order, save.starting_region)
        gate.restore(save.regions, save.current_unlock_index)
        tracker = LevelTracker(self.curve, level=save.level, exp=save.exp)

        self._plan = plan
        self._gate = gate
        self._tracker = tracker

        # EXP saved at or above the level cost levels up silently on load
        for level in tracker.add_exp(0):
            self._scan_unlocks(level)

        log.info(
            f"Loaded save: level {tracker.level}, "
            f"{len(save.get_unlocked_regions())} region(s) unlocked"
        )
        return True, []
