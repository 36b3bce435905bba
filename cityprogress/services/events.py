"""
Progression events and the bus that delivers them
Author: BrandjuhNL

The engine publishes plain dataclass events; UI and notification code
subscribes by event class::

    bus = EventBus()
    unsubscribe = bus.subscribe(LevelUp, on_level_up)
    ...
    unsubscribe()

or, scoped to a block::

    with bus.subscribed(RegionUnlocked, notes.append):
        engine.add_building_to_region(Region.MIND_PALACE)

Delivery is synchronous and in publish order.
"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Type

from ..models import Region

log = logging.getLogger("red.cityprogress.events")


@dataclass(frozen=True)
class LevelUp:
    """The player reached a new level."""
    level: int


@dataclass(frozen=True)
class ExpChanged:
    """The player's EXP total changed."""
    exp: int


@dataclass(frozen=True)
class BuildingUnlocked:
    """A building became available at the given level."""
    name: str
    level: int


@dataclass(frozen=True)
class RegionUnlocked:
    """A region opened. ``trigger`` is "buildings" or "level"."""
    region: Region
    trigger: str = "buildings"


@dataclass(frozen=True)
class BuildingCountChanged:
    """A region's placed-building counter changed."""
    region: Region
    count: int


class EventBus:
    """Synchronous observer list keyed by event class."""

    def __init__(self):
        self._subs: Dict[Type, List[Callable[[Any], None]]] = defaultdict(list)
        self._stats: Dict[str, int] = defaultdict(int)

    def subscribe(self, event_type: Type, handler: Callable[[Any], None]) -> Callable[[], None]:
        """Register *handler* for *event_type*. Returns a callable that unsubscribes it."""
        self._subs[event_type].append(handler)

        def _unsubscribe():
            self.unsubscribe(event_type, handler)

        return _unsubscribe

    def unsubscribe(self, event_type: Type, handler: Callable[[Any], None]) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        handlers = self._subs.get(event_type, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    @contextmanager
    def subscribed(self, event_type: Type, handler: Callable[[Any], None]) -> Iterator[None]:
        """Keep *handler* subscribed for the duration of a ``with`` block."""
        unsubscribe = self.subscribe(event_type, handler)
        try:
            yield
        finally:
            unsubscribe()

    def publish(self, event) -> int:
        """Deliver *event* to its subscribers. Returns the number of handlers called."""
        self._stats[type(event).__name__] += 1
        delivered = 0
        # Copy so handlers may unsubscribe themselves mid-delivery
        for handler in list(self._subs.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                log.exception(f"Handler error for {type(event).__name__}")
            delivered += 1
        return delivered

    def publish_all(self, events) -> int:
        """Publish a batch in order."""
        return sum(self.publish(event) for event in events)

    def handler_count(self, event_type: Type) -> int:
        return len(self._subs.get(event_type, []))

    def stats(self) -> Dict[str, int]:
        """Return cumulative event counts by type."""
        return dict(self._stats)

    def __repr__(self) -> str:
        return f"EventBus(subs={sum(len(h) for h in self._subs.values())})"
