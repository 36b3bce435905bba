from typing import Dict, List

import pytest

from cityprogress.models import BuildingCatalogEntry, CANONICAL_ORDER, Region
from cityprogress.services import (
    BuildingCountChanged,
    BuildingUnlocked,
    ExpChanged,
    LevelUp,
    ProgressionEngine,
    RegionUnlocked,
)

ALL_EVENTS = (ExpChanged, LevelUp, BuildingUnlocked, RegionUnlocked, BuildingCountChanged)


def make_catalog(per_region: int = 20, sizes: Dict[Region, int] = None) -> Dict[Region, List[BuildingCatalogEntry]]:
    """Catalog with buildings named '<region>_<rank>'."""
    sizes = sizes or {}
    return {
        region: [
            BuildingCatalogEntry(name=f"{region.value}_{rank}", region=region, excitement_rank=rank)
            for rank in range(sizes.get(region, per_region))
        ]
        for region in CANONICAL_ORDER
    }


def record_events(engine: ProgressionEngine) -> list:
    events = []
    for event_type in ALL_EVENTS:
        engine.events.subscribe(event_type, events.append)
    return events


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def engine(catalog):
    engine = ProgressionEngine(catalog)
    engine.new_game(starting_region=Region.HEALTH_HARBOR)
    return engine


@pytest.fixture
def recorded(engine):
    return record_events(engine)
