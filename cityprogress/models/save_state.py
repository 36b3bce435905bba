"""
Save state model
Author: BrandjuhNL
"""

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

import jsonschema

from .region import CANONICAL_ORDER, Region, is_permutation

SAVE_STATE_VERSION = 2
SCHEMA_PATH = Path(__file__).parent.parent / "schemas" / "save_state.schema.json"


class SaveStateError(ValueError):
    """Raised when a save blob is missing fields or contradicts itself."""


@lru_cache(maxsize=1)
def load_save_schema() -> dict:
    """Load the save state JSON schema."""
    with open(SCHEMA_PATH, "r") as f:
        return json.load(f)


@dataclass
class RegionSnapshot:
    """Saved unlock state of a single region."""

    is_unlocked: bool = False
    building_count: int = 0


@dataclass(frozen=True)
class BuildingLevel:
    """One row of the building unlock table captured in a save."""

    name: str
    region: Region
    level: int


@dataclass
class SaveState:
    """Serializable snapshot of a player's progression."""

    starting_region: Region
    unlock_order: List[Region]
    regions: Dict[Region, RegionSnapshot] = field(default_factory=dict)
    current_unlock_index: int = 0
    level: int = 1
    exp: int = 0
    # Flat unlock table in unlock order; None for version 1 saves
    unlock_table: Optional[List[BuildingLevel]] = None
    version: int = SAVE_STATE_VERSION

    def get_unlocked_regions(self) -> List[Region]:
        """Regions flagged unlocked, in canonical order."""
        return [
            region for region in CANONICAL_ORDER
            if region in self.regions and self.regions[region].is_unlocked
        ]

    def to_dict(self) -> dict:
        """Convert to plain JSON-compatible data."""
        data = {
            "version": self.version,
            "starting_region": self.starting_region.value,
            "unlock_order": [region.value for region in self.unlock_order],
            "regions": {
                region.value: {
                    "is_unlocked": snapshot.is_unlocked,
                    "building_count": snapshot.building_count,
                }
                for region, snapshot in self.regions.items()
            },
            "current_unlock_index": self.current_unlock_index,
            "level": self.level,
            "exp": self.exp,
        }
        if self.unlock_table is not None:
            data["unlock_table"] = [
                {"name": row.name, "region": row.region.value, "level": row.level}
                for row in self.unlock_table
            ]
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: dict) -> "SaveState":
        """
        Parse and validate a save blob.

        Raises SaveStateError when the blob fails schema validation or when
        its fields contradict each other.
        """
        if not isinstance(data, dict):
            raise SaveStateError(f"Save state must be an object, got {type(data).__name__}")

        try:
            jsonschema.validate(instance=data, schema=load_save_schema())
        except jsonschema.ValidationError as val_err:
            raise SaveStateError(
                f"{val_err.message} at {list(val_err.absolute_path)}"
            ) from val_err

        if data["version"] > SAVE_STATE_VERSION:
            raise SaveStateError(f"Unsupported save version {data['version']}")

        starting_region = Region(data["starting_region"])
        unlock_order = [Region(value) for value in data["unlock_order"]]
        regions = {
            Region(key): RegionSnapshot(
                is_unlocked=value["is_unlocked"],
                building_count=value["building_count"],
            )
            for key, value in data["regions"].items()
        }

        if not is_permutation(unlock_order):
            raise SaveStateError("Unlock order is not a permutation of all regions")
        if not regions[starting_region].is_unlocked:
            raise SaveStateError(f"Starting region {starting_region.value} is saved as locked")

        unlock_table = None
        if "unlock_table" in data:
            unlock_table = [
                BuildingLevel(name=row["name"], region=Region(row["region"]), level=row["level"])
                for row in data["unlock_table"]
            ]

        return cls(
            starting_region=starting_region,
            unlock_order=unlock_order,
            regions={region: regions[region] for region in CANONICAL_ORDER},
            current_unlock_index=data["current_unlock_index"],
            level=data["level"],
            exp=data["exp"],
            unlock_table=unlock_table,
            version=data["version"],
        )

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> "SaveState":
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise SaveStateError(f"Save blob is not valid JSON: {exc}") from exc
        return cls.from_dict(data)
