"""
Region and building catalog loader
Author: BrandjuhNL
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import jsonschema

from ..models import BuildingCatalogEntry, CANONICAL_ORDER, DEFAULT_REGION_INFO, Region, RegionInfo

log = logging.getLogger("red.cityprogress.content_loader")


class ContentLoader:
    """Reads region and building packs from the data directory."""

    def __init__(self, data_dir: Path, schema_dir: Path):
        self.data_dir = data_dir
        self.schema_dir = schema_dir

        self.regions: Dict[Region, RegionInfo] = dict(DEFAULT_REGION_INFO)
        self.catalog: Dict[Region, List[BuildingCatalogEntry]] = {region: [] for region in CANONICAL_ORDER}

    async def load_all(self):
        """(Re)load every pack. Broken packs are logged and skipped."""
        self.regions = self._read_regions()
        self.catalog = self._read_catalog()

        empty = [region.display_name for region, entries in self.catalog.items() if not entries]
        if empty:
            log.warning(f"Regions without any catalogued buildings: {', '.join(empty)}")

        log.info(f"Loaded content: {len(self.regions)} regions, {self.total_buildings} buildings")

    @property
    def total_buildings(self) -> int:
        return sum(len(entries) for entries in self.catalog.values())

    def _read_regions(self) -> Dict[Region, RegionInfo]:
        regions = dict(DEFAULT_REGION_INFO)
        for pack_file, data in self._iter_packs("regions*.json", "region.schema.json"):
            for entry in data["regions"]:
                info = RegionInfo(**entry)
                if info.region is None:
                    log.error(f"Unknown region id '{info.id}' in {pack_file.name}")
                    continue
                regions[info.region] = info
            log.info(f"Loaded {pack_file.name}: {len(data['regions'])} regions")
        return regions

    def _read_catalog(self) -> Dict[Region, List[BuildingCatalogEntry]]:
        catalog: Dict[Region, List[BuildingCatalogEntry]] = {region: [] for region in CANONICAL_ORDER}
        for pack_file, data in self._iter_packs("buildings_*.json", "building_catalog.schema.json"):
            region = Region.parse(data["region"])
            if region is None:
                log.error(f"Unknown region '{data['region']}' in {pack_file.name}")
                continue

            # Rank continues across packs for the same region
            entries = catalog[region]
            for building in data["buildings"]:
                entries.append(
                    BuildingCatalogEntry(
                        name=building["name"],
                        region=region,
                        excitement_rank=len(entries),
                        description=building.get("description", ""),
                    )
                )
            log.info(f"Loaded {pack_file.name}: {len(data['buildings'])} {region.display_name} buildings")
        return catalog

    def _iter_packs(self, pattern: str, schema_name: str) -> Iterator[Tuple[Path, dict]]:
        """Yield (file, data) for every pack matching ``pattern`` that parses and validates."""
        schema = self._load_schema(schema_name)
        if schema is None:
            log.error(f"Skipping {pattern} packs: no schema to validate them against")
            return

        for pack_file in sorted(self.data_dir.glob(pattern)):
            try:
                with open(pack_file, "r") as f:
                    data = json.load(f)
                jsonschema.validate(instance=data, schema=schema)
            except jsonschema.ValidationError as val_err:
                log.error(
                    f"Validation failed for {pack_file.name}: {val_err.message} at {list(val_err.absolute_path)}"
                )
                continue
            except (OSError, ValueError) as exc:
                log.error(f"Error loading {pack_file.name}: {exc}")
                continue

            yield pack_file, data

    def _load_schema(self, filename: str) -> Optional[dict]:
        try:
            with open(self.schema_dir / filename, "r") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            log.error(f"Failed to load schema {filename}: {exc}")
            return None

    def get_region_info(self, region: Region) -> RegionInfo:
        return self.regions.get(region, DEFAULT_REGION_INFO[region])

    def get_buildings(self, region: Region) -> List[BuildingCatalogEntry]:
        """Catalog entries of a region, least exciting first."""
        return list(self.catalog.get(region, []))

    def find_building(self, name: str) -> Optional[BuildingCatalogEntry]:
        """Look up a catalog entry by name (case-insensitive)."""
        wanted = name.strip().lower()
        for entries in self.catalog.values():
            for entry in entries:
                if entry.name.lower() == wanted:
                    return entry
        return None
