"""
Building catalog model
Author: BrandjuhNL
"""

from dataclasses import dataclass

from .region import Region


@dataclass(frozen=True)
class BuildingCatalogEntry:
    """A building as listed in its region's catalog."""

    name: str
    region: Region
    excitement_rank: int  # Position in the region catalog, least exciting first
    description: str = ""
