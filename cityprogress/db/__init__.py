"""
Database layer for CityProgress
"""

from .repository import Repository, save_key
from .migrations import MigrationManager

__all__ = ["Repository", "MigrationManager", "save_key"]
