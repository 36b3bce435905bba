"""
UI layer for CityProgress
"""

from .progress import ProgressView, build_buildings_embed
from .helpers import build_error_embed, build_success_embed, build_info_embed, describe_events

__all__ = [
    "ProgressView",
    "build_buildings_embed",
    "build_error_embed",
    "build_success_embed",
    "build_info_embed",
    "describe_events",
]
