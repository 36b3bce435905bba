"""
UI helper functions
Author: BrandjuhNL
"""

import discord
from typing import Iterable, List

from ..models import Region
from ..services import (
    BuildingCountChanged,
    BuildingUnlocked,
    LevelUp,
    RegionUnlocked,
)


def _status_embed(title: str, description: str, color: discord.Color) -> discord.Embed:
    return discord.Embed(title=title, description=description, color=color)


def build_error_embed(title: str, description: str) -> discord.Embed:
    return _status_embed(f"❌ {title}", description, discord.Color.red())


def build_success_embed(title: str, description: str) -> discord.Embed:
    return _status_embed(f"✅ {title}", description, discord.Color.green())


def build_info_embed(title: str, description: str) -> discord.Embed:
    """Neutral embed used by the progress and building views."""
    return _status_embed(title, description, discord.Color.blue())


def region_color(hex_color: str) -> discord.Color:
    """Convert a '#rrggbb' pack color, falling back to blurple."""
    try:
        return discord.Color(int(hex_color.lstrip("#"), 16))
    except (AttributeError, ValueError):
        return discord.Color.blurple()


def format_progress_bar(fraction: float, width: int = 10) -> str:
    """Render a 0-1 fraction as a block bar."""
    fraction = max(0.0, min(1.0, fraction))
    filled = int(round(fraction * width))
    return "█" * filled + "░" * (width - filled)


def format_region_list(regions: Iterable[Region]) -> str:
    names = [region.display_name for region in regions]
    return ", ".join(names) if names else "None"


def describe_event(event) -> str:
    """One-line player-facing text for a progression event, or '' to hide it."""
    if isinstance(event, LevelUp):
        return f"⭐ Level up! You are now level {event.level}."
    if isinstance(event, BuildingUnlocked):
        return f"🏗️ New building unlocked: **{event.name}**"
    if isinstance(event, RegionUnlocked):
        reason = "by levelling up" if event.trigger == "level" else "by building up your city"
        return f"🗺️ **{event.region.display_name}** opened {reason}!"
    if isinstance(event, BuildingCountChanged):
        return f"🏠 {event.region.display_name} now has {event.count} building(s)."
    # ExpChanged and unknown events stay silent
    return ""


def describe_events(events: Iterable) -> List[str]:
    return [text for text in (describe_event(event) for event in events) if text]


def truncate_text(text: str, max_length: int = 1024) -> str:
    """Truncate text to max length."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."
