"""
Progress view - level, regions and building unlocks
Author: BrandjuhNL
"""

import discord

from .base import OwnerView
from .helpers import (
    build_info_embed,
    build_success_embed,
    format_progress_bar,
    format_region_list,
    region_color,
    truncate_text,
)
from ..models import Region
from ..services import ProgressionEngine


class ProgressView(OwnerView):
    """Main city progress view."""

    def __init__(self, cog, engine: ProgressionEngine, user: discord.abc.User):
        super().__init__(user.id, timeout=300)
        self.cog = cog
        self.engine = engine
        self.user = user

        unlocked = engine.get_unlocked_regions()
        if unlocked:
            self.add_item(PlaceBuildingSelect(unlocked))
        self.add_item(BuildingsButton())
        self.add_item(RefreshButton())

    def build_embed(self) -> discord.Embed:
        """Build the progress embed."""
        engine = self.engine
        starting = engine.starting_region
        info = self.cog.content_loader.get_region_info(starting)

        embed = build_info_embed(
            f"🏙️ {self.user.display_name}'s City",
            f"Founded in **{info.get_display_name()}**"
        )
        embed.color = region_color(info.color)

        embed.add_field(
            name=f"Level {engine.level}",
            value=(
                f"{format_progress_bar(engine.get_level_progress())}\n"
                f"{engine.exp}/{engine.exp_to_next_level} EXP"
            ),
            inline=False
        )

        region_lines = []
        for region in engine.unlock_order:
            state = engine.get_region_state(region)
            icon = "🔓" if state.is_unlocked else "🔒"
            region_lines.append(
                f"{icon} **{region.display_name}** - "
                f"{state.building_count}/{state.buildings_required} buildings "
                f"{format_progress_bar(state.get_progress(), width=6)}"
            )
        embed.add_field(name="Regions (unlock order)", value="\n".join(region_lines), inline=False)

        next_region = engine.next_region_to_unlock()
        embed.add_field(
            name="Next Region",
            value=next_region.display_name if next_region else "All regions open 🎉",
            inline=True
        )
        embed.add_field(
            name="Buildings",
            value=f"{len(engine.unlocked_buildings_at_current_level())}/{engine.total_buildings} unlocked",
            inline=True
        )

        upcoming = engine.get_upcoming_buildings(limit=3)
        if upcoming:
            embed.add_field(
                name="Coming Up",
                value="\n".join(f"Lv {level}: {name}" for name, level in upcoming),
                inline=False
            )

        embed.set_footer(text="Pick a region below to record a placed building")
        return embed

    async def refresh(self, interaction: discord.Interaction, notes=None):
        """Reload the player's engine and redraw this message."""
        self.stop()
        engine = await self.cog.load_engine(self.user.id)
        view = ProgressView(self.cog, engine, self.user)
        await interaction.response.edit_message(embed=view.build_embed(), view=view)
        view.attach_message(interaction.message)

        if notes:
            await interaction.followup.send(
                embed=build_success_embed("City Updated", truncate_text("\n".join(notes), 4000)),
                ephemeral=True
            )


class PlaceBuildingSelect(discord.ui.Select):
    """Record a building placed in one of the unlocked regions."""

    def __init__(self, regions):
        options = [
            discord.SelectOption(
                label=region.display_name,
                value=region.value,
                emoji="🏗️"
            )
            for region in regions
        ]
        super().__init__(
            placeholder="Placed a building in...",
            options=options,
            custom_id="cp:progress:place:"
        )

    async def callback(self, interaction: discord.Interaction):
        region = Region.parse(self.values[0])
        notes = await self.view.cog.place_building(self.view.user.id, region)
        await self.view.refresh(interaction, notes)


class BuildingsButton(discord.ui.Button):
    """Show unlocked and upcoming buildings."""

    def __init__(self):
        super().__init__(
            style=discord.ButtonStyle.primary,
            label="Buildings",
            custom_id="cp:progress:buildings:",
            emoji="🏗️"
        )

    async def callback(self, interaction: discord.Interaction):
        embed = build_buildings_embed(self.view.engine)
        await interaction.response.send_message(embed=embed, ephemeral=True)


class RefreshButton(discord.ui.Button):
    """Redraw the progress view."""

    def __init__(self):
        super().__init__(
            style=discord.ButtonStyle.secondary,
            label="Refresh",
            custom_id="cp:progress:refresh:",
            emoji="🔄"
        )

    async def callback(self, interaction: discord.Interaction):
        await self.view.refresh(interaction)


def build_buildings_embed(engine: ProgressionEngine) -> discord.Embed:
    """Embed listing buildings per region with their unlock levels."""
    embed = build_info_embed(
        "🏗️ Buildings",
        f"Level {engine.level} - unlocked regions: {format_region_list(engine.get_unlocked_regions())}"
    )

    for region in engine.unlock_order:
        lines = []
        for name in engine.get_buildings_for_region(region):
            level = engine.building_unlock_level(name)
            icon = "✅" if engine.is_building_unlocked(name) else "🔒"
            lines.append(f"{icon} Lv {level} {name}")
        embed.add_field(
            name=region.display_name,
            value=truncate_text("\n".join(lines) or "No buildings catalogued"),
            inline=True
        )

    return embed
