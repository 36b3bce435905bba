"""
CityProgress - A city-building progression cog for Red-DiscordBot
Author: BrandjuhNL
"""

import asyncio
import discord
import logging
from contextlib import ExitStack
from dataclasses import fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from redbot.core import commands, Config
from redbot.core.bot import Red

from .db import Repository, MigrationManager
from .models import CANONICAL_ORDER, ProgressionSettings, Region
from .services import (
    BuildingCountChanged,
    BuildingUnlocked,
    ContentLoader,
    LevelUp,
    ProgressionEngine,
    RegionUnlocked,
)
from .ui import (
    ProgressView,
    build_buildings_embed,
    build_error_embed,
    build_info_embed,
    build_success_embed,
    describe_events,
)

log = logging.getLogger("red.cityprogress")

NOTIFIED_EVENTS = (LevelUp, BuildingUnlocked, RegionUnlocked, BuildingCountChanged)


class CityProgress(commands.Cog):
    """Grow your city: earn EXP, unlock buildings and open new regions."""

    def __init__(self, bot: Red):
        self.bot = bot
        self.config = Config.get_conf(self, identifier=2468013579, force_registration=True)
        self.config.register_global(**ProgressionSettings().to_dict())

        # Paths
        self.data_path = Path(__file__).parent / "data"
        self.schema_path = Path(__file__).parent / "schemas"
        self.db_path = Path(__file__).parent / "cityprogress.db"

        # Components (initialized in initialize())
        self.repository: Repository = None
        self.migration_manager: MigrationManager = None
        self.content_loader: ContentLoader = None
        self.settings = ProgressionSettings()

        self._user_locks: Dict[int, asyncio.Lock] = {}

    async def initialize(self):
        """Initialize the cog after loading."""
        log.info("Initializing CityProgress cog...")

        self.migration_manager = MigrationManager(self.db_path)
        await self.migration_manager.initialize()

        self.repository = Repository(self.db_path)

        self.content_loader = ContentLoader(self.data_path, self.schema_path)
        await self.content_loader.load_all()

        self.settings = ProgressionSettings.from_config(await self.config.all())

        log.info("CityProgress cog initialized successfully")

    async def red_delete_data_for_user(self, *, requester, user_id: int):
        """Remove a user's saved city."""
        if self.repository:
            await self.repository.delete_save_state(user_id)

    # -- Engine access (also used by other cogs) -----------------------------

    def _get_user_lock(self, user_id: int) -> asyncio.Lock:
        if user_id not in self._user_locks:
            self._user_locks[user_id] = asyncio.Lock()
        return self._user_locks[user_id]

    def build_engine(self) -> ProgressionEngine:
        """Fresh, unstarted engine using the loaded catalog and current settings."""
        return ProgressionEngine(
            self.content_loader.catalog,
            settings=self.settings,
            region_info=self.content_loader.regions,
        )

    async def load_engine(self, user_id: int) -> ProgressionEngine:
        """Engine restored from the user's save, or unstarted if there is none."""
        engine = self.build_engine()
        state = await self.repository.load_save_state(user_id)
        if state is not None:
            engine.import_state(state)
        return engine

    async def _run(
        self,
        user_id: int,
        action: Callable[[ProgressionEngine], object],
    ) -> Tuple[ProgressionEngine, object, List[str]]:
        """Load, mutate and save one user's progression; returns (engine, result, notes)."""
        async with self._get_user_lock(user_id):
            engine = await self.load_engine(user_id)
            events: list = []

            with ExitStack() as stack:
                for event_type in NOTIFIED_EVENTS:
                    stack.enter_context(engine.events.subscribed(event_type, events.append))
                result = action(engine)

            if engine.started:
                await self.repository.store_save_state(user_id, engine.export_state())

        return engine, result, describe_events(events)

    async def award_exp(self, user_id: int, amount: int) -> List[str]:
        """Grant EXP to a player. Returns notification lines for what unlocked."""
        _, _, notes = await self._run(user_id, lambda engine: engine.add_exp(amount))
        return notes

    async def place_building(self, user_id: int, region: Region) -> List[str]:
        """Record a building placed in a region."""
        _, _, notes = await self._run(user_id, lambda engine: engine.add_building_to_region(region))
        return notes

    async def remove_building(self, user_id: int, region: Region) -> List[str]:
        """Record a building removed from a region."""
        _, _, notes = await self._run(user_id, lambda engine: engine.remove_building_from_region(region))
        return notes

    # -- Player commands -----------------------------------------------------

    async def _parse_region(self, ctx: commands.Context, value: str) -> Optional[Region]:
        region = Region.parse(value)
        if region is None:
            choices = ", ".join(f"`{r.value}`" for r in CANONICAL_ORDER)
            await ctx.send(embed=build_error_embed("Unknown Region", f"Choose one of: {choices}"))
        return region

    @commands.group(name="city", invoke_without_command=True)
    async def city(self, ctx: commands.Context):
        """Open your city progress view."""
        engine = await self.load_engine(ctx.author.id)
        if not engine.started:
            await ctx.send(
                embed=build_error_embed(
                    "No City Yet",
                    f"Start with `{ctx.clean_prefix}city start <region>` or "
                    f"`{ctx.clean_prefix}city quiz <health> <mind> <creative> <social>`."
                )
            )
            return

        view = ProgressView(self, engine, ctx.author)
        message = await ctx.send(embed=view.build_embed(), view=view)
        view.attach_message(message)

    @city.command(name="start")
    async def city_start(self, ctx: commands.Context, region: str):
        """Found your city in a starting region."""
        starting = await self._parse_region(ctx, region)
        if starting is None:
            return

        engine, started, _ = await self._run(
            ctx.author.id, lambda engine: engine.new_game(starting_region=starting)
        )
        await self._report_start(ctx, engine, started)

    @city.command(name="quiz")
    async def city_quiz(
        self,
        ctx: commands.Context,
        health: int,
        mind: int,
        creative: int,
        social: int,
    ):
        """Found your city using onboarding quiz scores (highest region first)."""
        scores = {
            Region.HEALTH_HARBOR: health,
            Region.MIND_PALACE: mind,
            Region.CREATIVE_COMMONS: creative,
            Region.SOCIAL_SQUARE: social,
        }
        engine, started, _ = await self._run(
            ctx.author.id, lambda engine: engine.new_game(quiz_scores=scores)
        )
        await self._report_start(ctx, engine, started)

    async def _report_start(self, ctx: commands.Context, engine: ProgressionEngine, started):
        if not started:
            await ctx.send(
                embed=build_error_embed(
                    "City Already Founded",
                    "You already have a city. An admin can reset it if you want to start over."
                )
            )
            return

        order = " → ".join(region.display_name for region in engine.unlock_order)
        await ctx.send(
            embed=build_success_embed(
                "City Founded",
                f"Welcome to **{engine.starting_region.display_name}**!\nRegion order: {order}"
            )
        )

    @city.command(name="place")
    async def city_place(self, ctx: commands.Context, region: str):
        """Record a building placed in a region."""
        target = await self._parse_region(ctx, region)
        if target is None:
            return
        notes = await self.place_building(ctx.author.id, target)
        await self._send_notes(ctx, notes)

    @city.command(name="remove")
    async def city_remove(self, ctx: commands.Context, region: str):
        """Record a building removed from a region."""
        target = await self._parse_region(ctx, region)
        if target is None:
            return
        notes = await self.remove_building(ctx.author.id, target)
        await self._send_notes(ctx, notes)

    @city.command(name="buildings")
    async def city_buildings(self, ctx: commands.Context):
        """List every building and the level it unlocks at."""
        engine = await self.load_engine(ctx.author.id)
        if not engine.started:
            await ctx.send(embed=build_error_embed("No City Yet", "Found a city first."))
            return
        await ctx.send(embed=build_buildings_embed(engine))

    @city.command(name="building")
    async def city_building(self, ctx: commands.Context, *, name: str):
        """Look up when a building unlocks for you."""
        entry = self.content_loader.find_building(name)
        if entry is None:
            await ctx.send(embed=build_error_embed("Unknown Building", f"No building called `{name}`."))
            return

        engine = await self.load_engine(ctx.author.id)
        if not engine.started:
            await ctx.send(embed=build_error_embed("No City Yet", "Found a city first."))
            return

        level = engine.building_unlock_level(entry.name)
        status = "✅ Unlocked" if engine.is_building_unlocked(entry.name) else f"🔒 Unlocks at level {level}"
        embed = build_info_embed(entry.name, entry.description or entry.region.display_name)
        embed.add_field(name="Region", value=entry.region.display_name, inline=True)
        embed.add_field(name="Status", value=status, inline=True)
        await ctx.send(embed=embed)

    async def _send_notes(self, ctx: commands.Context, notes: List[str]):
        if not notes:
            await ctx.send(embed=build_error_embed("Nothing Changed", "Do you have a city yet?"))
            return
        await ctx.send(embed=build_success_embed("City Updated", "\n".join(notes)[:4000]))

    # -- Admin commands ------------------------------------------------------

    @commands.group(name="cityadmin")
    @commands.is_owner()
    async def cityadmin(self, ctx: commands.Context):
        """CityProgress admin commands."""
        pass

    @cityadmin.command(name="addexp")
    async def admin_add_exp(self, ctx: commands.Context, user: discord.User, amount: int):
        """Grant EXP to a user."""
        if amount < 0:
            await ctx.send("❌ EXP grants cannot be negative.")
            return
        notes = await self.award_exp(user.id, amount)
        engine = await self.load_engine(user.id)
        summary = f"✅ Granted {amount:,} EXP to {user.display_name} (level {engine.level}, {engine.exp} EXP)"
        if notes:
            summary += "\n" + "\n".join(notes[:10])
        await ctx.send(summary)

    @cityadmin.command(name="reset")
    async def admin_reset(self, ctx: commands.Context, user: discord.User = None):
        """Delete a user's city (or your own) so they can found a new one."""
        target = user or ctx.author
        async with self._get_user_lock(target.id):
            await self.repository.delete_save_state(target.id)
        await ctx.send(f"✅ Reset city for {target.display_name}")

    @cityadmin.command(name="resetregions")
    async def admin_reset_regions(self, ctx: commands.Context, user: discord.User):
        """Relock a user's regions, keeping their level and region order."""
        _, done, _ = await self._run(user.id, lambda engine: engine.reset_region_unlocks())
        if done:
            await ctx.send(f"✅ Relocked regions for {user.display_name}")
        else:
            await ctx.send(f"❌ {user.display_name} has no city.")

    @cityadmin.command(name="reloadpacks")
    async def reload_packs(self, ctx: commands.Context):
        """Reload region and building packs."""
        async with ctx.typing():
            await self.content_loader.load_all()
        await ctx.send(
            f"✅ Reloaded content packs:\n"
            f"• {len(self.content_loader.regions)} regions\n"
            f"• {self.content_loader.total_buildings} buildings"
        )

    @cityadmin.command(name="settings")
    async def show_settings(self, ctx: commands.Context):
        """Show progression settings."""
        lines = [f"• {key}: {value}" for key, value in self.settings.to_dict().items()]
        await ctx.send("⚙️ Progression settings:\n" + "\n".join(lines))

    @cityadmin.command(name="set")
    async def set_setting(self, ctx: commands.Context, key: str, value: str):
        """Change a progression setting."""
        key = key.lower()
        known = [f.name for f in fields(ProgressionSettings)]
        if key not in known:
            await ctx.send(f"❌ Unknown setting. Use one of: {', '.join(known)}.")
            return

        try:
            parsed = float(value) if key == "exp_multiplier" else int(value)
        except ValueError:
            await ctx.send("❌ Invalid value for the selected setting.")
            return

        if key == "exp_multiplier" and parsed <= 1.0:
            await ctx.send("❌ The EXP multiplier must be greater than 1.")
            return
        if key != "exp_multiplier" and parsed < 1:
            await ctx.send("❌ The value must be at least 1.")
            return

        old_value = getattr(self.settings, key)
        await getattr(self.config, key).set(parsed)
        self.settings = ProgressionSettings.from_config(await self.config.all())
        await ctx.send(f"✅ {key}: {old_value} → {parsed}")
