"""Owner-bound base view for CityProgress menus."""

import logging
import discord

from .helpers import build_error_embed

log = logging.getLogger("red.cityprogress.ui")


class OwnerView(discord.ui.View):
    """A view only its owner may press. Greys itself out when it expires."""

    def __init__(self, owner_id: int, *, timeout: float | None = 300):
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.message: discord.Message | None = None

    def attach_message(self, message: discord.Message) -> "OwnerView":
        """Remember the message carrying this view so it can be edited on timeout."""
        self.message = message
        return self

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id == self.owner_id:
            return True

        await interaction.response.send_message(
            embed=build_error_embed("Not Your City", "This menu belongs to someone else!"),
            ephemeral=True
        )
        return False

    async def on_timeout(self) -> None:
        if self.message is None:
            return

        for item in self.children:
            item.disabled = True
        try:
            await self.message.edit(view=self)
        except discord.HTTPException as exc:
            log.debug(f"Could not disable expired view: {exc}")
