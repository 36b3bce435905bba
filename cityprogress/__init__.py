"""
CityProgress - A city-building progression cog for Red-DiscordBot
Author: BrandjuhNL
"""

__red_end_user_data_statement__ = "This cog stores each user's city progression (level, EXP and region unlocks)."


async def setup(bot):
    """Load the CityProgress cog."""
    from .cityprogress import CityProgress

    cog = CityProgress(bot)
    await bot.add_cog(cog)
    await cog.initialize()
