"""Utility commands"""

import logging

import discord
from discord import app_commands
from discord.ext import commands

logger = logging.getLogger(__name__)


class Utility(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="ping", description="檢查 Bot 是否在線")
    async def ping(self, interaction: discord.Interaction):
        latency = round(self.bot.latency * 1000)
        try:
            await interaction.response.send_message(f"Pong! 延遲: {latency}ms", ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Ping response failed: {e}")


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Utility(bot))
