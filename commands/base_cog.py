"""
Base Cog Class

Provides common functionality and error reporting for all command cogs.
"""

import logging

import discord
from discord.ext import commands
from discord import app_commands

logger = logging.getLogger(__name__)


class BaseCog(commands.Cog):
    """Base cog class with common functionality for all command cogs."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def send_error_embed(self, interaction: discord.Interaction, title: str, description: str,
                               color: discord.Color = discord.Color.red(), ephemeral: bool = True):
        """Send a standardized error embed."""
        embed = discord.Embed(
            title=title,
            description=description,
            color=color
        )

        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=ephemeral)

    async def cog_load(self):
        """Called when the cog is loaded."""
        self.logger.info(f"{self.__class__.__name__} cog loaded")

    async def cog_unload(self):
        """Called when the cog is unloaded."""
        self.logger.info(f"{self.__class__.__name__} cog unloaded")

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Handle application command errors raised before the command body runs."""
        self.logger.error(f"App command error in {interaction.command}: {error}")

        if isinstance(error, app_commands.MissingPermissions):
            await self.send_error_embed(
                interaction,
                "❌ Missing Permissions",
                "You don't have the required permissions to use this command."
            )
        elif isinstance(error, app_commands.NoPrivateMessage):
            await self.send_error_embed(
                interaction,
                "❌ Server Only",
                "This command can only be used in a server."
            )
        else:
            await self.send_error_embed(
                interaction,
                "❌ Command Error",
                "An error occurred while executing the command."
            )
