"""
Ticket Commands Cog

Registers the persistent ticket views and provides the ``/panel`` command
used to post the ticket panel and other informational embeds.
"""

from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from commands.base_cog import BaseCog
from commands.ticket_views import TicketPanelView, persistent_views
from errors import handle_errors
from logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PANEL_COLOR = 0x2B2D31

PANEL_DEFAULTS = {
    'rules': ("Server Rules", "1) Be respectful\n2) No spam or advertising\n3) Follow Discord ToS"),
    'info': ("Information", "Welcome to the server! Use the channels on the left to navigate."),
}


def parse_color(value: Optional[str]) -> int:
    """Parse a hex color like ``#2b2d31``; invalid input falls back to the default."""
    if not value:
        return DEFAULT_PANEL_COLOR
    try:
        return int(value.strip().lstrip('#'), 16)
    except ValueError:
        return DEFAULT_PANEL_COLOR


def build_panel_embed(panel_type: str, title: Optional[str] = None, description: Optional[str] = None,
                      color: Optional[str] = None) -> discord.Embed:
    embed = discord.Embed(color=parse_color(color), timestamp=discord.utils.utcnow())

    if panel_type == 'ticket':
        embed.title = "Create a Ticket"
        embed.description = "Need help? Click the button below to open a private ticket with the staff team."
        return embed

    default_title, default_description = PANEL_DEFAULTS.get(panel_type, (None, None))
    if title or default_title:
        embed.title = title or default_title
    if description or default_description:
        embed.description = description or default_description
    return embed


class TicketCommands(BaseCog):
    """Cog containing the ticket panel command."""

    async def cog_load(self):
        """Register persistent views so controls survive restarts."""
        await super().cog_load()
        for view in persistent_views():
            self.bot.add_view(view)

    @app_commands.command(name="panel", description="Post a panel embed in a channel")
    @app_commands.describe(
        type="Type of panel to post",
        title="Title for the embed (not used for ticket)",
        description="Description for the embed (not used for ticket)",
        color="Hex color like #2b2d31",
        channel="Target channel to post in"
    )
    @app_commands.choices(type=[
        app_commands.Choice(name="ticket", value="ticket"),
        app_commands.Choice(name="rules", value="rules"),
        app_commands.Choice(name="info", value="info"),
        app_commands.Choice(name="custom", value="custom")
    ])
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    @handle_errors
    async def panel(self, interaction: discord.Interaction, type: str, title: Optional[str] = None,
                    description: Optional[str] = None, color: Optional[str] = None,
                    channel: Optional[discord.TextChannel] = None):
        target = channel or interaction.channel
        await interaction.response.defer(ephemeral=True)

        embed = build_panel_embed(type, title, description, color)
        if type == 'ticket':
            await target.send(embed=embed, view=TicketPanelView())
            await interaction.followup.send(f"Ticket panel posted in {target.mention}", ephemeral=True)
        else:
            await target.send(embed=embed)
            await interaction.followup.send(f"Panel posted in {target.mention}", ephemeral=True)

        self.logger.info(f"{type} panel posted in {target.id} by {interaction.user.id}")


async def setup(bot: commands.Bot):
    """Setup function for loading the cog."""
    await bot.add_cog(TicketCommands(bot))
