"""
Admin Commands Cog

Implements moderation helpers: bulk message purge, a read-only view of the
active configuration, and the welcome role granted to new members.
"""

import discord
from discord import app_commands
from discord.ext import commands

from commands.base_cog import BaseCog
from config.config_manager import ID_FIELDS
from errors import handle_errors

PURGE_FAILED_MESSAGE = ("Failed to delete messages. Note: I cannot delete messages older than 14 days, "
                        "and I need Manage Messages permission.")


class AdminCommands(BaseCog):
    """Cog containing administrative commands."""

    @app_commands.command(name="purge", description="Delete a number of recent messages in this channel")
    @app_commands.describe(amount="Number of messages to delete (1-100)")
    @app_commands.default_permissions(manage_messages=True)
    @app_commands.guild_only()
    @handle_errors
    async def purge(self, interaction: discord.Interaction, amount: app_commands.Range[int, 1, 100]):
        await interaction.response.defer(ephemeral=True)

        try:
            # Messages older than 14 days cannot be bulk deleted and are skipped
            deleted = await interaction.channel.purge(limit=amount, bulk=True)
        except discord.HTTPException as e:
            self.logger.error(f"Purge failed in channel {interaction.channel_id}: {e}")
            await interaction.followup.send(PURGE_FAILED_MESSAGE, ephemeral=True)
            return

        self.logger.info(f"{interaction.user.id} purged {len(deleted)} messages in {interaction.channel_id}")
        await interaction.followup.send(f"Deleted {len(deleted)} messages.", ephemeral=True)

    @app_commands.command(name="config", description="View the bot configuration")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    @handle_errors
    async def config(self, interaction: discord.Interaction):
        config = self.bot.config_manager.config
        embed = discord.Embed(title="⚙️ Bot Configuration", color=discord.Color.blue())

        for name in ID_FIELDS:
            value = getattr(config, name)
            embed.add_field(name=name, value=str(value) if value else "Not set", inline=True)

        embed.add_field(name="ticket_cooldown_seconds", value=str(config.ticket_cooldown_seconds), inline=True)
        embed.add_field(name="media_retention_seconds", value=str(config.media_retention_seconds), inline=True)
        embed.add_field(
            name="Closed tickets",
            value="Archived" if config.archiving_enabled else f"Deleted after {config.delete_delay_seconds}s",
            inline=True
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member):
        """Grant the configured welcome role to new members."""
        role_id = self.bot.config_manager.config.welcome_role_id
        if not role_id or member.bot:
            return

        role = member.guild.get_role(role_id)
        if role is None:
            self.logger.warning(f"Welcome role {role_id} not found in guild {member.guild.id}")
            return

        try:
            await member.add_roles(role, reason="Welcome role")
            self.logger.info(f"Assigned welcome role to {member}")
        except discord.HTTPException as e:
            self.logger.error(f"Failed to assign welcome role to {member.id}: {e}")


async def setup(bot: commands.Bot):
    """Setup function for loading the cog."""
    await bot.add_cog(AdminCommands(bot))
