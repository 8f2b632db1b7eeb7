"""
Tests for the admin and media log cogs.
"""

from unittest.mock import AsyncMock, MagicMock, Mock

import discord
import pytest

from commands.admin_commands import PURGE_FAILED_MESSAGE, AdminCommands
from commands.media_log import MediaLog
from config.config_manager import BotConfig

from conftest import http_error, make_member

WELCOME_ROLE_ID = 650


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.config_manager.config = BotConfig(welcome_role_id=WELCOME_ROLE_ID, staff_role_id=500)
    bot.media_cache.on_message = AsyncMock()
    bot.media_cache.on_message_deleted = AsyncMock(return_value=0)
    bot.media_cache.sweep = AsyncMock()
    return bot


def make_interaction():
    interaction = Mock(spec=discord.Interaction)
    interaction.user.id = 222
    interaction.guild.id = 1000
    interaction.channel_id = 2000
    interaction.response.is_done.return_value = False
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    interaction.channel.purge = AsyncMock(return_value=[object()] * 3)
    return interaction


class TestAdminCommands:

    @pytest.mark.asyncio
    async def test_purge(self, bot):
        cog = AdminCommands(bot)
        interaction = make_interaction()

        await cog.purge.callback(cog, interaction, 5)

        interaction.channel.purge.assert_awaited_once_with(limit=5, bulk=True)
        interaction.followup.send.assert_awaited_once_with("Deleted 3 messages.", ephemeral=True)

    @pytest.mark.asyncio
    async def test_purge_failure(self, bot):
        cog = AdminCommands(bot)
        interaction = make_interaction()
        interaction.channel.purge = AsyncMock(side_effect=http_error(discord.HTTPException, 400, 50034))

        await cog.purge.callback(cog, interaction, 5)

        interaction.followup.send.assert_awaited_once_with(PURGE_FAILED_MESSAGE, ephemeral=True)

    @pytest.mark.asyncio
    async def test_config_view(self, bot):
        cog = AdminCommands(bot)
        interaction = make_interaction()

        await cog.config.callback(cog, interaction)

        embed = interaction.response.send_message.call_args.kwargs['embed']
        values = {field.name: field.value for field in embed.fields}
        assert values['staff_role_id'] == "500"
        assert values['log_channel_id'] == "Not set"
        assert values['Closed tickets'] == "Deleted after 3s"

    @pytest.mark.asyncio
    async def test_welcome_role(self, bot):
        cog = AdminCommands(bot)
        member = make_member(555, "newcomer")
        role = MagicMock(spec=discord.Role)
        member.guild.get_role.return_value = role

        await cog.on_member_join(member)

        member.guild.get_role.assert_called_once_with(WELCOME_ROLE_ID)
        member.add_roles.assert_awaited_once_with(role, reason="Welcome role")

    @pytest.mark.asyncio
    async def test_welcome_role_skips_bots(self, bot):
        member = make_member(999, "helper-bot", bot=True)

        await AdminCommands(bot).on_member_join(member)

        member.add_roles.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_welcome_role_failure_is_logged(self, bot):
        member = make_member(555, "newcomer")
        member.guild.get_role.return_value = MagicMock(spec=discord.Role)
        member.add_roles = AsyncMock(side_effect=http_error(discord.Forbidden, 403, 50013))

        await AdminCommands(bot).on_member_join(member)

    @pytest.mark.asyncio
    async def test_welcome_role_not_configured(self, bot):
        bot.config_manager.config = BotConfig()
        member = make_member(555, "newcomer")

        await AdminCommands(bot).on_member_join(member)

        member.add_roles.assert_not_awaited()


class TestMediaLog:

    @pytest.mark.asyncio
    async def test_messages_with_attachments_are_cached(self, bot):
        cog = MediaLog(bot)
        message = MagicMock()
        message.author = make_member(111, "poster")
        message.attachments = [MagicMock()]

        await cog.on_message(message)

        bot.media_cache.on_message.assert_awaited_once_with(message)

    @pytest.mark.asyncio
    async def test_plain_messages_skipped(self, bot):
        cog = MediaLog(bot)
        message = MagicMock()
        message.author = make_member(111, "poster")
        message.attachments = []

        await cog.on_message(message)

        bot.media_cache.on_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_raw_delete_with_cached_message(self, bot):
        cog = MediaLog(bot)
        author = make_member(111, "poster")
        payload = MagicMock(spec=discord.RawMessageDeleteEvent)
        payload.message_id = 42
        payload.channel_id = 2000
        payload.cached_message = MagicMock(author=author, content="hello")

        await cog.on_raw_message_delete(payload)

        bot.media_cache.on_message_deleted.assert_awaited_once_with(42, 2000, author=author, content="hello")

    @pytest.mark.asyncio
    async def test_raw_delete_without_cached_message(self, bot):
        cog = MediaLog(bot)
        payload = MagicMock(spec=discord.RawMessageDeleteEvent)
        payload.message_id = 42
        payload.channel_id = 2000
        payload.cached_message = None

        await cog.on_raw_message_delete(payload)

        bot.media_cache.on_message_deleted.assert_awaited_once_with(42, 2000, author=None, content=None)

    @pytest.mark.asyncio
    async def test_sweep_task_runs_sweep(self, bot):
        cog = MediaLog(bot)

        await cog.sweep_media()

        bot.media_cache.sweep.assert_awaited_once()
