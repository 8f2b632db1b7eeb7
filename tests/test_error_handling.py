"""
Unit tests for error handling system.

Tests custom exception classes, error handlers, and the decorator that
answers every interaction exactly once.
"""

import logging
from unittest.mock import AsyncMock, Mock, patch

import discord
import pytest

from errors.exceptions import (
    TicketBotError, PermissionError, ConfigurationError, TicketNotFoundError,
    DuplicateTicketError, TicketCooldownError, TicketStateError, MemberNotFoundError,
    TicketCreationError, TicketOperationError, MediaDownloadError
)
from errors.handlers import (
    handle_errors, log_error, format_error_message, error_title, send_error_embed
)

from conftest import http_error


def make_interaction(done: bool = False):
    interaction = Mock(spec=discord.Interaction)
    interaction.user.id = 12345
    interaction.guild.id = 67890
    interaction.channel_id = 2000
    interaction.response.is_done.return_value = done
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def sent_embed(interaction) -> discord.Embed:
    return interaction.response.send_message.call_args.kwargs['embed']


class TestCustomExceptions:
    """Test custom exception classes."""

    def test_ticket_bot_error_base(self):
        error = TicketBotError("Technical", user_message="Friendly", error_code="X", details={'a': 1})

        assert str(error) == "Technical"
        assert error.user_message == "Friendly"
        assert error.error_code == "X"
        assert error.details == {'a': 1}

    def test_ticket_bot_error_defaults(self):
        error = TicketBotError("Technical")

        assert error.user_message == "Technical"
        assert error.error_code is None
        assert error.details == {}

    def test_permission_error(self):
        error = PermissionError("denied", required_permission="staff")

        assert error.user_message == "You don't have permission to perform this action."
        assert error.required_permission == "staff"
        assert error.error_code == "PERMISSION_ERROR"

    def test_duplicate_ticket_mentions_channel(self):
        assert DuplicateTicketError("dup", channel_id=2000).user_message == \
            "You already have an active ticket: <#2000>"
        assert DuplicateTicketError("dup").user_message == "You already have an active ticket."

    def test_cooldown_error(self):
        error = TicketCooldownError("cooldown", retry_after=42)

        assert error.retry_after == 42
        assert error.user_message == "Please wait 42 seconds before opening another ticket."

    def test_default_messages(self):
        assert TicketNotFoundError("x").user_message == "This is not a valid ticket channel."
        assert MemberNotFoundError("x").user_message == "Member not found."
        assert ConfigurationError("x").error_code == "CONFIG_ERROR"
        assert TicketCreationError("x").error_code == "TICKET_CREATE_ERROR"
        assert TicketOperationError("x").user_message == "The action failed. Check bot permissions."
        assert isinstance(MediaDownloadError("x"), TicketBotError)


class TestErrorHandlers:
    """Test error handler functions."""

    def test_expected_rejections_logged_at_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="errors.handlers"):
            log_error(TicketStateError("already claimed"), context="claim")

        assert caplog.records[-1].levelno == logging.INFO

    def test_bot_faults_logged_as_errors(self, caplog):
        with caplog.at_level(logging.INFO, logger="errors.handlers"):
            log_error(TicketCreationError("no channel"), context="create", user_id=1, guild_id=2)

        assert caplog.records[-1].levelno == logging.ERROR
        assert "TicketCreationError" in caplog.records[-1].getMessage()

    def test_unexpected_errors_include_traceback(self, caplog):
        with caplog.at_level(logging.ERROR, logger="errors.handlers"):
            log_error(ValueError("boom"))

        assert caplog.records[-1].exc_info is not None

    def test_format_error_message(self):
        error = TicketBotError("x", user_message="Friendly", details={'key': 'value'})

        assert format_error_message(error) == "Friendly"
        assert "key: value" in format_error_message(error, include_details=True)
        assert format_error_message(ValueError("x")) == "An unexpected error occurred. Please try again later."

    def test_error_titles(self):
        assert error_title(PermissionError("x")) == "❌ Permission Denied"
        assert error_title(TicketCooldownError("x")) == "⏱️ Slow Down"
        assert error_title(DuplicateTicketError("x")) == "❌ Ticket Already Exists"
        assert error_title(TicketNotFoundError("x")) == "❌ Not a Ticket Channel"
        assert error_title(TicketStateError("x")) == "❌ Error"
        assert error_title(RuntimeError("x")) == "❌ Unexpected Error"

    @pytest.mark.asyncio
    async def test_send_error_embed_response(self):
        interaction = make_interaction()

        await send_error_embed(interaction, "Title", "Description")

        interaction.response.send_message.assert_awaited_once()
        assert interaction.response.send_message.call_args.kwargs['ephemeral'] is True
        interaction.followup.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_error_embed_followup(self):
        interaction = make_interaction(done=True)

        await send_error_embed(interaction, "Title", "Description")

        interaction.followup.send.assert_awaited_once()
        interaction.response.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_error_embed_swallows_delivery_failure(self):
        interaction = make_interaction()
        interaction.response.send_message = AsyncMock(side_effect=http_error(discord.NotFound, 404, 10062))

        await send_error_embed(interaction, "Title", "Description")


class TestErrorDecorators:
    """Test the handle_errors decorator."""

    @pytest.mark.asyncio
    async def test_success_passes_through(self):
        interaction = make_interaction()

        @handle_errors
        async def callback(interaction):
            return "ok"

        assert await callback(interaction) == "ok"
        interaction.response.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ticket_bot_error(self):
        interaction = make_interaction()

        @handle_errors
        async def callback(interaction):
            raise TicketStateError("Test error", user_message="This ticket is already claimed.")

        await callback(interaction)

        embed = sent_embed(interaction)
        assert embed.title == "❌ Error"
        assert embed.description == "This ticket is already claimed."
        assert embed.color == discord.Color.red()

    @pytest.mark.asyncio
    async def test_permission_error_is_audited(self):
        interaction = make_interaction()

        @handle_errors
        async def claim(interaction):
            raise PermissionError("Access denied", required_permission="staff role or bot owner")

        with patch('logging_config.get_audit_logger') as get_audit_logger:
            await claim(interaction)

        embed = sent_embed(interaction)
        assert embed.title == "❌ Permission Denied"
        assert embed.color == discord.Color.orange()
        get_audit_logger.return_value.log_permission_denied.assert_called_once_with(
            command_name="claim",
            user_id=12345,
            guild_id=67890,
            channel_id=2000,
            required_permission="staff role or bot owner"
        )

    @pytest.mark.asyncio
    async def test_cooldown_error(self):
        interaction = make_interaction()

        @handle_errors
        async def callback(interaction):
            raise TicketCooldownError("cooldown", retry_after=120)

        await callback(interaction)

        embed = sent_embed(interaction)
        assert embed.title == "⏱️ Slow Down"
        assert "120 seconds" in embed.description
        assert embed.color == discord.Color.orange()

    @pytest.mark.asyncio
    async def test_deferred_interaction_uses_followup(self):
        interaction = make_interaction(done=True)

        @handle_errors
        async def callback(interaction):
            raise TicketNotFoundError("missing")

        await callback(interaction)

        interaction.followup.send.assert_awaited_once()
        interaction.response.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_discord_forbidden(self):
        interaction = make_interaction()

        @handle_errors
        async def callback(interaction):
            raise http_error(discord.Forbidden, 403, 50013)

        await callback(interaction)

        assert sent_embed(interaction).title == "❌ Permission Error"

    @pytest.mark.asyncio
    async def test_discord_http_exception(self):
        interaction = make_interaction()

        @handle_errors
        async def callback(interaction):
            raise http_error(discord.HTTPException, 500)

        await callback(interaction)

        assert sent_embed(interaction).title == "❌ API Error"

    @pytest.mark.asyncio
    async def test_unexpected_error(self):
        interaction = make_interaction()

        @handle_errors
        async def callback(interaction):
            raise ValueError("boom")

        await callback(interaction)

        embed = sent_embed(interaction)
        assert embed.title == "❌ Unexpected Error"
        assert "unexpected error" in embed.description

    @pytest.mark.asyncio
    async def test_method_callbacks(self):
        interaction = make_interaction()

        class Button:
            @handle_errors
            async def callback(self, interaction, item):
                raise DuplicateTicketError("dup", channel_id=2000)

        await Button().callback(interaction, object())

        assert sent_embed(interaction).description == "You already have an active ticket: <#2000>"

    @pytest.mark.asyncio
    async def test_no_interaction_does_not_raise(self):
        @handle_errors
        async def task():
            raise TicketBotError("background failure")

        assert await task() is None
