"""
Unit tests for audit channel notifications.
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from core.audit_emitter import AuditColor, AuditEmitter, AuditRecord, DeliveryStatus, truncate

from conftest import LOG_CHANNEL_ID, http_error


@pytest.fixture
def log_channel():
    channel = MagicMock()
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def bot(log_channel):
    bot = MagicMock()
    bot.get_channel.return_value = log_channel
    bot.fetch_channel = AsyncMock(return_value=log_channel)
    return bot


@pytest.fixture
def emitter(bot, audit_logger):
    return AuditEmitter(bot, LOG_CHANNEL_ID, audit_logger=audit_logger)


def sample_record() -> AuditRecord:
    record = AuditRecord(event_type="ticket_created", title="🎫 Ticket Created",
                         description="Ticket #1 opened", color=AuditColor.SUCCESS)
    record.add_field("Ticket", "#1").add_field("Reason", "help", inline=False)
    return record


def test_truncate():
    assert truncate("short") == "short"
    assert truncate("x" * 10, limit=5) == "xx..."
    assert len(truncate("x" * 5000)) == 1024


class TestAuditRecord:

    def test_field_value(self):
        record = sample_record()

        assert record.field_value("Ticket") == "#1"
        assert record.field_value("Missing") is None

    def test_to_embed(self):
        record = sample_record()
        record.add_field("Transcript", "y" * 3000, inline=False)
        record.add_field("Empty", "")

        embed = record.to_embed()

        assert embed.title == "🎫 Ticket Created"
        assert embed.color.value == AuditColor.SUCCESS
        assert [f.name for f in embed.fields] == ["Ticket", "Reason", "Transcript", "Empty"]
        assert embed.fields[1].inline is False
        assert len(embed.fields[2].value) == 1024
        assert embed.fields[3].value == "None"


class TestAuditEmitter:

    @pytest.mark.asyncio
    async def test_delivered(self, emitter, log_channel, audit_logger):
        status = await emitter.emit(sample_record())

        assert status is DeliveryStatus.DELIVERED
        embed = log_channel.send.call_args.kwargs['embed']
        assert embed.description == "Ticket #1 opened"
        assert 'file' not in log_channel.send.call_args.kwargs
        audit_logger.log_notification.assert_called_once_with(
            "ticket_created", "🎫 Ticket Created", "delivered",
            fields={"Ticket": "#1", "Reason": "help"}
        )

    @pytest.mark.asyncio
    async def test_uncached_channel_is_fetched(self, emitter, bot, log_channel):
        bot.get_channel.return_value = None

        assert await emitter.emit(sample_record()) is DeliveryStatus.DELIVERED
        bot.fetch_channel.assert_awaited_once_with(LOG_CHANNEL_ID)

    @pytest.mark.asyncio
    async def test_not_configured(self, bot, audit_logger, log_channel):
        emitter = AuditEmitter(bot, None, audit_logger=audit_logger)

        assert await emitter.emit(sample_record()) is DeliveryStatus.NOT_CONFIGURED
        log_channel.send.assert_not_awaited()
        assert audit_logger.log_notification.call_args.args[2] == "not_configured"

    @pytest.mark.asyncio
    async def test_missing_access_is_quiet(self, emitter, log_channel):
        log_channel.send = AsyncMock(side_effect=http_error(discord.Forbidden, 403, 50001))

        assert await emitter.emit(sample_record()) is DeliveryStatus.NO_ACCESS

    @pytest.mark.asyncio
    async def test_other_forbidden_fails(self, emitter, log_channel):
        log_channel.send = AsyncMock(side_effect=http_error(discord.Forbidden, 403, 50013))

        assert await emitter.emit(sample_record()) is DeliveryStatus.FAILED

    @pytest.mark.asyncio
    async def test_http_failure(self, emitter, log_channel):
        log_channel.send = AsyncMock(side_effect=http_error(discord.HTTPException, 500))

        assert await emitter.emit(sample_record()) is DeliveryStatus.FAILED

    @pytest.mark.asyncio
    async def test_unknown_channel(self, emitter, bot):
        bot.get_channel.return_value = None
        bot.fetch_channel = AsyncMock(side_effect=http_error(discord.NotFound, 404, 10003))

        assert await emitter.emit(sample_record()) is DeliveryStatus.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_error_never_raises(self, emitter, log_channel):
        log_channel.send = AsyncMock(side_effect=RuntimeError("boom"))

        assert await emitter.emit(sample_record()) is DeliveryStatus.FAILED

    @pytest.mark.asyncio
    async def test_file_attached(self, emitter, log_channel, tmp_path):
        path = tmp_path / "42_1700000000000_cat.png"
        path.write_bytes(b"png")

        status = await emitter.emit(sample_record(), file_path=path, filename="deleted_media_42_1.png")

        assert status is DeliveryStatus.DELIVERED
        attached = log_channel.send.call_args.kwargs['file']
        assert isinstance(attached, discord.File)
        assert attached.filename == "deleted_media_42_1.png"
        attached.close()
