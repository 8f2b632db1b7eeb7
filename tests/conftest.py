"""
Shared fixtures for the support bot tests.

Discord objects are stood in for with ``MagicMock``/``AsyncMock``; no test
talks to Discord.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio

from config.config_manager import BotConfig
from core.audit_emitter import DeliveryStatus
from core.ticket_manager import TicketManager
from core.ticket_registry import TicketRegistry
from logging_config import AuditLogger

GUILD_ID = 1000
STAFF_ROLE_ID = 500
OWNER_ID = 900
TICKET_CATEGORY_ID = 600
ARCHIVE_CATEGORY_ID = 610
RESOLVED_ROLE_ID = 700
LOG_CHANNEL_ID = 800


def http_error(cls=discord.HTTPException, status: int = 500, code: int = 0, text: str = "boom"):
    """Build a discord.py HTTP exception without a real response."""
    response = MagicMock()
    response.status = status
    response.reason = text
    return cls(response, {"code": code, "message": text})


async def aiter_items(items):
    for item in items:
        yield item


def make_member(user_id: int, name: str = "user", roles=(), bot: bool = False):
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.bot = bot
    member.display_name = name
    member.mention = f"<@{user_id}>"
    member.roles = [MagicMock(id=role_id) for role_id in roles]
    member.add_roles = AsyncMock()
    member.__str__.return_value = name
    return member


def make_message(author, content: str = "hello", attachments=(), created_at=None):
    message = MagicMock()
    message.author = author
    message.content = content
    message.attachments = list(attachments)
    message.created_at = created_at or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    return message


@pytest.fixture
def bot_config():
    return BotConfig(
        log_channel_id=LOG_CHANNEL_ID,
        staff_role_id=STAFF_ROLE_ID,
        owner_id=OWNER_ID,
        ticket_category_id=TICKET_CATEGORY_ID,
        resolved_role_id=RESOLVED_ROLE_ID,
        delete_delay_seconds=0
    )


@pytest.fixture
def audit():
    emitter = MagicMock()
    emitter.emit = AsyncMock(return_value=DeliveryStatus.DELIVERED)
    return emitter


@pytest.fixture
def audit_logger():
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def registry():
    return TicketRegistry(cooldown_seconds=300)


@pytest.fixture
def opener():
    return make_member(111, "opener")


@pytest.fixture
def staff():
    return make_member(222, "staff", roles=[STAFF_ROLE_ID])


@pytest.fixture
def other_staff():
    return make_member(333, "other-staff", roles=[STAFF_ROLE_ID])


@pytest.fixture
def outsider():
    return make_member(444, "outsider")


@pytest.fixture
def resolved_role():
    role = MagicMock(spec=discord.Role)
    role.id = RESOLVED_ROLE_ID
    return role


@pytest.fixture
def guild(opener, staff, other_staff, outsider, resolved_role):
    guild = MagicMock(spec=discord.Guild)
    guild.id = GUILD_ID
    guild.default_role = MagicMock(name="everyone")
    guild.me = MagicMock(name="me")

    staff_role = MagicMock(spec=discord.Role)
    staff_role.id = STAFF_ROLE_ID
    roles = {STAFF_ROLE_ID: staff_role, RESOLVED_ROLE_ID: resolved_role}
    guild.get_role.side_effect = roles.get

    ticket_category = MagicMock(spec=discord.CategoryChannel)
    ticket_category.id = TICKET_CATEGORY_ID
    archive_category = MagicMock(spec=discord.CategoryChannel)
    archive_category.id = ARCHIVE_CATEGORY_ID
    channels = {TICKET_CATEGORY_ID: ticket_category, ARCHIVE_CATEGORY_ID: archive_category}
    guild.get_channel.side_effect = channels.get

    bot_member = make_member(999, "helper-bot", bot=True)
    members = [opener, staff, other_staff, outsider, bot_member]
    guild.members = members
    by_id = {member.id: member for member in members}
    guild.get_member.side_effect = by_id.get
    guild.fetch_member = AsyncMock(side_effect=lambda user_id: by_id[user_id])
    return guild


@pytest.fixture
def channel(guild):
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = 2000
    channel.name = "ticket-1"
    channel.guild = guild
    channel.send = AsyncMock(return_value=MagicMock(id=3000))
    channel.edit = AsyncMock()
    channel.set_permissions = AsyncMock()
    channel.delete = AsyncMock()
    control_message = MagicMock()
    control_message.edit = AsyncMock()
    channel.fetch_message = AsyncMock(return_value=control_message)
    channel.history = MagicMock(side_effect=lambda limit=None: aiter_items([]))
    guild.create_text_channel = AsyncMock(return_value=channel)
    return channel


@pytest.fixture
def manager(bot_config, registry, audit, audit_logger):
    bot = MagicMock()
    return TicketManager(bot, registry, bot_config, audit, audit_logger=audit_logger)


@pytest_asyncio.fixture
async def open_ticket(manager, guild, channel, opener):
    return await manager.create_ticket(guild, opener, "broke rule X")
