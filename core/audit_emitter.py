"""
Audit notifications for the support bot.

Formats ticket and media events as embeds and delivers them, best effort,
to the configured audit channel.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

import discord
from discord.ext import commands

from logging_config import AuditLogger, get_audit_logger

logger = logging.getLogger(__name__)

# Discord JSON error code for "Missing Access"
MISSING_ACCESS = 50001

FIELD_VALUE_LIMIT = 1024
FIELD_NAME_LIMIT = 256
DESCRIPTION_LIMIT = 4096


class AuditColor:
    """Severity colors used for audit notifications."""
    NEUTRAL = 0x2B2D31
    SUCCESS = 0x00FF00
    NOTICE = 0xFFFF00
    WARNING = 0xFF8800
    DANGER = 0xFF0000
    MEDIA = 0xFF6B6B


class DeliveryStatus(Enum):
    """Outcome of a single notification delivery attempt."""
    DELIVERED = "delivered"
    NO_ACCESS = "no_access"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"


def truncate(text: str, limit: int = FIELD_VALUE_LIMIT, marker: str = "...") -> str:
    """Cut ``text`` to ``limit`` characters, ending with ``marker`` when shortened."""
    if len(text) <= limit:
        return text
    return text[:limit - len(marker)] + marker


@dataclass
class AuditRecord:
    """A notification destined for the audit channel."""
    event_type: str
    title: str
    description: str
    color: int = AuditColor.NEUTRAL
    fields: List[Tuple[str, str, bool]] = field(default_factory=list)
    timestamp: datetime = field(default_factory=discord.utils.utcnow)

    def add_field(self, name: str, value, inline: bool = True) -> 'AuditRecord':
        self.fields.append((name, str(value), inline))
        return self

    def field_value(self, name: str) -> Optional[str]:
        for field_name, value, _inline in self.fields:
            if field_name == name:
                return value
        return None

    def to_embed(self) -> discord.Embed:
        embed = discord.Embed(
            title=truncate(self.title, FIELD_NAME_LIMIT),
            description=truncate(self.description, DESCRIPTION_LIMIT),
            color=self.color,
            timestamp=self.timestamp
        )
        for name, value, inline in self.fields:
            embed.add_field(
                name=truncate(name, FIELD_NAME_LIMIT),
                value=truncate(value or "None", FIELD_VALUE_LIMIT),
                inline=inline
            )
        return embed


class AuditEmitter:
    """
    Best-effort delivery of audit records to a fixed channel.

    ``emit`` never raises: it returns a ``DeliveryStatus`` the caller may
    record, and every attempt is also written to the local audit log.
    """

    def __init__(self, bot: commands.Bot, channel_id: Optional[int],
                 audit_logger: Optional[AuditLogger] = None):
        self.bot = bot
        self.channel_id = channel_id
        self.audit_logger = audit_logger or get_audit_logger()

    async def _resolve_channel(self) -> discord.abc.Messageable:
        channel = self.bot.get_channel(self.channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(self.channel_id)
        return channel

    async def emit(self, record: AuditRecord, file_path: Optional[Path] = None,
                   filename: Optional[str] = None) -> DeliveryStatus:
        """
        Deliver ``record`` (optionally with one file attached) to the audit channel.

        Args:
            record: Notification to send
            file_path: Local file to attach
            filename: Name shown for the attachment

        Returns:
            DeliveryStatus: What happened to the delivery attempt
        """
        status = await self._deliver(record, file_path, filename)
        self.audit_logger.log_notification(
            record.event_type,
            record.title,
            status.value,
            fields={name: value for name, value, _inline in record.fields}
        )
        return status

    async def _deliver(self, record: AuditRecord, file_path: Optional[Path],
                       filename: Optional[str]) -> DeliveryStatus:
        if not self.channel_id:
            return DeliveryStatus.NOT_CONFIGURED

        try:
            channel = await self._resolve_channel()
            kwargs = {'embed': record.to_embed()}
            if file_path is not None:
                kwargs['file'] = discord.File(str(file_path), filename=filename or Path(file_path).name)
            await channel.send(**kwargs)
            return DeliveryStatus.DELIVERED

        except discord.Forbidden as e:
            if e.code == MISSING_ACCESS:
                # Expected when this bot is in guilds that cannot see the audit channel
                return DeliveryStatus.NO_ACCESS
            logger.warning(f"Audit notification '{record.title}' forbidden: {e}")
            return DeliveryStatus.FAILED
        except (discord.HTTPException, OSError) as e:
            logger.warning(f"Failed to deliver audit notification '{record.title}': {e}")
            return DeliveryStatus.FAILED
        except Exception as e:
            logger.error(f"Unexpected error delivering audit notification '{record.title}': {e}",
                         exc_info=True)
            return DeliveryStatus.FAILED
