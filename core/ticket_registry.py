"""
In-memory store of active tickets.

The registry is the single owner of live ``Ticket`` records. Tickets are
keyed by opener with a secondary index by channel; both are updated
together so a lookup by either key always agrees. Closed tickets are
removed immediately.
"""

import asyncio
import logging
import math
from datetime import datetime
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import discord

from models.ticket import Ticket

logger = logging.getLogger(__name__)


class TicketRegistry:
    """Active tickets by opener, ticket numbering per guild and open cooldowns."""

    def __init__(self, cooldown_seconds: int = 300):
        """
        Initialize TicketRegistry.

        Args:
            cooldown_seconds: Minimum time between two ticket creations by one opener
        """
        self.cooldown_seconds = cooldown_seconds
        self._by_opener: Dict[int, Ticket] = {}
        self._opener_by_channel: Dict[int, int] = {}
        self._counters: Dict[int, int] = {}
        self._last_created: Dict[int, datetime] = {}
        self._channel_locks: Dict[int, asyncio.Lock] = {}
        self._opener_locks: Dict[int, asyncio.Lock] = {}
        self._opener_waiters: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._by_opener)

    def __contains__(self, opener_id: int) -> bool:
        return opener_id in self._by_opener

    def next_number(self, guild_id: int) -> int:
        """Allocate the next ticket number for a guild. Numbers are never reused."""
        number = self._counters.get(guild_id, 0) + 1
        self._counters[guild_id] = number
        return number

    def get_by_opener(self, opener_id: int) -> Optional[Ticket]:
        return self._by_opener.get(opener_id)

    def get_by_channel(self, channel_id: int) -> Optional[Ticket]:
        opener_id = self._opener_by_channel.get(channel_id)
        if opener_id is None:
            return None
        return self._by_opener.get(opener_id)

    def cooldown_remaining(self, opener_id: int, now: Optional[datetime] = None) -> int:
        """
        Seconds the opener must still wait before creating a ticket.

        Returns:
            int: ``window - elapsed`` rounded up, or 0 when no wait is required
        """
        last = self._last_created.get(opener_id)
        if last is None:
            return 0

        now = now or discord.utils.utcnow()
        remaining = self.cooldown_seconds - (now - last).total_seconds()
        if remaining <= 0:
            del self._last_created[opener_id]
            return 0
        return math.ceil(remaining)

    def add(self, ticket: Ticket):
        """Store a new active ticket and start the opener's cooldown."""
        existing = self._by_opener.get(ticket.opener.id)
        if existing is not None and existing.is_active:
            raise ValueError(f"Opener {ticket.opener.id} already has active ticket #{existing.number}")

        self._by_opener[ticket.opener.id] = ticket
        self._opener_by_channel[ticket.channel_id] = ticket.opener.id
        self._prune_cooldowns(ticket.created_at)
        self._last_created[ticket.opener.id] = ticket.created_at
        logger.debug(f"Registered ticket #{ticket.number} for opener {ticket.opener.id}")

    def remove(self, ticket: Ticket) -> bool:
        """
        Drop a ticket from the active registry.

        Returns:
            bool: False when the ticket was not registered (already removed)
        """
        current = self._by_opener.get(ticket.opener.id)
        if current is not ticket:
            return False

        del self._by_opener[ticket.opener.id]
        self._opener_by_channel.pop(ticket.channel_id, None)
        self._channel_locks.pop(ticket.channel_id, None)
        logger.debug(f"Removed ticket #{ticket.number} from registry")
        return True

    def lock_for(self, channel_id: int) -> asyncio.Lock:
        """Per-channel lock serialising mutations of one ticket."""
        lock = self._channel_locks.get(channel_id)
        if lock is None:
            lock = self._channel_locks[channel_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def opener_lock(self, opener_id: int) -> AsyncIterator[None]:
        """
        Hold the opener's lock so one user cannot race two creations past
        the duplicate check. The lock is dropped once nobody holds or awaits it.
        """
        lock = self._opener_locks.get(opener_id)
        if lock is None:
            lock = self._opener_locks[opener_id] = asyncio.Lock()
        self._opener_waiters[opener_id] = self._opener_waiters.get(opener_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._opener_waiters[opener_id] - 1
            if remaining:
                self._opener_waiters[opener_id] = remaining
            else:
                del self._opener_waiters[opener_id]
                del self._opener_locks[opener_id]

    def _prune_cooldowns(self, now: datetime):
        expired = [opener_id for opener_id, last in self._last_created.items()
                   if (now - last).total_seconds() >= self.cooldown_seconds]
        for opener_id in expired:
            del self._last_created[opener_id]
