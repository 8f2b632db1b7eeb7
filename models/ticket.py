"""
Ticket data model for the support bot.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from errors.exceptions import TicketStateError


class TicketStatus(Enum):
    """Enumeration for ticket status values."""
    OPEN = "open"
    CLAIMED = "claimed"
    CLOSED = "closed"


class CloseDisposition(Enum):
    """How a ticket was closed."""
    RESOLVED = "resolved"
    DECLINED = "declined"

    @property
    def close_reason(self) -> str:
        if self is CloseDisposition.RESOLVED:
            return "Resolved successfully"
        return "Declined/not resolved"


@dataclass(frozen=True)
class Identity:
    """Snapshot of a Discord user: opaque id plus display tag."""
    id: int
    tag: str

    @classmethod
    def from_user(cls, user) -> 'Identity':
        return cls(id=user.id, tag=str(user))

    def __str__(self) -> str:
        return f"{self.tag} ({self.id})"


@dataclass
class Ticket:
    """
    Data model representing a support ticket.

    Attributes:
        number: Sequential ticket number, unique per guild
        guild_id: Discord guild (server) ID where ticket was created
        channel_id: Discord channel ID of the private ticket channel
        opener: User who opened the ticket
        reason: Free-text reason supplied by the opener
        status: Current status of the ticket
        created_at: Timestamp when ticket was created
        claimed_by: Staff member currently working the ticket
        members: IDs of users granted access beyond opener and staff
        control_message_id: Message carrying the ticket's controls
        closed_at: Timestamp when ticket was closed
        closed_by: User who closed the ticket
        close_reason: Human readable closing disposition
    """
    number: int
    guild_id: int
    channel_id: int
    opener: Identity
    reason: str
    created_at: datetime
    status: TicketStatus = TicketStatus.OPEN
    claimed_by: Optional[Identity] = None
    members: List[int] = field(default_factory=list)
    control_message_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    closed_by: Optional[Identity] = None
    close_reason: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is not TicketStatus.CLOSED

    @staticmethod
    def format_topic(number: int, opener_id: int, reason: str,
                     claimed_by_id: Optional[int] = None) -> str:
        """Channel topic describing a ticket's state (Discord caps topics at 1024 chars)."""
        topic = f"Ticket #{number} | Opener: {opener_id} | Reason: {reason}"
        if claimed_by_id:
            suffix = f" | Claimed By: {claimed_by_id}"
            return topic[:1024 - len(suffix)] + suffix
        return topic[:1024]

    @property
    def topic(self) -> str:
        return self.format_topic(self.number, self.opener.id, self.reason,
                                 self.claimed_by.id if self.claimed_by else None)

    def _require_active(self):
        if self.status is TicketStatus.CLOSED:
            raise TicketStateError(
                f"Ticket #{self.number} is closed",
                ticket_number=self.number,
                user_message="This ticket is already closed."
            )

    def claim(self, staff: Identity):
        self._require_active()
        if self.status is TicketStatus.CLAIMED:
            raise TicketStateError(
                f"Ticket #{self.number} already claimed by {self.claimed_by}",
                ticket_number=self.number,
                user_message="This ticket is already claimed."
            )
        self.claimed_by = staff
        self.status = TicketStatus.CLAIMED

    def unclaim(self):
        self._require_active()
        if self.status is not TicketStatus.CLAIMED:
            raise TicketStateError(
                f"Ticket #{self.number} is not claimed",
                ticket_number=self.number,
                user_message="This ticket is not claimed."
            )
        self.claimed_by = None
        self.status = TicketStatus.OPEN

    def close(self, closed_by: Identity, disposition: CloseDisposition, closed_at: datetime):
        self._require_active()
        self.status = TicketStatus.CLOSED
        self.closed_by = closed_by
        self.close_reason = disposition.close_reason
        self.closed_at = closed_at

    def add_member(self, user_id: int) -> bool:
        if user_id == self.opener.id or user_id in self.members:
            return False
        self.members.append(user_id)
        return True

    def remove_member(self, user_id: int) -> bool:
        if user_id not in self.members:
            return False
        self.members.remove(user_id)
        return True
