"""
Unit tests for the Ticket data model.
"""
import pytest
from datetime import datetime, timezone

from errors.exceptions import TicketStateError
from models.ticket import Ticket, TicketStatus, CloseDisposition, Identity

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_ticket(**overrides) -> Ticket:
    fields = dict(
        number=1,
        guild_id=1000,
        channel_id=2000,
        opener=Identity(111, "opener"),
        reason="broke rule X",
        created_at=NOW
    )
    fields.update(overrides)
    return Ticket(**fields)


class TestTicketModel:
    """Test cases for the Ticket data model."""

    def test_ticket_creation(self):
        ticket = make_ticket()

        assert ticket.status == TicketStatus.OPEN
        assert ticket.claimed_by is None
        assert ticket.members == []
        assert ticket.is_active

    def test_topic_reflects_claim_state(self):
        ticket = make_ticket()
        assert ticket.topic == "Ticket #1 | Opener: 111 | Reason: broke rule X"

        ticket.claim(Identity(222, "staff"))
        assert ticket.topic == "Ticket #1 | Opener: 111 | Reason: broke rule X | Claimed By: 222"

        ticket.unclaim()
        assert "Claimed By" not in ticket.topic

    def test_topic_is_capped_but_keeps_claim(self):
        ticket = make_ticket(reason="x" * 2000)
        ticket.claim(Identity(222, "staff"))

        assert len(ticket.topic) == 1024
        assert ticket.topic.endswith(" | Claimed By: 222")

    def test_claim_unclaim_cycle(self):
        ticket = make_ticket()
        staff = Identity(222, "staff")

        ticket.claim(staff)
        assert ticket.status == TicketStatus.CLAIMED
        assert ticket.claimed_by == staff

        ticket.unclaim()
        assert ticket.status == TicketStatus.OPEN
        assert ticket.claimed_by is None

        ticket.claim(staff)
        assert ticket.status == TicketStatus.CLAIMED

    def test_claim_when_already_claimed_rejected(self):
        ticket = make_ticket()
        ticket.claim(Identity(222, "staff"))

        with pytest.raises(TicketStateError) as exc_info:
            ticket.claim(Identity(333, "other"))

        assert exc_info.value.user_message == "This ticket is already claimed."
        assert ticket.claimed_by.id == 222

    def test_unclaim_when_unclaimed_rejected(self):
        ticket = make_ticket()

        with pytest.raises(TicketStateError):
            ticket.unclaim()
        assert ticket.status == TicketStatus.OPEN

    def test_close_is_terminal(self):
        ticket = make_ticket()
        closer = Identity(111, "opener")

        ticket.close(closer, CloseDisposition.RESOLVED, NOW)

        assert ticket.status == TicketStatus.CLOSED
        assert not ticket.is_active
        assert ticket.closed_by == closer
        assert ticket.closed_at == NOW
        assert ticket.close_reason == "Resolved successfully"

        with pytest.raises(TicketStateError):
            ticket.close(closer, CloseDisposition.DECLINED, NOW)
        with pytest.raises(TicketStateError):
            ticket.claim(Identity(222, "staff"))
        assert ticket.close_reason == "Resolved successfully"

    def test_declined_close_reason(self):
        assert CloseDisposition.DECLINED.close_reason == "Declined/not resolved"

    def test_members_exclude_opener_and_duplicates(self):
        ticket = make_ticket()

        assert ticket.add_member(444) is True
        assert ticket.add_member(444) is False
        assert ticket.add_member(111) is False
        assert ticket.members == [444]

        assert ticket.remove_member(444) is True
        assert ticket.remove_member(444) is False
        assert ticket.members == []

    def test_identity_str(self):
        assert str(Identity(111, "opener")) == "opener (111)"
