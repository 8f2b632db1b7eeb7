"""
Interactive components for the ticket system.

The panel and control views are persistent: they have no timeout and use
stable custom ids, and are registered once at startup so their buttons
keep working after the process restarts.
"""

from typing import List

import discord

from errors import handle_errors
from logging_config import get_logger
from models.ticket import CloseDisposition, Ticket, TicketStatus

logger = get_logger(__name__)


def _manager(interaction: discord.Interaction):
    return interaction.client.ticket_manager


class TicketReasonModal(discord.ui.Modal, title="Open a Ticket"):
    """Collects the reason before a ticket channel is created."""

    reason = discord.ui.TextInput(
        label="Reason",
        style=discord.TextStyle.paragraph,
        placeholder="Describe what you need help with",
        required=True,
        max_length=1000
    )

    def __init__(self):
        super().__init__(custom_id="ticket_reason_modal")

    @handle_errors
    async def on_submit(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        ticket = await _manager(interaction).create_ticket(
            interaction.guild, interaction.user, self.reason.value
        )
        await interaction.followup.send(f"✅ Your ticket has been created: <#{ticket.channel_id}>",
                                        ephemeral=True)


class TicketPanelView(discord.ui.View):
    """Persistent "Open Ticket" button posted by ``/panel``."""

    def __init__(self):
        super().__init__(timeout=None)

    @discord.ui.button(label="Open Ticket", emoji="🎫", style=discord.ButtonStyle.primary,
                       custom_id="ticket_open")
    @handle_errors
    async def open_ticket(self, interaction: discord.Interaction, button: discord.ui.Button):
        # Reject early so the user is not asked for a reason they cannot use
        _manager(interaction).ensure_can_open(interaction.user.id)
        await interaction.response.send_modal(TicketReasonModal())


class TicketRenameModal(discord.ui.Modal, title="Rename Ticket"):
    channel_name = discord.ui.TextInput(
        label="New channel name",
        placeholder="e.g. billing-question",
        required=True,
        max_length=100
    )

    def __init__(self):
        super().__init__(custom_id="ticket_rename_modal")

    @handle_errors
    async def on_submit(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        new_name = await _manager(interaction).rename_ticket(
            interaction.channel, interaction.user, self.channel_name.value
        )
        await interaction.followup.send(f"✏️ Ticket renamed to **{new_name}**", ephemeral=True)


class MemberSelect(discord.ui.Select):
    """Select of at most 25 members to add to or remove from a ticket."""

    def __init__(self, members: List[discord.Member], adding: bool):
        options = [
            discord.SelectOption(
                label=member.display_name[:100],
                value=str(member.id),
                description=str(member)[:100]
            )
            for member in members
        ]
        super().__init__(
            custom_id="ticket_member_select" if adding else "ticket_member_remove_select",
            placeholder="Select a member to add" if adding else "Select a member to remove",
            min_values=1,
            max_values=1,
            options=options
        )
        self.adding = adding

    @handle_errors
    async def callback(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        manager = _manager(interaction)
        user_id = int(self.values[0])

        if self.adding:
            member = await manager.add_member(interaction.channel, interaction.user, user_id)
            await interaction.followup.send(f"✅ Added {member.mention} to this ticket.", ephemeral=True)
        else:
            await manager.remove_member(interaction.channel, interaction.user, user_id)
            await interaction.followup.send(f"✅ Removed <@{user_id}> from this ticket.", ephemeral=True)


class MemberSelectView(discord.ui.View):
    def __init__(self, members: List[discord.Member], adding: bool):
        super().__init__(timeout=120)
        self.add_item(MemberSelect(members, adding))


class TicketControlsView(discord.ui.View):
    """
    Action set on a ticket's control message.

    Only one of the claim and unclaim buttons is shown, matching the
    ticket's claim state.
    """

    def __init__(self, claimed: bool = False):
        super().__init__(timeout=None)
        self.remove_item(self.claim if claimed else self.unclaim)

    @discord.ui.button(label="Claim", emoji="🎯", style=discord.ButtonStyle.success,
                       custom_id="ticket_claim", row=0)
    @handle_errors
    async def claim(self, interaction: discord.Interaction, button: discord.ui.Button):
        await interaction.response.defer(ephemeral=True)
        await _manager(interaction).claim_ticket(interaction.channel, interaction.user)
        await interaction.followup.send("✅ You claimed this ticket.", ephemeral=True)

    @discord.ui.button(label="Unclaim", emoji="🔓", style=discord.ButtonStyle.secondary,
                       custom_id="ticket_unclaim", row=0)
    @handle_errors
    async def unclaim(self, interaction: discord.Interaction, button: discord.ui.Button):
        await interaction.response.defer(ephemeral=True)
        await _manager(interaction).unclaim_ticket(interaction.channel, interaction.user)
        await interaction.followup.send("✅ You unclaimed this ticket.", ephemeral=True)

    @discord.ui.button(label="Rename", emoji="✏️", style=discord.ButtonStyle.secondary,
                       custom_id="ticket_rename", row=0)
    @handle_errors
    async def rename(self, interaction: discord.Interaction, button: discord.ui.Button):
        manager = _manager(interaction)
        manager.require_staff(interaction.user, "rename tickets")
        manager.get_ticket_for_channel(interaction.channel_id)
        await interaction.response.send_modal(TicketRenameModal())

    @discord.ui.button(label="Add Member", emoji="➕", style=discord.ButtonStyle.secondary,
                       custom_id="ticket_add_member", row=0)
    @handle_errors
    async def add_member(self, interaction: discord.Interaction, button: discord.ui.Button):
        members = _manager(interaction).add_candidates(interaction.channel, interaction.user)
        if not members:
            await interaction.response.send_message("No eligible members to add.", ephemeral=True)
            return
        await interaction.response.send_message(view=MemberSelectView(members, adding=True), ephemeral=True)

    @discord.ui.button(label="Remove Member", emoji="➖", style=discord.ButtonStyle.secondary,
                       custom_id="ticket_remove_member", row=0)
    @handle_errors
    async def remove_member(self, interaction: discord.Interaction, button: discord.ui.Button):
        members = _manager(interaction).remove_candidates(interaction.channel, interaction.user)
        if not members:
            await interaction.response.send_message("There are no added members to remove.", ephemeral=True)
            return
        await interaction.response.send_message(view=MemberSelectView(members, adding=False), ephemeral=True)

    @discord.ui.select(
        custom_id="ticket_close_select",
        placeholder="Close ticket...",
        row=1,
        options=[
            discord.SelectOption(label="Resolved", value=CloseDisposition.RESOLVED.value, emoji="✅",
                                 description="The issue was resolved"),
            discord.SelectOption(label="Declined / Not resolved", value=CloseDisposition.DECLINED.value,
                                 emoji="❌", description="The request was declined or not resolved")
        ]
    )
    @handle_errors
    async def close(self, interaction: discord.Interaction, select: discord.ui.Select):
        disposition = CloseDisposition(select.values[0])
        await interaction.response.defer(ephemeral=True, thinking=True)
        outcome = await _manager(interaction).close_ticket(interaction.channel, interaction.user, disposition)
        await interaction.followup.send(outcome.acknowledgment, ephemeral=True)


def build_ticket_controls(ticket: Ticket) -> TicketControlsView:
    """Controls matching a ticket's current claim state."""
    return TicketControlsView(claimed=ticket.status is TicketStatus.CLAIMED)


def persistent_views() -> List[discord.ui.View]:
    """Every view that must be registered with ``bot.add_view`` at startup."""
    return [TicketPanelView(), TicketControlsView(claimed=False), TicketControlsView(claimed=True)]
