"""
Ticket Manager for the support bot.

This module drives the ticket lifecycle: creation of private channels,
claiming, renaming, membership edits and closure with transcript and
archive-or-delete handling. Ticket state lives in the ``TicketRegistry``;
every change is reported through the ``AuditEmitter``.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Set

import discord
from discord.ext import commands

from config.config_manager import BotConfig
from core.audit_emitter import AuditColor, AuditEmitter, AuditRecord, DeliveryStatus, truncate
from core.ticket_registry import TicketRegistry
from errors.exceptions import (
    DuplicateTicketError, MemberNotFoundError, PermissionError, TicketCooldownError,
    TicketCreationError, TicketNotFoundError, TicketOperationError, TicketStateError
)
from logging_config import AuditLogger, get_audit_logger
from models.ticket import CloseDisposition, Identity, Ticket, TicketStatus

logger = logging.getLogger(__name__)

STAFF_PERMISSION = "staff role or bot owner"


class RoleOutcome(Enum):
    """Result of granting the resolved role on closure."""
    GRANTED = "granted"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"
    NOT_APPLICABLE = "not_applicable"

    @property
    def label(self) -> str:
        if self is RoleOutcome.GRANTED:
            return "✅ Resolved role added"
        if self is RoleOutcome.FAILED:
            return "⚠️ Role assignment failed"
        return "❌ No role added"


@dataclass
class CloseOutcome:
    """What happened while closing a ticket."""
    ticket: Ticket
    disposition: CloseDisposition
    archived: bool
    transcript_created: bool
    role_outcome: RoleOutcome
    notification: DeliveryStatus

    @property
    def acknowledgment(self) -> str:
        if self.archived:
            return f"Ticket {self.disposition.value} and archived successfully!"
        return f"Closing ticket as {self.disposition.value} in a few seconds..."


class TicketManager:
    """
    Core ticket management system.

    Permission checks always run before any state is touched, so a rejected
    call has no side effects. Mutations of one ticket are serialised by the
    registry's per-channel lock.
    """

    def __init__(self, bot: commands.Bot, registry: TicketRegistry, config: BotConfig,
                 audit: AuditEmitter, controls_factory: Optional[Callable[[Ticket], discord.ui.View]] = None,
                 audit_logger: Optional[AuditLogger] = None):
        """
        Initialize TicketManager.

        Args:
            bot: Discord bot instance
            registry: Store of active tickets
            config: Bot configuration
            audit: Emitter for audit channel notifications
            controls_factory: Builds the interactive controls for a ticket's state
            audit_logger: Local audit trail (defaults to the global one)
        """
        self.bot = bot
        self.registry = registry
        self.config = config
        self.audit = audit
        self.controls_factory = controls_factory
        self.audit_logger = audit_logger or get_audit_logger()
        self._pending_deletions: Set[asyncio.Task] = set()

    # Lookups and permissions

    def is_staff(self, member) -> bool:
        """True for holders of the staff role and for the configured owner."""
        if self.config.owner_id and member.id == self.config.owner_id:
            return True
        if not self.config.staff_role_id:
            return False
        return any(role.id == self.config.staff_role_id for role in getattr(member, 'roles', []))

    def require_staff(self, member, action: str):
        if not self.is_staff(member):
            raise PermissionError(
                f"User {member.id} is not authorized to {action}",
                required_permission=STAFF_PERMISSION
            )

    def get_ticket_for_channel(self, channel_id: int) -> Ticket:
        """
        Resolve the active ticket owning a channel.

        Raises:
            TicketNotFoundError: If the channel is not an active ticket channel
        """
        ticket = self.registry.get_by_channel(channel_id)
        if ticket is None or not ticket.is_active:
            raise TicketNotFoundError(f"No active ticket for channel {channel_id}", channel_id=channel_id)
        return ticket

    def _ensure_current(self, ticket: Ticket):
        # Another operation may have closed the ticket while we waited on its lock
        if self.registry.get_by_channel(ticket.channel_id) is not ticket:
            raise TicketNotFoundError(f"Ticket #{ticket.number} is no longer active",
                                      channel_id=ticket.channel_id)

    def ensure_can_open(self, opener_id: int):
        """
        Reject an opener who already has an active ticket or is still in cooldown.

        Raises:
            DuplicateTicketError: If the opener has an active ticket
            TicketCooldownError: If the opener created a ticket too recently
        """
        existing = self.registry.get_by_opener(opener_id)
        if existing is not None and existing.is_active:
            raise DuplicateTicketError(
                f"User {opener_id} already has active ticket #{existing.number}",
                channel_id=existing.channel_id
            )

        remaining = self.registry.cooldown_remaining(opener_id)
        if remaining > 0:
            raise TicketCooldownError(f"User {opener_id} is on cooldown for {remaining}s",
                                      retry_after=remaining)

    # Creation

    async def _create_ticket_channel(self, guild: discord.Guild, number: int,
                                     opener: discord.Member, reason: str) -> discord.TextChannel:
        category = None
        if self.config.ticket_category_id:
            category = guild.get_channel(self.config.ticket_category_id)
            if not isinstance(category, discord.CategoryChannel):
                logger.warning(f"Invalid ticket category {self.config.ticket_category_id} for guild {guild.id}")
                category = None

        overwrites = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            opener: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                read_message_history=True
            ),
            guild.me: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                manage_messages=True,
                manage_channels=True,
                read_message_history=True
            )
        }

        if self.config.staff_role_id:
            role = guild.get_role(self.config.staff_role_id)
            if role:
                overwrites[role] = discord.PermissionOverwrite(
                    view_channel=True,
                    send_messages=True,
                    manage_messages=True,
                    read_message_history=True
                )
            else:
                logger.warning(f"Staff role {self.config.staff_role_id} not found in guild {guild.id}")

        try:
            channel = await guild.create_text_channel(
                name=f"ticket-{number}",
                category=category,
                overwrites=overwrites,
                topic=Ticket.format_topic(number, opener.id, reason),
                reason=f"Ticket #{number} opened by {opener}"
            )
        except discord.Forbidden:
            raise TicketCreationError("Bot lacks permission to create channels",
                                      reason="missing permissions")
        except discord.HTTPException as e:
            raise TicketCreationError(f"Failed to create channel: {e}", reason=str(e))

        logger.info(f"Created ticket channel {channel.id} for ticket #{number}")
        return channel

    def build_ticket_embed(self, ticket: Ticket) -> discord.Embed:
        """Embed shown on a ticket's control message."""
        claimed = ticket.status is TicketStatus.CLAIMED
        embed = discord.Embed(
            title=f"Ticket #{ticket.number}",
            description=f"**Reason:** {truncate(ticket.reason, 1000)}\n\n"
                        f"A staff member will be with you shortly.",
            color=discord.Color.gold() if claimed else discord.Color.green(),
            timestamp=ticket.created_at
        )
        embed.add_field(name="Status", value="🟡 Claimed" if claimed else "🟢 Open", inline=True)
        embed.add_field(name="Opener", value=f"<@{ticket.opener.id}>", inline=True)
        embed.add_field(
            name="Claimed By",
            value=f"<@{ticket.claimed_by.id}>" if ticket.claimed_by else "Unclaimed",
            inline=True
        )
        embed.set_footer(text="Support Tickets")
        return embed

    def _controls_for(self, ticket: Ticket) -> Optional[discord.ui.View]:
        if self.controls_factory is None:
            return None
        return self.controls_factory(ticket)

    async def create_ticket(self, guild: discord.Guild, opener: discord.Member, reason: str) -> Ticket:
        """
        Open a new ticket for ``opener``.

        Args:
            guild: Guild the ticket belongs to
            opener: Member opening the ticket
            reason: Free-text reason for the request

        Returns:
            Ticket: The newly registered ticket

        Raises:
            DuplicateTicketError: If the opener already has an active ticket
            TicketCooldownError: If the opener is still in cooldown
            TicketCreationError: If the ticket channel could not be created
        """
        if guild is None:
            raise TicketCreationError("Ticket requested outside a guild",
                                      user_message="Tickets can only be opened inside a server.")

        reason = (reason or "").strip()
        if not reason:
            raise TicketCreationError("Empty ticket reason",
                                      user_message="Please provide a reason for your ticket.")

        async with self.registry.opener_lock(opener.id):
            self.ensure_can_open(opener.id)

            number = self.registry.next_number(guild.id)
            channel = await self._create_ticket_channel(guild, number, opener, reason)

            ticket = Ticket(
                number=number,
                guild_id=guild.id,
                channel_id=channel.id,
                opener=Identity.from_user(opener),
                reason=reason,
                created_at=discord.utils.utcnow()
            )
            self.registry.add(ticket)

        try:
            kwargs = {'content': f"<@{opener.id}>", 'embed': self.build_ticket_embed(ticket)}
            view = self._controls_for(ticket)
            if view is not None:
                kwargs['view'] = view
            message = await channel.send(**kwargs)
            ticket.control_message_id = message.id
        except discord.HTTPException as e:
            logger.error(f"Failed to post controls for ticket #{number}: {e}")

        logger.info(f"Created ticket #{number} for user {opener.id} in guild {guild.id}")
        self.audit_logger.log_ticket_created(number, opener.id, guild.id, channel.id, reason)

        record = AuditRecord(
            event_type="ticket_created",
            title="🎫 Ticket Created",
            description=f"Ticket #{number} opened by {opener} ({opener.id})",
            color=AuditColor.SUCCESS
        )
        record.add_field("Ticket", f"#{number}")
        record.add_field("Channel", f"<#{channel.id}>")
        record.add_field("Reason", truncate(reason), inline=False)
        await self.audit.emit(record)

        return ticket

    # Claim state

    async def _apply_claim_state(self, channel: discord.TextChannel, ticket: Ticket):
        """Mirror the claim state into the channel topic and the control message."""
        try:
            await channel.edit(topic=ticket.topic)
        except discord.HTTPException as e:
            logger.warning(f"Failed to update topic for ticket #{ticket.number}: {e}")

        if ticket.control_message_id is None:
            return

        try:
            message = await channel.fetch_message(ticket.control_message_id)
            kwargs = {'embed': self.build_ticket_embed(ticket)}
            view = self._controls_for(ticket)
            if view is not None:
                kwargs['view'] = view
            await message.edit(**kwargs)
        except discord.HTTPException as e:
            logger.warning(f"Failed to refresh controls for ticket #{ticket.number}: {e}")

    async def claim_ticket(self, channel: discord.TextChannel, member: discord.Member) -> Ticket:
        """
        Claim a ticket for a staff member.

        Raises:
            PermissionError: If the member is not staff
            TicketNotFoundError: If the channel is not a ticket
            TicketStateError: If the ticket is already claimed
        """
        self.require_staff(member, "claim tickets")
        ticket = self.get_ticket_for_channel(channel.id)

        async with self.registry.lock_for(channel.id):
            self._ensure_current(ticket)
            ticket.claim(Identity.from_user(member))
            await self._apply_claim_state(channel, ticket)

        try:
            await channel.send(f"🎯 Ticket claimed by {member.mention}")
        except discord.HTTPException as e:
            logger.warning(f"Failed to post claim notice for ticket #{ticket.number}: {e}")

        logger.info(f"Ticket #{ticket.number} claimed by {member.id}")
        self.audit_logger.log_ticket_claimed(ticket.number, member.id, ticket.guild_id, channel.id)
        return ticket

    async def unclaim_ticket(self, channel: discord.TextChannel, member: discord.Member) -> Ticket:
        """
        Release a claim. Only the current claimer may do this.

        Raises:
            TicketNotFoundError: If the channel is not a ticket
            TicketStateError: If the ticket is not claimed
            PermissionError: If the member is not the current claimer
        """
        ticket = self.get_ticket_for_channel(channel.id)

        async with self.registry.lock_for(channel.id):
            self._ensure_current(ticket)
            if ticket.claimed_by is None:
                raise TicketStateError(f"Ticket #{ticket.number} is not claimed",
                                       ticket_number=ticket.number,
                                       user_message="This ticket is not claimed.")
            if ticket.claimed_by.id != member.id:
                raise PermissionError(
                    f"User {member.id} tried to unclaim ticket #{ticket.number} claimed by {ticket.claimed_by.id}",
                    required_permission="ticket claimer",
                    user_message="You can only unclaim tickets that you claimed."
                )

            ticket.unclaim()
            await self._apply_claim_state(channel, ticket)

        try:
            await channel.send(f"🔓 Ticket unclaimed by {member.mention}")
        except discord.HTTPException as e:
            logger.warning(f"Failed to post unclaim notice for ticket #{ticket.number}: {e}")

        logger.info(f"Ticket #{ticket.number} unclaimed by {member.id}")
        self.audit_logger.log_ticket_unclaimed(ticket.number, member.id, ticket.guild_id, channel.id)
        return ticket

    # Rename and membership

    async def rename_ticket(self, channel: discord.TextChannel, member: discord.Member, new_name: str) -> str:
        """
        Rename a ticket channel.

        Raises:
            PermissionError: If the member is not staff
            TicketOperationError: If the name is empty or Discord rejects the rename
        """
        self.require_staff(member, "rename tickets")
        ticket = self.get_ticket_for_channel(channel.id)

        new_name = (new_name or "").strip()
        if not new_name:
            raise TicketOperationError("Empty channel name", operation="rename",
                                       user_message="Please provide a new name.")

        async with self.registry.lock_for(channel.id):
            self._ensure_current(ticket)
            try:
                await channel.edit(name=new_name[:100], reason=f"Renamed by {member}")
            except discord.HTTPException as e:
                logger.error(f"Failed to rename ticket #{ticket.number}: {e}")
                raise TicketOperationError(f"Rename failed: {e}", operation="rename",
                                           user_message="Failed to rename ticket. Check bot permissions.")

        logger.info(f"Ticket #{ticket.number} renamed to {new_name} by {member.id}")
        self.audit_logger.log_ticket_renamed(ticket.number, member.id, ticket.guild_id, channel.id, new_name)
        return new_name

    def add_candidates(self, channel: discord.TextChannel, member: discord.Member) -> List[discord.Member]:
        """Members that may be added: humans other than the opener and current members."""
        self.require_staff(member, "add members to tickets")
        ticket = self.get_ticket_for_channel(channel.id)

        candidates = []
        for candidate in channel.guild.members:
            if candidate.bot or candidate.id == ticket.opener.id or candidate.id in ticket.members:
                continue
            candidates.append(candidate)
            if len(candidates) >= self.config.member_option_limit:
                break
        return candidates

    def remove_candidates(self, channel: discord.TextChannel, member: discord.Member) -> List[discord.Member]:
        """Members previously added to the ticket, excluding the opener."""
        self.require_staff(member, "remove members from tickets")
        ticket = self.get_ticket_for_channel(channel.id)

        candidates = []
        for user_id in ticket.members:
            candidate = channel.guild.get_member(user_id)
            if candidate is None or candidate.bot or candidate.id == ticket.opener.id:
                continue
            candidates.append(candidate)
            if len(candidates) >= self.config.member_option_limit:
                break
        return candidates

    async def _resolve_member(self, guild: discord.Guild, user_id: int) -> discord.Member:
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.NotFound:
            raise MemberNotFoundError(f"Member {user_id} not found in guild {guild.id}", user_id=user_id)

    async def add_member(self, channel: discord.TextChannel, staff: discord.Member, user_id: int) -> discord.Member:
        """
        Grant a member access to a ticket channel.

        Raises:
            PermissionError: If ``staff`` is not staff
            MemberNotFoundError: If the user is not in the guild
            TicketOperationError: If the permission change fails
        """
        self.require_staff(staff, "add members to tickets")
        ticket = self.get_ticket_for_channel(channel.id)
        target = await self._resolve_member(channel.guild, user_id)

        async with self.registry.lock_for(channel.id):
            self._ensure_current(ticket)
            try:
                await channel.set_permissions(
                    target,
                    view_channel=True,
                    send_messages=True,
                    read_message_history=True,
                    reason=f"Added to ticket #{ticket.number} by {staff}"
                )
            except discord.HTTPException as e:
                raise TicketOperationError(f"Failed to add {user_id}: {e}", operation="add_member")
            ticket.add_member(target.id)

        try:
            await channel.send(f"👥 {target.mention} has been added to this ticket.")
        except discord.HTTPException as e:
            logger.warning(f"Failed to announce added member in ticket #{ticket.number}: {e}")

        logger.info(f"Added {target.id} to ticket #{ticket.number}")
        self.audit_logger.log_member_added(ticket.number, target.id, staff.id, ticket.guild_id, channel.id)
        return target

    async def remove_member(self, channel: discord.TextChannel, staff: discord.Member, user_id: int) -> int:
        """
        Revoke a previously added member's access to a ticket channel.

        Raises:
            PermissionError: If ``staff`` is not staff
            MemberNotFoundError: If the user is not a member of the ticket
            TicketOperationError: If the permission change fails
        """
        self.require_staff(staff, "remove members from tickets")
        ticket = self.get_ticket_for_channel(channel.id)

        async with self.registry.lock_for(channel.id):
            self._ensure_current(ticket)
            if user_id not in ticket.members:
                raise MemberNotFoundError(f"User {user_id} is not a member of ticket #{ticket.number}",
                                          user_id=user_id)

            target = channel.guild.get_member(user_id)
            if target is not None:
                try:
                    await channel.set_permissions(
                        target,
                        overwrite=None,
                        reason=f"Removed from ticket #{ticket.number} by {staff}"
                    )
                except discord.HTTPException as e:
                    raise TicketOperationError(f"Failed to remove {user_id}: {e}", operation="remove_member")
            ticket.remove_member(user_id)

        try:
            await channel.send(f"👋 <@{user_id}> has been removed from this ticket.")
        except discord.HTTPException as e:
            logger.warning(f"Failed to announce removed member in ticket #{ticket.number}: {e}")

        logger.info(f"Removed {user_id} from ticket #{ticket.number}")
        self.audit_logger.log_member_removed(ticket.number, user_id, staff.id, ticket.guild_id, channel.id)
        return user_id

    # Closure

    async def generate_transcript(self, channel: discord.TextChannel) -> Optional[str]:
        """
        Format the most recent channel history, oldest message first.

        Returns:
            The transcript text, or None when history could not be read
        """
        try:
            messages = [message async for message in
                        channel.history(limit=self.config.transcript_message_limit)]
        except discord.HTTPException as e:
            logger.error(f"Failed to read history for transcript of channel {channel.id}: {e}")
            return None

        lines = []
        for message in reversed(messages):
            timestamp = message.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')
            line = f"[{timestamp}] {message.author}: {message.content or '[No content]'}"
            if message.attachments:
                line += f" [{len(message.attachments)} attachment(s)]"
            lines.append(line)

        return "\n".join(lines)

    async def _grant_resolved_role(self, guild: discord.Guild, ticket: Ticket,
                                   disposition: CloseDisposition) -> RoleOutcome:
        if disposition is not CloseDisposition.RESOLVED:
            return RoleOutcome.NOT_APPLICABLE
        if not self.config.resolved_role_id:
            return RoleOutcome.NOT_CONFIGURED

        role = guild.get_role(self.config.resolved_role_id)
        if role is None:
            logger.warning(f"Resolved role {self.config.resolved_role_id} not found in guild {guild.id}")
            return RoleOutcome.NOT_CONFIGURED

        try:
            opener = guild.get_member(ticket.opener.id) or await guild.fetch_member(ticket.opener.id)
            await opener.add_roles(role, reason=f"Ticket #{ticket.number} resolved")
        except discord.HTTPException as e:
            logger.error(f"Failed to add resolved role to {ticket.opener.id}: {e}")
            return RoleOutcome.FAILED

        return RoleOutcome.GRANTED

    async def _archive_channel(self, channel: discord.TextChannel, ticket: Ticket) -> bool:
        """
        Move a closed ticket's channel into the archive category.

        Returns:
            bool: False when archiving is not configured or failed
        """
        if not self.config.archive_category_id:
            return False

        guild = channel.guild
        category = guild.get_channel(self.config.archive_category_id)
        if not isinstance(category, discord.CategoryChannel):
            logger.warning(f"Invalid archive category {self.config.archive_category_id} for guild {guild.id}")
            return False

        overwrites = {
            guild.default_role: discord.PermissionOverwrite(send_messages=False),
            guild.me: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                manage_channels=True,
                read_message_history=True
            )
        }
        opener = guild.get_member(ticket.opener.id)
        if opener is not None:
            overwrites[opener] = discord.PermissionOverwrite(
                view_channel=True,
                send_messages=False,
                read_message_history=True
            )

        try:
            await channel.edit(
                name=f"archived-{channel.name}"[:100],
                category=category,
                sync_permissions=False,
                overwrites=overwrites,
                topic=f"ARCHIVED | Closed by: {ticket.closed_by.tag} | Reason: {ticket.close_reason}",
                reason=f"Archived ticket #{ticket.number}"
            )
        except discord.HTTPException as e:
            logger.error(f"Failed to archive channel {channel.id} for ticket #{ticket.number}: {e}")
            return False

        logger.info(f"Archived channel {channel.id} for ticket #{ticket.number}")
        return True

    async def _delete_later(self, channel: discord.TextChannel, ticket: Ticket):
        await asyncio.sleep(self.config.delete_delay_seconds)
        try:
            await channel.delete(reason=f"Closed ticket #{ticket.number}")
            logger.info(f"Deleted channel {channel.id} for ticket #{ticket.number}")
        except discord.HTTPException as e:
            logger.error(f"Failed to delete channel {channel.id} for ticket #{ticket.number}: {e}")

    def _schedule_deletion(self, channel: discord.TextChannel, ticket: Ticket):
        task = asyncio.create_task(self._delete_later(channel, ticket))
        self._pending_deletions.add(task)
        task.add_done_callback(self._pending_deletions.discard)

    async def drain_deletions(self):
        """Wait for scheduled channel deletions to finish."""
        if self._pending_deletions:
            await asyncio.gather(*self._pending_deletions, return_exceptions=True)

    async def close_ticket(self, channel: discord.TextChannel, member: discord.Member,
                           disposition: CloseDisposition) -> CloseOutcome:
        """
        Close a ticket with transcript generation and channel archiving.

        The ticket leaves the registry even when role assignment, transcript
        or archiving fail; those outcomes are reported, not raised.

        Args:
            channel: Ticket channel to close
            member: Staff member, owner or opener closing the ticket
            disposition: Resolved or declined

        Returns:
            CloseOutcome: Result of each closing step

        Raises:
            TicketNotFoundError: If the channel is not an active ticket
            PermissionError: If the member may not close this ticket
        """
        ticket = self.get_ticket_for_channel(channel.id)
        if not (self.is_staff(member) or member.id == ticket.opener.id):
            raise PermissionError(
                f"User {member.id} is not authorized to close ticket #{ticket.number}",
                required_permission="staff role, bot owner or ticket opener"
            )

        async with self.registry.lock_for(channel.id):
            self._ensure_current(ticket)
            ticket.close(Identity.from_user(member), disposition, discord.utils.utcnow())
            self.registry.remove(ticket)

        role_outcome = await self._grant_resolved_role(channel.guild, ticket, disposition)

        transcript = await self.generate_transcript(channel)
        if transcript is not None:
            record = AuditRecord(
                event_type="ticket_transcript",
                title=f"📄 Ticket #{ticket.number} Transcript",
                description=f"Transcript for {channel.name}",
                color=AuditColor.NEUTRAL
            )
            record.add_field("Ticket", f"#{ticket.number}")
            record.add_field("Opener", str(ticket.opener))
            record.add_field("Status", ticket.close_reason)
            record.add_field("Created", discord.utils.format_dt(ticket.created_at))
            record.add_field("Closed", discord.utils.format_dt(ticket.closed_at))
            record.add_field("Transcript", truncate(transcript or "No messages"), inline=False)
            await self.audit.emit(record)

        archived = await self._archive_channel(channel, ticket)
        if not archived:
            self._schedule_deletion(channel, ticket)

        logger.info(f"Closed ticket #{ticket.number} as {disposition.value} by {member.id}")
        self.audit_logger.log_ticket_closed(
            ticket.number, member.id, ticket.guild_id, channel.id,
            disposition=disposition.value,
            archived=archived,
            transcript_created=transcript is not None,
            role_outcome=role_outcome.value
        )

        record = AuditRecord(
            event_type="ticket_closed",
            title="🔒 Ticket Closed",
            description=f"Ticket #{ticket.number} closed by {member} ({member.id})",
            color=AuditColor.SUCCESS if disposition is CloseDisposition.RESOLVED else AuditColor.DANGER
        )
        record.add_field("Opener", str(ticket.opener))
        record.add_field("Disposition", disposition.value)
        record.add_field("Close Reason", ticket.close_reason)
        record.add_field("Channel", "Archived" if archived else "Deleted")
        record.add_field("Transcript", "Created" if transcript is not None else "Failed")
        record.add_field("Role Assignment", role_outcome.label)
        notification = await self.audit.emit(record)

        return CloseOutcome(
            ticket=ticket,
            disposition=disposition,
            archived=archived,
            transcript_created=transcript is not None,
            role_outcome=role_outcome,
            notification=notification
        )
