"""
Error handling utilities and decorators for the support bot.

This module provides the decorator that wraps every interaction callback so
that each caller-initiated operation gets exactly one acknowledgment, plus
the helpers used to log and format errors.
"""

import logging
import traceback
import functools
from typing import Optional, Callable

import discord

from .exceptions import (
    TicketBotError, PermissionError, TicketCooldownError, DuplicateTicketError,
    TicketNotFoundError
)

logger = logging.getLogger(__name__)

# Errors that are ordinary rejections rather than faults
EXPECTED_ERROR_CODES = {
    'PERMISSION_ERROR', 'TICKET_NOT_FOUND', 'DUPLICATE_TICKET', 'TICKET_COOLDOWN',
    'TICKET_STATE_ERROR', 'MEMBER_NOT_FOUND'
}


def log_error(error: Exception, context: Optional[str] = None,
              user_id: Optional[int] = None, guild_id: Optional[int] = None,
              additional_info: Optional[dict] = None) -> None:
    """
    Log an error with context information.

    Args:
        error: The exception that occurred
        context: Additional context about where the error occurred
        user_id: ID of the user involved (if applicable)
        guild_id: ID of the guild involved (if applicable)
        additional_info: Additional information to log
    """
    error_info = {
        'error_type': type(error).__name__,
        'error_message': str(error),
        'context': context,
        'user_id': user_id,
        'guild_id': guild_id
    }

    if additional_info:
        error_info.update(additional_info)

    if isinstance(error, TicketBotError):
        if error.error_code in EXPECTED_ERROR_CODES:
            logger.info(f"Rejected: {error_info}")
        else:
            logger.error(f"Bot error: {error_info}")
    else:
        logger.error(f"Unexpected error: {error_info}", exc_info=error)


def format_error_message(error: Exception, include_details: bool = False) -> str:
    """
    Format an error message for display to users.

    Args:
        error: The exception to format
        include_details: Whether to include technical details

    Returns:
        str: Formatted error message
    """
    if isinstance(error, TicketBotError):
        message = error.user_message
        if include_details and error.details:
            details = ", ".join(f"{k}: {v}" for k, v in error.details.items())
            message += f"\n\n**Details:** {details}"
        return message
    return "An unexpected error occurred. Please try again later."


def error_title(error: Exception) -> str:
    """Embed title for an error shown to the caller."""
    if isinstance(error, PermissionError):
        return "❌ Permission Denied"
    if isinstance(error, TicketCooldownError):
        return "⏱️ Slow Down"
    if isinstance(error, DuplicateTicketError):
        return "❌ Ticket Already Exists"
    if isinstance(error, TicketNotFoundError):
        return "❌ Not a Ticket Channel"
    if isinstance(error, TicketBotError):
        return "❌ Error"
    return "❌ Unexpected Error"


async def send_error_embed(interaction: discord.Interaction, title: str, description: str,
                           color: discord.Color = discord.Color.red(),
                           ephemeral: bool = True) -> None:
    """
    Send an error embed as the interaction's acknowledgment.

    Uses the followup webhook when the interaction was already responded to
    or deferred.
    """
    embed = discord.Embed(
        title=title,
        description=description,
        color=color,
        timestamp=discord.utils.utcnow()
    )

    try:
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=ephemeral)
    except discord.HTTPException as e:
        logger.error(f"Failed to send error embed: {e}")


def handle_errors(func: Callable) -> Callable:
    """
    Decorator for handling errors in interaction callbacks.

    Catches exceptions, logs them appropriately, and answers the interaction
    with a user-friendly error message.
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        interaction = None
        for arg in args:
            if isinstance(arg, discord.Interaction):
                interaction = arg
                break

        user_id = interaction.user.id if interaction else None
        guild_id = interaction.guild.id if interaction and interaction.guild else None

        try:
            return await func(*args, **kwargs)

        except TicketBotError as e:
            log_error(e, context=func.__name__, user_id=user_id, guild_id=guild_id)

            if isinstance(e, PermissionError) and interaction:
                # Imported here to keep errors importable without logging side effects
                from logging_config import get_audit_logger
                get_audit_logger().log_permission_denied(
                    command_name=func.__name__,
                    user_id=user_id,
                    guild_id=guild_id,
                    channel_id=interaction.channel_id,
                    required_permission=e.required_permission or "staff"
                )

            if interaction:
                color = discord.Color.red()
                if isinstance(e, (PermissionError, TicketCooldownError, DuplicateTicketError)):
                    color = discord.Color.orange()
                await send_error_embed(interaction, error_title(e), format_error_message(e), color=color)

        except discord.Forbidden as e:
            log_error(e, context=func.__name__, user_id=user_id, guild_id=guild_id)
            if interaction:
                await send_error_embed(
                    interaction,
                    "❌ Permission Error",
                    "The bot doesn't have permission to perform this action. Please check bot permissions."
                )

        except discord.HTTPException as e:
            log_error(e, context=func.__name__, user_id=user_id, guild_id=guild_id)
            if interaction:
                await send_error_embed(
                    interaction,
                    "❌ API Error",
                    "A Discord API error occurred. Please try again later."
                )

        except Exception as e:
            log_error(e, context=func.__name__, user_id=user_id, guild_id=guild_id,
                      additional_info={'traceback': traceback.format_exc()})
            if interaction:
                await send_error_embed(
                    interaction,
                    error_title(e),
                    "An unexpected error occurred. The issue has been logged and will be investigated."
                )

    return wrapper
