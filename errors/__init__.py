"""
Error handling module for the support bot.

This module provides custom exception classes and error handling utilities
for consistent error management across the bot.
"""

from .exceptions import (
    TicketBotError,
    PermissionError,
    ConfigurationError,
    TicketNotFoundError,
    DuplicateTicketError,
    TicketCooldownError,
    TicketStateError,
    MemberNotFoundError,
    TicketCreationError,
    TicketOperationError,
    MediaDownloadError
)

from .handlers import (
    handle_errors,
    send_error_embed,
    format_error_message,
    error_title,
    log_error
)

__all__ = [
    # Exception classes
    'TicketBotError',
    'PermissionError',
    'ConfigurationError',
    'TicketNotFoundError',
    'DuplicateTicketError',
    'TicketCooldownError',
    'TicketStateError',
    'MemberNotFoundError',
    'TicketCreationError',
    'TicketOperationError',
    'MediaDownloadError',

    # Handler functions
    'handle_errors',
    'send_error_embed',
    'format_error_message',
    'error_title',
    'log_error'
]
