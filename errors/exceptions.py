"""
Custom exception classes for the support bot.

This module defines all custom exceptions used throughout the bot
for consistent error handling and user feedback.
"""

from typing import Optional, Dict, Any


class TicketBotError(Exception):
    """
    Base exception for all support bot errors.

    All custom exceptions in the bot should inherit from this class
    to provide consistent error handling and logging.
    """

    def __init__(self, message: str, user_message: Optional[str] = None,
                 error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize TicketBotError.

        Args:
            message: Technical error message for logging
            user_message: User-friendly error message for display
            error_code: Optional error code for categorization
            details: Optional additional error details
        """
        super().__init__(message)
        self.user_message = user_message or message
        self.error_code = error_code
        self.details = details or {}


class PermissionError(TicketBotError):
    """
    Exception raised when the caller lacks the required role or ownership.

    Raised before any state is touched, so a denied operation has no side effects.
    """

    def __init__(self, message: str, required_permission: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "You don't have permission to perform this action."

        super().__init__(message, user_message, error_code="PERMISSION_ERROR", **kwargs)
        self.required_permission = required_permission


class ConfigurationError(TicketBotError):
    """
    Exception raised for configuration-related errors.

    This includes missing settings, invalid configuration values,
    and setup issues.
    """

    def __init__(self, message: str, config_key: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "Bot configuration error. Please contact an administrator."

        super().__init__(message, user_message, error_code="CONFIG_ERROR", **kwargs)
        self.config_key = config_key


class TicketNotFoundError(TicketBotError):
    """Exception raised when an interaction's channel has no matching ticket."""

    def __init__(self, message: str, channel_id: Optional[int] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "This is not a valid ticket channel."

        super().__init__(message, user_message, error_code="TICKET_NOT_FOUND", **kwargs)
        self.channel_id = channel_id


class DuplicateTicketError(TicketBotError):
    """Exception raised when the opener already holds an active ticket."""

    def __init__(self, message: str, channel_id: Optional[int] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            if channel_id:
                user_message = f"You already have an active ticket: <#{channel_id}>"
            else:
                user_message = "You already have an active ticket."

        super().__init__(message, user_message, error_code="DUPLICATE_TICKET", **kwargs)
        self.channel_id = channel_id


class TicketCooldownError(TicketBotError):
    """
    Exception raised when a ticket is opened inside the cooldown window.

    ``retry_after`` is the remaining wait in whole seconds, rounded up.
    """

    def __init__(self, message: str, retry_after: int = 0,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = f"Please wait {retry_after} seconds before opening another ticket."

        super().__init__(message, user_message, error_code="TICKET_COOLDOWN", **kwargs)
        self.retry_after = retry_after


class TicketStateError(TicketBotError):
    """Exception raised when a transition is not allowed from the ticket's current state."""

    def __init__(self, message: str, ticket_number: Optional[int] = None,
                 user_message: Optional[str] = None, **kwargs):
        super().__init__(message, user_message, error_code="TICKET_STATE_ERROR", **kwargs)
        self.ticket_number = ticket_number


class MemberNotFoundError(TicketBotError):
    """Exception raised when a selected member cannot be resolved."""

    def __init__(self, message: str, user_id: Optional[int] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "Member not found."

        super().__init__(message, user_message, error_code="MEMBER_NOT_FOUND", **kwargs)
        self.user_id = user_id


class TicketCreationError(TicketBotError):
    """
    Exception raised when ticket creation fails.

    This covers channel creation failures and missing guild context.
    """

    def __init__(self, message: str, reason: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "Failed to create your ticket. Please try again or contact support."

        super().__init__(message, user_message, error_code="TICKET_CREATE_ERROR", **kwargs)
        self.reason = reason


class TicketOperationError(TicketBotError):
    """
    Exception raised when a platform action on a ticket channel fails.

    This includes renames and permission overwrite updates.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 user_message: Optional[str] = None, **kwargs):
        if not user_message:
            user_message = "The action failed. Check bot permissions."

        super().__init__(message, user_message, error_code="TICKET_OPERATION_ERROR", **kwargs)
        self.operation = operation


class MediaDownloadError(TicketBotError):
    """Exception raised when an attachment cannot be fetched into the media cache."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="MEDIA_DOWNLOAD_ERROR", **kwargs)
        self.url = url
