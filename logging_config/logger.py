"""
Main logging configuration and setup for the support bot.

This module provides centralized logging configuration with support for
file rotation, audit logging, and structured log formatting.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any

from .formatters import BotFormatter, AuditFormatter
from .handlers import CompressingRotatingFileHandler, AuditFileHandler


class BotLogger:
    """
    Owns the root logger configuration.

    Console output plus a rotating ``bot.log`` and an error-only ``error.log``.
    """

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO"):
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_root_logger()

    def _setup_root_logger(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(BotFormatter(use_colors=sys.stdout.isatty()))
        root_logger.addHandler(console_handler)

        file_handler = CompressingRotatingFileHandler(
            filename=str(self.log_dir / "bot.log"),
            max_bytes=10 * 1024 * 1024,
            backup_count=5
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(BotFormatter(include_extra=True))
        root_logger.addHandler(file_handler)

        error_handler = CompressingRotatingFileHandler(
            filename=str(self.log_dir / "error.log"),
            max_bytes=5 * 1024 * 1024,
            backup_count=3
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(BotFormatter(include_extra=True))
        root_logger.addHandler(error_handler)

        # discord.py is chatty at INFO about gateway reconnects
        logging.getLogger('discord').setLevel(max(self.log_level, logging.WARNING))

    def setup_audit_logging(self) -> 'AuditLogger':
        return AuditLogger(self.log_dir)


class AuditLogger:
    """
    Local, structured audit trail of ticket and media events.

    Written independently of audit channel delivery so the record survives
    when Discord delivery fails.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize the audit logger.

        Args:
            log_dir: Directory for ``audit.log``; without one, events are
                only passed to handlers already attached to the ``audit`` logger
        """
        self.logger = logging.getLogger("audit")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        if log_dir is not None:
            self.logger.handlers.clear()
            audit_handler = AuditFileHandler(filename=str(Path(log_dir) / "audit.log"))
            audit_handler.setFormatter(AuditFormatter())
            self.logger.addHandler(audit_handler)

    def log_ticket_created(self, ticket_number: int, user_id: int, guild_id: int,
                           channel_id: int, reason: str):
        self._log_audit_event("TICKET_CREATED", user_id=user_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number,
                              additional_info={'reason': reason})

    def log_ticket_claimed(self, ticket_number: int, staff_id: int, guild_id: int, channel_id: int):
        self._log_audit_event("TICKET_CLAIMED", user_id=staff_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number)

    def log_ticket_unclaimed(self, ticket_number: int, staff_id: int, guild_id: int, channel_id: int):
        self._log_audit_event("TICKET_UNCLAIMED", user_id=staff_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number)

    def log_ticket_renamed(self, ticket_number: int, staff_id: int, guild_id: int,
                           channel_id: int, new_name: str):
        self._log_audit_event("TICKET_RENAMED", user_id=staff_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number,
                              additional_info={'new_name': new_name})

    def log_member_added(self, ticket_number: int, added_user_id: int, staff_id: int,
                         guild_id: int, channel_id: int):
        self._log_audit_event("MEMBER_ADDED", user_id=staff_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number,
                              additional_info={'added_user_id': added_user_id})

    def log_member_removed(self, ticket_number: int, removed_user_id: int, staff_id: int,
                           guild_id: int, channel_id: int):
        self._log_audit_event("MEMBER_REMOVED", user_id=staff_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number,
                              additional_info={'removed_user_id': removed_user_id})

    def log_ticket_closed(self, ticket_number: int, user_id: int, guild_id: int, channel_id: int,
                          disposition: str, archived: bool, transcript_created: bool,
                          role_outcome: str):
        self._log_audit_event("TICKET_CLOSED", user_id=user_id, guild_id=guild_id,
                              channel_id=channel_id, ticket_number=ticket_number,
                              additional_info={
                                  'disposition': disposition,
                                  'channel_outcome': 'archived' if archived else 'deleted',
                                  'transcript_created': transcript_created,
                                  'role_outcome': role_outcome
                              })

    def log_media_cached(self, message_id: int, user_id: int, channel_id: int, file_count: int):
        self._log_audit_event("MEDIA_CACHED", user_id=user_id, channel_id=channel_id,
                              additional_info={'message_id': message_id, 'file_count': file_count})

    def log_media_replayed(self, message_id: int, user_id: Optional[int], channel_id: int,
                           file_count: int):
        self._log_audit_event("MEDIA_REPLAYED", user_id=user_id, channel_id=channel_id,
                              additional_info={'message_id': message_id, 'file_count': file_count})

    def log_media_evicted(self, message_id: int, reason: str):
        self._log_audit_event("MEDIA_EVICTED",
                              additional_info={'message_id': message_id, 'reason': reason})

    def log_notification(self, event_type: str, title: str, delivery: str,
                         fields: Optional[Dict[str, Any]] = None):
        info = {'title': title, 'delivery': delivery}
        if fields:
            info['fields'] = fields
        self._log_audit_event("NOTIFICATION", additional_info=dict(info, notification_type=event_type))

    def log_permission_denied(self, command_name: str, user_id: int, guild_id: Optional[int],
                              channel_id: Optional[int], required_permission: str):
        self._log_audit_event("PERMISSION_DENIED", user_id=user_id, guild_id=guild_id,
                              channel_id=channel_id,
                              additional_info={
                                  'command_name': command_name,
                                  'required_permission': required_permission
                              })

    def _log_audit_event(self, event_type: str, user_id: Optional[int] = None,
                         guild_id: Optional[int] = None, channel_id: Optional[int] = None,
                         ticket_number: Optional[int] = None,
                         additional_info: Optional[Dict[str, Any]] = None):
        event_data = {
            'event_type': event_type,
            'user_id': user_id,
            'guild_id': guild_id,
            'channel_id': channel_id,
            'ticket_number': ticket_number
        }

        if additional_info:
            event_data.update(additional_info)

        event_data = {k: v for k, v in event_data.items() if v is not None}
        self.logger.info("Audit event", extra={'audit_data': event_data})


# Global logger instances
_logger_instance: Optional[BotLogger] = None
_audit_logger_instance: Optional[AuditLogger] = None


def setup_logging(log_dir: str = "logs", log_level: str = "INFO") -> BotLogger:
    """
    Setup global logging configuration.

    Args:
        log_dir: Directory to store log files
        log_level: Default log level

    Returns:
        BotLogger: Configured logger instance
    """
    global _logger_instance, _audit_logger_instance

    _logger_instance = BotLogger(log_dir, log_level)
    _audit_logger_instance = _logger_instance.setup_audit_logging()

    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module; configuration is owned by ``setup_logging``."""
    return logging.getLogger(name)


def get_audit_logger() -> AuditLogger:
    """
    Get the global audit logger instance.

    Before ``setup_logging`` runs this returns an audit logger without a
    file handler, so library code and tests never create log files.
    """
    global _audit_logger_instance

    if _audit_logger_instance is None:
        _audit_logger_instance = AuditLogger()

    return _audit_logger_instance
