"""
Logging configuration module for the support bot.

This module provides logging setup including file rotation, the JSON audit
trail, and structured logging for all bot operations.
"""

from .logger import setup_logging, get_logger, get_audit_logger, AuditLogger
from .formatters import BotFormatter, AuditFormatter
from .handlers import CompressingRotatingFileHandler, AuditFileHandler

__all__ = [
    'setup_logging',
    'get_logger',
    'get_audit_logger',
    'AuditLogger',
    'BotFormatter',
    'AuditFormatter',
    'CompressingRotatingFileHandler',
    'AuditFileHandler'
]
