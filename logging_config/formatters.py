"""
Log formatters for the support bot.

Console and file output share one human readable layout; the audit trail
is written as one JSON object per line.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any

# Attributes every LogRecord carries; anything else was passed via ``extra``
_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'audit_data'}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _RECORD_FIELDS and not key.startswith('_')
    }


class BotFormatter(logging.Formatter):
    """
    Formatter for application logs.

    Colors the level name on terminals and can append ``extra`` fields
    as ``key=value`` pairs for file output.
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m'
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = False, include_extra: bool = False):
        self.use_colors = use_colors
        self.include_extra = include_extra
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                         datefmt='%Y-%m-%d %H:%M:%S')

    def format(self, record: logging.LogRecord) -> str:
        record_copy = logging.makeLogRecord(record.__dict__)

        if self.use_colors:
            color = self.COLORS.get(record_copy.levelname, '')
            record_copy.levelname = f"{color}{record_copy.levelname}{self.RESET}"

        formatted = super().format(record_copy)

        if self.include_extra:
            extra = _extra_fields(record)
            if extra:
                formatted += " | " + " | ".join(
                    f"{k}={json.dumps(v, default=str) if isinstance(v, (dict, list, tuple)) else v}"
                    for k, v in extra.items()
                )

        return formatted


class AuditFormatter(logging.Formatter):
    """Formats audit events as compact JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage()
        }

        audit_data = getattr(record, 'audit_data', None)
        if audit_data:
            entry.update(audit_data)

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        extra = _extra_fields(record)
        if extra:
            entry['extra'] = extra

        try:
            return json.dumps(entry, default=self._json_default, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            return f"AUDIT_LOG_ERROR: Failed to serialize audit entry: {e} | Original: {entry}"

    @staticmethod
    def _json_default(obj: Any) -> str:
        if isinstance(obj, datetime):
            return obj.isoformat()
        return str(obj)
