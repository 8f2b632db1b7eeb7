"""
Log handlers for the support bot.

Rotated log files are gzip-compressed; the audit file is kept readable by
the owner only.
"""

import logging
import logging.handlers
import gzip
import os
import shutil
import sys
from pathlib import Path
from typing import Optional


class CompressingRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Size-based rotating file handler that gzips rotated files."""

    def __init__(self, filename: str, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5,
                 encoding: Optional[str] = 'utf-8'):
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(filename=filename, maxBytes=max_bytes, backupCount=backup_count,
                         encoding=encoding)
        self.namer = self._gzip_name
        self.rotator = self._gzip_rotate

    @staticmethod
    def _gzip_name(default_name: str) -> str:
        return default_name + ".gz"

    @staticmethod
    def _gzip_rotate(source: str, dest: str):
        try:
            with open(source, 'rb') as f_in, gzip.open(dest, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
            os.remove(source)
        except OSError as e:
            # logging must not take the bot down; report on stderr like logging does
            print(f"Error compressing rotated log file {source}: {e}", file=sys.stderr)


class AuditFileHandler(CompressingRotatingFileHandler):
    """Rotating handler for the audit trail with owner-only file permissions."""

    def __init__(self, filename: str, max_bytes: int = 20 * 1024 * 1024, backup_count: int = 10,
                 encoding: Optional[str] = 'utf-8'):
        super().__init__(filename, max_bytes=max_bytes, backup_count=backup_count, encoding=encoding)
        self._secure()

    def _secure(self):
        try:
            if os.path.exists(self.baseFilename):
                os.chmod(self.baseFilename, 0o600)
        except OSError as e:
            print(f"Warning: could not restrict permissions on audit log: {e}", file=sys.stderr)

    def doRollover(self):
        super().doRollover()
        self._secure()
