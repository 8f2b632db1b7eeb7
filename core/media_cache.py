"""
Short-lived cache of message attachments.

Attachments are downloaded when a message arrives so that, if the message
is deleted later, the media can still be replayed to the audit channel.
Entries expire after a fixed retention window.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import aiohttp
import discord

from core.audit_emitter import AuditColor, AuditEmitter, AuditRecord, truncate
from errors.exceptions import MediaDownloadError
from logging_config import AuditLogger, get_audit_logger
from models.media import CachedMediaEntry

logger = logging.getLogger(__name__)

MEDIA_PREFIXES = ('image/', 'video/', 'audio/')
CHUNK_SIZE = 64 * 1024


def is_cacheable(attachment) -> bool:
    """True for attachments declaring an image, video or audio content type."""
    content_type = getattr(attachment, 'content_type', None) or ''
    return content_type.startswith(MEDIA_PREFIXES)


@dataclass
class SweepResult:
    entries_evicted: int = 0
    orphans_removed: int = 0


class MediaCache:
    """
    Owns every ``CachedMediaEntry`` and the files under ``cache_dir``.

    Entries are only recorded once all downloads for their message have
    finished, so eviction never races a half-built entry. Each entry gets
    its own expiry timer; ``sweep`` is the fallback for anything a timer
    missed. A deletion that arrives while downloads are still running is
    remembered, and the late files are discarded instead of recorded.
    """

    def __init__(self, cache_dir, audit: AuditEmitter, retention_seconds: int = 1800,
                 download_timeout: int = 30, session: Optional[aiohttp.ClientSession] = None,
                 audit_logger: Optional[AuditLogger] = None):
        self.cache_dir = Path(cache_dir)
        self.audit = audit
        self.retention_seconds = retention_seconds
        self.download_timeout = download_timeout
        self.audit_logger = audit_logger or get_audit_logger()
        self._session = session
        self._owns_session = session is None
        self._entries: Dict[int, CachedMediaEntry] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._expiry_tasks: Dict[int, asyncio.Task] = {}
        # message id -> time a deletion was seen without a recorded entry
        self._deleted: Dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, message_id: int) -> bool:
        return message_id in self._entries

    def get(self, message_id: int) -> Optional[CachedMediaEntry]:
        return self._entries.get(message_id)

    def _lock_for(self, message_id: int) -> asyncio.Lock:
        lock = self._locks.get(message_id)
        if lock is None:
            lock = self._locks[message_id] = asyncio.Lock()
        return lock

    async def start(self):
        """Create the cache directory and the shared HTTP session."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self):
        for task in self._expiry_tasks.values():
            task.cancel()
        self._expiry_tasks.clear()

        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _download(self, url: str, dest: Path):
        """Stream ``url`` into ``dest``. Any partial file is removed on failure."""
        if self._session is None:
            await self.start()

        timeout = aiohttp.ClientTimeout(total=self.download_timeout)
        try:
            async with self._session.get(url, timeout=timeout) as resp:
                if resp.status != 200:
                    raise MediaDownloadError(f"HTTP {resp.status} fetching {url}", url=url)
                with open(dest, 'wb') as f:
                    async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)
        except MediaDownloadError:
            dest.unlink(missing_ok=True)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            dest.unlink(missing_ok=True)
            raise MediaDownloadError(f"Failed to download {url}: {e}", url=url) from e

    async def on_message(self, message: discord.Message) -> Optional[CachedMediaEntry]:
        """
        Cache the qualifying attachments of a newly posted message.

        Failed downloads are logged and skipped; the remaining attachments
        are still cached.

        Returns:
            The recorded entry, or None when nothing was cached
        """
        if message.author.bot:
            return None

        attachments = [a for a in message.attachments if is_cacheable(a)]
        if not attachments:
            return None

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        files: List[Path] = []
        urls: List[str] = []

        for attachment in attachments:
            basename = os.path.basename(attachment.filename) or "attachment"
            dest = self.cache_dir / f"{message.id}_{int(time.time() * 1000)}_{basename}"
            try:
                await self._download(attachment.url, dest)
            except MediaDownloadError as e:
                logger.warning(f"Failed to cache media for message {message.id}: {e}")
                continue
            files.append(dest)
            urls.append(attachment.url)

        if not files:
            return None

        entry = CachedMediaEntry(
            message_id=message.id,
            author_id=message.author.id,
            author_tag=str(message.author),
            channel_id=message.channel.id,
            timestamp=time.time(),
            files=files,
            urls=urls
        )
        async with self._lock_for(message.id):
            if message.id in self._deleted:
                self._discard_files(files)
                logger.debug(f"Message {message.id} was deleted while downloading; discarded its media")
                return None

            self._entries[message.id] = entry
            self._expiry_tasks[message.id] = asyncio.create_task(
                self._expire_later(message.id, self.retention_seconds)
            )

        logger.debug(f"Cached {len(files)} file(s) for message {message.id}")
        self.audit_logger.log_media_cached(message.id, message.author.id, message.channel.id, len(files))
        return entry

    async def on_message_deleted(self, message_id: int, channel_id: int,
                                 author: Optional[discord.abc.User] = None,
                                 content: Optional[str] = None) -> int:
        """
        Replay cached media for a deleted message, then evict it.

        Returns:
            int: Number of media notifications emitted (0 means a plain deletion notice was sent)
        """
        if author is not None and author.bot:
            return 0

        author_tag = str(author) if author is not None else "Unknown"
        author_id = author.id if author is not None else "Unknown"

        async with self._lock_for(message_id):
            entry = self._entries.get(message_id)

            if entry is None:
                self._deleted[message_id] = time.time()
                record = AuditRecord(
                    event_type="message_deleted",
                    title="🗑️ Message Deleted",
                    description=f"**Channel:** <#{channel_id}>\n**Author:** {author_tag} ({author_id})",
                    color=AuditColor.DANGER
                )
                record.add_field("Content", truncate(content or "No text content"), inline=False)
                record.add_field("Deleted At", discord.utils.utcnow().isoformat())
                await self.audit.emit(record)
                total = 0
            else:
                total = await self._replay(entry)
                self._evict_locked(message_id, "message deleted")

        self._locks.pop(message_id, None)
        return total

    async def _replay(self, entry: CachedMediaEntry) -> int:
        """Emit one notification per cached file, in original attachment order."""
        total = len(entry.files)
        for index, (path, url) in enumerate(zip(entry.files, entry.urls), start=1):
            record = AuditRecord(
                event_type="media_replayed",
                title=f"📸 Deleted Media {index}/{total}",
                description=(f"**Original Message:** {entry.message_id}\n"
                             f"**Author:** {entry.author_tag}\n"
                             f"**Channel:** <#{entry.channel_id}>"),
                color=AuditColor.MEDIA
            )
            record.add_field("Original URL", truncate(url), inline=False)
            await self.audit.emit(
                record,
                file_path=path if path.exists() else None,
                filename=f"deleted_media_{entry.message_id}_{index}{path.suffix}"
            )

        self.audit_logger.log_media_replayed(entry.message_id, entry.author_id, entry.channel_id, total)
        return total

    async def _expire_later(self, message_id: int, delay: float):
        await asyncio.sleep(delay)
        self._expiry_tasks.pop(message_id, None)
        await self.evict(message_id, "expired")

    def _discard_files(self, files: List[Path]):
        for path in files:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Failed to delete cached file {path}: {e}")

    def _evict_locked(self, message_id: int, reason: str) -> bool:
        timer = self._expiry_tasks.pop(message_id, None)
        if timer is not None:
            timer.cancel()

        entry = self._entries.pop(message_id, None)
        if entry is None:
            return False

        self._discard_files(entry.files)
        self.audit_logger.log_media_evicted(message_id, reason)
        return True

    async def evict(self, message_id: int, reason: str = "evicted") -> bool:
        """
        Remove an entry and its files. Evicting an absent entry is a no-op.

        Returns:
            bool: True when an entry was removed
        """
        async with self._lock_for(message_id):
            removed = self._evict_locked(message_id, reason)
        self._locks.pop(message_id, None)
        return removed

    async def sweep(self, now: Optional[float] = None) -> SweepResult:
        """Evict expired entries, then remove expired files no live entry references."""
        now = time.time() if now is None else now
        result = SweepResult()

        for message_id, entry in list(self._entries.items()):
            if entry.is_expired(now, self.retention_seconds):
                if await self.evict(message_id, "expired"):
                    result.entries_evicted += 1

        for message_id, seen_at in list(self._deleted.items()):
            if now - seen_at >= self.retention_seconds:
                del self._deleted[message_id]

        if not self.cache_dir.exists():
            return result

        tracked = {path.name for entry in self._entries.values() for path in entry.files}
        for path in self.cache_dir.iterdir():
            if not path.is_file() or path.name in tracked:
                continue
            try:
                if now - path.stat().st_mtime >= self.retention_seconds:
                    path.unlink(missing_ok=True)
                    result.orphans_removed += 1
            except OSError as e:
                logger.error(f"Failed to clean up old cached file {path}: {e}")

        if result.entries_evicted or result.orphans_removed:
            logger.info(f"Media sweep evicted {result.entries_evicted} entries "
                        f"and removed {result.orphans_removed} orphaned files")
        return result

    async def purge_all(self) -> int:
        """
        Drop every entry and every file in the cache directory.

        Returns:
            int: Number of files removed
        """
        for message_id in list(self._entries):
            await self.evict(message_id, "purged")
        self._deleted.clear()

        removed = 0
        if self.cache_dir.exists():
            for path in self.cache_dir.iterdir():
                if not path.is_file():
                    continue
                try:
                    path.unlink(missing_ok=True)
                    removed += 1
                except OSError as e:
                    logger.error(f"Failed to purge cached file {path}: {e}")

        logger.info(f"Media cache purged ({removed} files removed)")
        return removed
