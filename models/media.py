"""
Cached media data model.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class CachedMediaEntry:
    """
    Attachments pre-fetched for a single message.

    ``files`` and ``urls`` are parallel lists in original attachment order.
    ``timestamp`` is the epoch time the entry was recorded and drives eviction.
    """
    message_id: int
    author_id: int
    author_tag: str
    channel_id: int
    timestamp: float
    files: List[Path] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_expired(self, now: float, retention_seconds: float) -> bool:
        return self.age(now) >= retention_seconds
