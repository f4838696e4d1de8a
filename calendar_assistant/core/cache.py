"""
Duplicate-call cache for side-effecting tool operations.

Provides:
- Content-hash keys over the semantically relevant argument subset
- Time-windowed entries (default 10 seconds)
- Size-bounded storage with oldest-first eviction (default 5 entries)
- Cache statistics and monitoring

Usage:
    cache = DuplicateCallCache(window_seconds=10, max_size=5)

    key = cache.make_key("create_email_draft", relevant_args)
    entry = cache.get(key)
    if entry:
        return entry.cached_result

    result = await handler(**args)
    cache.put(key, "create_email_draft", args, result)
"""

from __future__ import annotations

import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from loguru import logger


@dataclass
class DuplicateCacheEntry:
    """A remembered side-effecting call and its result."""
    key: str
    name: str
    arguments: Dict[str, Any]
    timestamp_ms: float
    cached_result: Any
    hit_count: int = 0


@dataclass
class CacheStats:
    """Cache statistics."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": round(self.hit_ratio, 3),
            "evictions": self.evictions,
            "expirations": self.expirations,
        }


class DuplicateCallCache:
    """
    Bounded, time-windowed memo of recent side-effecting calls.

    Not thread-safe: the router processes one call at a time.
    """

    def __init__(
        self,
        window_seconds: float = 10.0,
        max_size: int = 5,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the cache.

        Args:
            window_seconds: How long an entry suppresses re-execution
            max_size: Maximum number of remembered calls
            clock: Returns the current time in seconds (default: time.time)
        """
        self.window_ms = window_seconds * 1000.0
        self.max_size = max_size
        self._clock = clock or time.time
        self._entries: OrderedDict[str, DuplicateCacheEntry] = OrderedDict()
        self.stats = CacheStats()

    @staticmethod
    def make_key(name: str, relevant: Dict[str, Any]) -> str:
        """Hash an operation name and its normalized relevant arguments."""
        payload = json.dumps({"name": name, "args": relevant}, sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _is_expired(self, entry: DuplicateCacheEntry, now_ms: float) -> bool:
        return now_ms - entry.timestamp_ms >= self.window_ms

    def purge_expired(self) -> int:
        """Remove entries older than the window."""
        now_ms = self._now_ms()
        expired = [k for k, v in self._entries.items() if self._is_expired(v, now_ms)]
        for key in expired:
            del self._entries[key]
        self.stats.expirations += len(expired)
        return len(expired)

    def get(self, key: str) -> Optional[DuplicateCacheEntry]:
        """Return a live entry for the key, or None."""
        self.purge_expired()

        entry = self._entries.get(key)
        if entry is None:
            self.stats.misses += 1
            return None

        entry.hit_count += 1
        self.stats.hits += 1
        logger.debug(f"Duplicate call suppressed: {entry.name} (key={key[:12]})")
        return entry

    def put(
        self,
        key: str,
        name: str,
        arguments: Dict[str, Any],
        result: Any,
    ) -> DuplicateCacheEntry:
        """Remember a completed call."""
        self.purge_expired()

        entry = DuplicateCacheEntry(
            key=key,
            name=name,
            arguments=dict(arguments),
            timestamp_ms=self._now_ms(),
            cached_result=result,
        )

        if key in self._entries:
            del self._entries[key]
        self._entries[key] = entry

        # Oldest first
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)
            self.stats.evictions += 1

        return entry

    def entries(self) -> List[DuplicateCacheEntry]:
        return list(self._entries.values())

    def clear(self) -> int:
        """Clear all entries."""
        count = len(self._entries)
        self._entries.clear()
        return count

    @property
    def size(self) -> int:
        return len(self._entries)


__all__ = ["DuplicateCallCache", "DuplicateCacheEntry", "CacheStats"]
