#!/usr/bin/env python3
"""Bounded store for rewritten sources.

RoutingFilter.through() keys each rewrite by the sha256 fingerprint of
the source it was computed from and keeps the result here. Entries are
evicted least recently used first once either the entry count or the
byte budget is exceeded, and expire after a fixed lifetime.

Example:
    >>> cache = LRUCache(CacheConfig(max_entries=100, max_size_bytes=1 << 20, ttl_seconds=60))
    >>> cache.set("fingerprint", b"rewritten")
    >>> cache.has("fingerprint")
    True
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional

from restream.core.constants import ConfigKey, Limits

MEGABYTE = 1024 * 1024

# Size charged for values that are neither bytes nor str
OPAQUE_VALUE_SIZE = 256


class CacheEntry(NamedTuple):
    value: Any
    size: int
    stored_at: float


@dataclass
class CacheConfig:
    """Limits of an LRUCache."""

    max_entries: int = Limits.CACHE_MAX_ENTRIES
    max_size_bytes: int = Limits.CACHE_MAX_SIZE_MB * MEGABYTE
    ttl_seconds: float = Limits.CACHE_TTL_SECONDS
    enabled: bool = True

    def validate(self) -> None:
        """Reject non-positive limits.

        Raises:
            ValueError: Naming the first offending field
        """
        for field_name in ("max_entries", "max_size_bytes", "ttl_seconds"):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive: {value}")


class LRUCache:
    """Thread-safe store offering the has/get/set contract of through()."""

    def __init__(self, config: Optional[CacheConfig] = None):
        """Initialize cache.

        Args:
            config: Limits (defaults from Limits if None)

        Raises:
            ValueError: If a limit is not positive
        """
        self.config = config if config is not None else CacheConfig()
        self.config.validate()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._size = 0
        self._counters = dict.fromkeys(("hits", "misses", "evictions", "expirations"), 0)

    def _live(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if time.time() - entry.stored_at > self.config.ttl_seconds:
            self._drop(key)
            self._counters["expirations"] += 1
            return None

        return entry

    def _drop(self, key: str) -> None:
        self._size -= self._entries.pop(key).size

    def has(self, key: str) -> bool:
        """Check for an unexpired entry; counters and recency are left alone."""
        if not self.config.enabled:
            return False

        with self._lock:
            return self._live(key) is not None

    def get(self, key: str) -> Optional[Any]:
        """Return the value stored under key and mark it most recently used.

        Returns:
            The value, or None if absent or expired
        """
        with self._lock:
            entry = self._live(key) if self.config.enabled else None
            if entry is None:
                self._counters["misses"] += 1
                return None

            self._entries.move_to_end(key)
            self._counters["hits"] += 1
            return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store value under key, evicting older entries to make room.

        Values larger than the whole byte budget are not stored.
        """
        if not self.config.enabled:
            return

        size = len(value) if isinstance(value, (bytes, str)) else OPAQUE_VALUE_SIZE

        with self._lock:
            if key in self._entries:
                self._drop(key)

            if size > self.config.max_size_bytes:
                return

            while self._entries and (
                len(self._entries) >= self.config.max_entries
                or self._size + size > self.config.max_size_bytes
            ):
                self._drop(next(iter(self._entries)))
                self._counters["evictions"] += 1

            self._entries[key] = CacheEntry(value, size, time.time())
            self._size += size

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._size = 0

    def get_stats(self) -> Dict[str, Any]:
        """Entry count, byte usage and hit/miss counters."""
        with self._lock:
            requests = self._counters["hits"] + self._counters["misses"]
            return {
                "entries": len(self._entries),
                "size_bytes": self._size,
                "hit_rate": self._counters["hits"] / requests if requests else 0.0,
                **self._counters,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def cache_from_config(config) -> LRUCache:
    """Build an LRUCache from the restream.cache section of a ConfigManager.

    Args:
        config: ConfigManager instance

    Returns:
        Configured cache
    """
    size_mb = int(config.get(ConfigKey.CACHE_SIZE_MB, Limits.CACHE_MAX_SIZE_MB))
    return LRUCache(
        CacheConfig(
            max_entries=int(config.get(ConfigKey.CACHE_MAX_ENTRIES, Limits.CACHE_MAX_ENTRIES)),
            max_size_bytes=size_mb * MEGABYTE,
            ttl_seconds=float(config.get(ConfigKey.CACHE_TTL, Limits.CACHE_TTL_SECONDS)),
        )
    )
