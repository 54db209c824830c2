"""
gqlcache - Memory Cache Backend

Single-process store: an LRU of JSON-encoded entries with lazy TTL expiry.
Used for development, single-worker deployments and tests.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, NamedTuple

from ..codec import decode_value, encode_value
from ..interface import CacheInterface

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    payload: str
    expires_at: float | None


class MemoryCacheBackend(CacheInterface):
    """
    In-memory cache backend with LRU eviction.

    Entries are kept as JSON text, exactly as the Redis backend keeps them,
    so every hit decodes a new object and callers cannot mutate the store.
    Expiry is checked when an entry is read; dead entries are not swept in
    the background.
    """

    def __init__(
        self,
        max_size: int = 10000,
        default_ttl: int = 300,
        namespace: str = "",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize memory cache backend.

        Args:
            max_size: Entry limit; the least recently used entry goes first
            default_ttl: TTL in seconds when set() gets None (0 = no expiry)
            namespace: Key prefix (empty = keys stored as-is)
            clock: Current time in seconds
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.namespace = namespace
        self._clock = clock

        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0
        self._expirations = 0

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _live(self, stored_key: str) -> _Entry | None:
        """Entry under stored_key, dropping it if the clock has reached its expiry."""
        entry = self._entries.get(stored_key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[stored_key]
            self._expirations += 1
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        if not key:
            logger.warning("Ignoring cache read with an empty key")
            return None

        async with self._lock:
            stored_key = self._key(key)
            entry = self._live(stored_key)
            if entry is None:
                self._misses += 1
                return None

            self._entries.move_to_end(stored_key)
            self._hits += 1
            payload = entry.payload

        return decode_value(payload)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if not key:
            logger.warning("Ignoring cache write with an empty key")
            return False

        payload = encode_value(value)
        seconds = self.default_ttl if ttl is None else ttl

        async with self._lock:
            stored_key = self._key(key)
            expires_at = self._clock() + seconds if seconds > 0 else None

            if stored_key not in self._entries and len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted least recently used entry", extra={"cache_key": evicted})

            self._entries[stored_key] = _Entry(payload, expires_at)
            self._entries.move_to_end(stored_key)
            self._sets += 1
            return True

    async def delete(self, key: str) -> bool:
        if not key:
            return False

        async with self._lock:
            if self._entries.pop(self._key(key), None) is None:
                return False
            self._deletes += 1
            return True

    async def delete_prefix(self, prefix: str) -> int:
        if not prefix:
            logger.warning("Refusing to delete with an empty prefix")
            return 0

        async with self._lock:
            stored_prefix = self._key(prefix)
            matched = [k for k in self._entries if k.startswith(stored_prefix)]
            for stored_key in matched:
                del self._entries[stored_key]
            self._deletes += len(matched)
            return len(matched)

    async def get_stats(self) -> dict[str, Any]:
        async with self._lock:
            lookups = self._hits + self._misses
            return {
                "backend": "memory",
                "namespace": self.namespace,
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / lookups * 100, 2) if lookups else 0.0,
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

    async def close(self) -> None:
        async with self._lock:
            self._entries.clear()
        logger.debug("Memory cache backend closed", extra={"namespace": self.namespace})
