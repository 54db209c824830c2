"""
gqlcache - Cache Store Interface

The key-value contract the operation cache needs from a store: point reads
and writes with a TTL, point deletes, and literal prefix deletes for
per-user invalidation.

Values cross this boundary as plain JSON-compatible objects. Stores keep them
as JSON text (see codec.py), so a value handed in or out never aliases a
stored entry.

A store raises CacheOperationError when it cannot do its job. It does not
decide whether that is fatal; OperationCache turns it into a tagged outcome.
"""

from abc import ABC, abstractmethod
from typing import Any


class CacheInterface(ABC):
    """Async key-value store with per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Fetch a live entry.

        Returns:
            A freshly decoded copy of the stored value, or None when the key is
            absent or expired

        Raises:
            CacheOperationError: The store could not be read
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Write an entry, replacing any previous one in a single step.

        Args:
            key: Entry key
            value: JSON-serializable value
            ttl: Seconds to live (None = store default, 0 = no expiry)

        Raises:
            CacheOperationError: The value is not serializable or the store
                could not be written
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove one entry. Returns whether it existed."""

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """
        Remove every entry whose key starts with ``prefix``.

        The prefix is literal: ``*``, ``?`` and brackets match themselves. An
        empty prefix deletes nothing.

        Returns:
            Number of entries removed
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Counters and backend details for the health endpoint."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections. Called from the server lifespan on shutdown."""
