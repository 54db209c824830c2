"""
gqlcache - Cache Outcomes

Tagged results for cache steps. A cache-store failure is a CacheStatus.ERROR
value, not an exception, so callers can log it but cannot mistake it for a
data error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CacheStatus(str, Enum):
    """What the cache contributed to a read."""

    HIT = "HIT"
    MISS = "MISS"
    ERROR = "ERROR"  # store failed; answered from the backend
    BYPASS = "BYPASS"  # operation not cacheable


@dataclass(frozen=True)
class CacheLookup:
    """Result of looking a key up in the store."""

    status: CacheStatus
    value: Any = None
    error: Exception | None = None

    @property
    def hit(self) -> bool:
        return self.status is CacheStatus.HIT


@dataclass(frozen=True)
class ReadResult:
    """Response of a read-through call plus the cache status that produced it."""

    value: Any
    status: CacheStatus
    stored: bool = False


@dataclass(frozen=True)
class InvalidationResult:
    """Outcome of invalidating after a write."""

    operation: str
    targets: frozenset[str] = field(default_factory=frozenset)
    deleted: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
