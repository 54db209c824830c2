"""
gqlcache - Cache Policy

Immutable TTL and invalidation tables, built once and injected into the
operation cache. Tests and deployments construct reduced or overridden
policies instead of patching module globals.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ..errors import ConfigurationError
from .tables import CACHEABLE_QUERIES, INVALIDATION_MAP

logger = logging.getLogger(__name__)

_EMPTY: frozenset[str] = frozenset()


@dataclass(frozen=True)
class CachePolicy:
    """
    Which queries are cached, for how long, and what each mutation invalidates.

    Attributes:
        ttls: Query operation name -> TTL in seconds. Absent means never cached.
        invalidations: Mutation operation name -> query names it makes stale.
    """

    ttls: Mapping[str, int] = field(default_factory=dict)
    invalidations: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and freeze the tables."""
        ttls: dict[str, int] = {}
        for name, ttl in self.ttls.items():
            if not name:
                raise ConfigurationError("TTL table contains an empty operation name")
            if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
                raise ConfigurationError(
                    f"TTL for {name} must be a non-negative integer",
                    details={"operation": name, "ttl": ttl},
                )
            ttls[name] = ttl

        invalidations: dict[str, frozenset[str]] = {}
        for name, targets in self.invalidations.items():
            if not name:
                raise ConfigurationError("Invalidation table contains an empty operation name")
            if isinstance(targets, str):
                raise ConfigurationError(
                    f"Invalidation targets for {name} must be a collection of operation names",
                    details={"operation": name, "targets": targets},
                )
            invalidations[name] = frozenset(targets)

        object.__setattr__(self, "ttls", MappingProxyType(ttls))
        object.__setattr__(self, "invalidations", MappingProxyType(invalidations))

        uncached = sorted({t for targets in invalidations.values() for t in targets} - ttls.keys())
        if uncached:
            logger.debug("Invalidation targets without a TTL (never cached): %s", ", ".join(uncached))

    @classmethod
    def default(cls) -> CachePolicy:
        """The finance API tables."""
        return cls(ttls=CACHEABLE_QUERIES, invalidations=INVALIDATION_MAP)

    def with_overrides(
        self,
        ttls: Mapping[str, int] | None = None,
        invalidations: Mapping[str, Iterable[str]] | None = None,
    ) -> CachePolicy:
        """
        Return a new policy with entries merged over this one.

        Args:
            ttls: TTL entries to add or replace
            invalidations: Invalidation entries to add or replace

        Returns:
            New CachePolicy; this instance is unchanged
        """
        merged_ttls = {**self.ttls, **(ttls or {})}
        merged_invalidations: dict[str, Iterable[str]] = {**self.invalidations, **(invalidations or {})}
        return CachePolicy(ttls=merged_ttls, invalidations=merged_invalidations)

    def get_cache_ttl(self, operation_name: str) -> int | None:
        """TTL in seconds, or None when the operation is never cached."""
        return self.ttls.get(operation_name)

    def get_invalidation_targets(self, operation_name: str) -> frozenset[str]:
        """Query names a successful write invalidates; empty when unknown."""
        return self.invalidations.get(operation_name, _EMPTY)

    def is_cacheable(self, operation_name: str) -> bool:
        return operation_name in self.ttls

    def cacheable_operations(self) -> frozenset[str]:
        return frozenset(self.ttls)

    def write_operations(self) -> frozenset[str]:
        return frozenset(self.invalidations)
