"""
gqlcache - Operation Cache

Read-through cache for named GraphQL reads with mutation-driven invalidation.

Flow:
- read_through: live entry -> served without calling the backend; miss,
  expired entry or store failure -> backend fetch, stored only when the
  operation has a TTL in the policy.
- invalidate_after_write: after a committed write, delete every entry of
  every dependent read for the acting user, whatever its arguments.

Every store failure fails open: it is reported to the observability channel
and surfaces as CacheStatus.ERROR or InvalidationResult.error, never as an
exception. Backend (fetch_fn) failures propagate unchanged and leave the
cache untouched.

No locking is done across calls. A read that started before an
invalidation may repopulate its key with pre-write data; the TTL bounds
that window.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from ..cache.interface import CacheInterface
from ..observability import ObservabilityAdapter, get_observability
from .keys import DEFAULT_KEY_PREFIX, operation_prefix, resolve_cache_key
from .outcomes import CacheLookup, CacheStatus, InvalidationResult, ReadResult
from .policy import CachePolicy

logger = logging.getLogger(__name__)

Arguments = Mapping[str, Any] | None
FetchFn = Callable[[str, Arguments], Awaitable[Any]]

_ENTRY_FIELD = "value"


class OperationCache:
    """
    Per-user cache of GraphQL read results.

    Args:
        store: Cache store backend
        policy: TTL and invalidation tables (defaults to CachePolicy.default())
        observability: Channel for cache-store failures (defaults to the global adapter)
        key_prefix: First segment of every key
    """

    def __init__(
        self,
        store: CacheInterface,
        policy: CachePolicy | None = None,
        observability: ObservabilityAdapter | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.store = store
        self.policy = policy or CachePolicy.default()
        self.key_prefix = key_prefix
        self._observability = observability

    @property
    def observability(self) -> ObservabilityAdapter:
        if self._observability is None:
            self._observability = get_observability()
        return self._observability

    # ------------ Pure lookups ------------

    def resolve_cache_key(self, user_id: str, operation_name: str, arguments: Arguments = None) -> str:
        return resolve_cache_key(user_id, operation_name, arguments, prefix=self.key_prefix)

    def get_cache_ttl(self, operation_name: str) -> int | None:
        return self.policy.get_cache_ttl(operation_name)

    def get_invalidation_targets(self, operation_name: str) -> frozenset[str]:
        return self.policy.get_invalidation_targets(operation_name)

    # ------------ Store steps (never raise) ------------

    def _report(self, operation_name: str, error: Exception, action: str) -> None:
        try:
            self.observability.report_cache_error(operation_name, error, action=action)
        except Exception as report_error:
            logger.error(
                f"Observability channel failed while reporting a cache error: {report_error}",
                extra={"operation": operation_name, "cache_action": action, "error": str(error)},
                exc_info=True,
            )

    async def lookup(self, key: str, operation_name: str) -> CacheLookup:
        """
        Read a key from the store; a store failure becomes CacheStatus.ERROR.

        Entries are stored as {"value": <response>}, so a cached None response
        is a hit while an absent key is a miss. Anything else under the key is
        not ours and is treated as a miss.
        """
        try:
            entry = await self.store.get(key)
        except Exception as e:
            self._report(operation_name, e, "lookup")
            return CacheLookup(CacheStatus.ERROR, error=e)

        if entry is None:
            return CacheLookup(CacheStatus.MISS)
        if not isinstance(entry, dict) or _ENTRY_FIELD not in entry:
            logger.warning(
                "Ignoring cache entry without a value envelope",
                extra={"operation": operation_name, "cache_key": key, "entry_type": type(entry).__name__},
            )
            return CacheLookup(CacheStatus.MISS)
        return CacheLookup(CacheStatus.HIT, value=entry[_ENTRY_FIELD])

    async def populate(self, key: str, operation_name: str, value: Any, ttl: int) -> bool:
        """Write a fetched response with its TTL. Returns False when the store failed."""
        try:
            return bool(await self.store.set(key, {_ENTRY_FIELD: value}, ttl=ttl))
        except Exception as e:
            self._report(operation_name, e, "populate")
            return False

    # ------------ Read / write paths ------------

    async def read_through_detailed(
        self,
        user_id: str,
        operation_name: str,
        arguments: Arguments,
        fetch_fn: FetchFn,
    ) -> ReadResult:
        """
        Serve a read from cache or from fetch_fn, reporting what happened.

        Args:
            user_id: Acting user
            operation_name: GraphQL query name
            arguments: Query variables
            fetch_fn: Authoritative fetch, called as fetch_fn(operation_name, arguments)

        Returns:
            ReadResult with the response and its CacheStatus

        Raises:
            Whatever fetch_fn raises; nothing is cached in that case
        """
        ttl = self.get_cache_ttl(operation_name)
        if ttl is None:
            self.observability.increment_counter("gqlcache_cache_bypass_total", operation=operation_name)
            value = await fetch_fn(operation_name, arguments)
            return ReadResult(value=value, status=CacheStatus.BYPASS)

        key = self.resolve_cache_key(user_id, operation_name, arguments)
        found = await self.lookup(key, operation_name)
        if found.hit:
            self.observability.increment_counter("gqlcache_cache_hits_total", operation=operation_name)
            logger.debug("Cache hit", extra={"operation": operation_name, "cache_key": key})
            return ReadResult(value=found.value, status=CacheStatus.HIT)

        self.observability.increment_counter("gqlcache_cache_misses_total", operation=operation_name)
        value = await fetch_fn(operation_name, arguments)

        stored = False
        if ttl > 0:
            stored = await self.populate(key, operation_name, value, ttl)

        failed = found.status is CacheStatus.ERROR or (ttl > 0 and not stored)
        return ReadResult(value=value, status=CacheStatus.ERROR if failed else CacheStatus.MISS, stored=stored)

    async def read_through(
        self,
        user_id: str,
        operation_name: str,
        arguments: Arguments,
        fetch_fn: FetchFn,
    ) -> Any:
        """Serve a read from cache or from fetch_fn; see read_through_detailed."""
        result = await self.read_through_detailed(user_id, operation_name, arguments, fetch_fn)
        return result.value

    async def invalidate_after_write(self, user_id: str, operation_name: str) -> InvalidationResult:
        """
        Drop the acting user's cached reads that a committed write made stale.

        Call only after the backend reported the write as successful. For each
        target query both the argument-less key and every argument-suffixed
        key are deleted. Store failures are reported and returned, never
        raised; the remaining targets are still attempted.
        """
        targets = self.get_invalidation_targets(operation_name)
        if not targets:
            return InvalidationResult(operation=operation_name)

        deleted = 0
        first_error: Exception | None = None

        for target in sorted(targets):
            base = operation_prefix(user_id, target, self.key_prefix)
            try:
                deleted += int(await self.store.delete(base))
                deleted += await self.store.delete_prefix(f"{base}:")
            except Exception as e:
                self._report(operation_name, e, "invalidate")
                if first_error is None:
                    first_error = e

        self.observability.increment_counter("gqlcache_cache_invalidations_total", operation=operation_name)
        logger.debug(
            "Invalidated cached reads after write",
            extra={"operation": operation_name, "targets": sorted(targets), "deleted": deleted},
        )
        return InvalidationResult(operation=operation_name, targets=targets, deleted=deleted, error=first_error)
