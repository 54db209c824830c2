"""
gqlcache - Operation Cache Module

Usage:
    from gqlcache.cache import create_cache
    from gqlcache.operations import CachePolicy, OperationCache

    cache = OperationCache(create_cache(), CachePolicy.default())
    data = await cache.read_through(user_id, "GetExpenses", {"month": "2024-05"}, fetch)
    await cache.invalidate_after_write(user_id, "CreateExpense")
"""

from .cache import FetchFn, OperationCache
from .keys import canonical_json, operation_prefix, resolve_cache_key
from .outcomes import CacheLookup, CacheStatus, InvalidationResult, ReadResult
from .policy import CachePolicy

__all__ = [
    "OperationCache",
    "FetchFn",
    "CachePolicy",
    "CacheStatus",
    "CacheLookup",
    "ReadResult",
    "InvalidationResult",
    "resolve_cache_key",
    "operation_prefix",
    "canonical_json",
]
