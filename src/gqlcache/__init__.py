"""
gqlcache - GraphQL Operation Cache

Per-user read-through cache for a personal-finance GraphQL API, with
mutation-driven invalidation and a caching gateway in front of the backend.
"""

__version__ = "1.0.0"

from .operations import CachePolicy, CacheStatus, OperationCache

__all__ = ["OperationCache", "CachePolicy", "CacheStatus"]
