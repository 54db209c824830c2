"""
gqlcache - Cache Store Module

Pluggable key-value stores behind one async interface.

- factory.py: creates stores from configuration
- interface.py: abstract interface all backends implement
- codec.py: JSON text encoding of stored values
- backends/: memory (in-process) and redis implementations

Usage:
    from gqlcache.cache import create_cache

    store = create_cache()
    await store.set("gql:u1:GetMe", {"value": {"data": {}}}, ttl=300)
    entry = await store.get("gql:u1:GetMe")
"""

from .factory import close_all_caches, create_cache, reset_cache_factory
from .interface import CacheInterface

__all__ = [
    "create_cache",
    "close_all_caches",
    "reset_cache_factory",
    "CacheInterface",
]
