"""
gqlcache - Cache Factory

Builds the configured store and keeps one instance per name, so the server
and anything else sharing a name talk to the same store.

CACHE_BACKEND selects memory or redis; when it is unset the loader picks
redis if REDIS_URL is present.

Example:
    from gqlcache.config import CacheBackend, CacheConfig

    store = create_cache(CacheConfig(backend=CacheBackend.MEMORY, max_size=100), name="test")
"""

from __future__ import annotations

import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.memory import MemoryCacheBackend
from .interface import CacheInterface

logger = logging.getLogger(__name__)

_stores: dict[str, CacheInterface] = {}


def _build_store(config: CacheConfig) -> CacheInterface:
    if config.backend == CacheBackend.MEMORY:
        return MemoryCacheBackend(
            max_size=config.max_size,
            default_ttl=config.ttl_seconds,
            namespace=config.namespace,
        )

    if config.backend == CacheBackend.REDIS:
        if not config.redis_url:
            raise ConfigurationError(
                "REDIS_URL must be set when CACHE_BACKEND=redis",
                details={"env": "REDIS_URL", "backend": "redis"},
            )
        # Deferred so memory-only processes never import the redis client
        from .backends.redis import RedisCacheBackend

        return RedisCacheBackend(
            redis_url=config.redis_url,
            namespace=config.namespace,
            default_ttl=config.ttl_seconds,
            max_connections=config.redis_max_connections,
            socket_timeout=config.redis_socket_timeout,
        )

    raise ConfigurationError(
        f"Unknown cache backend: {config.backend}",
        details={"backend": str(config.backend), "supported": [b.value for b in CacheBackend]},
    )


def create_cache(config: CacheConfig | None = None, name: str = "default") -> CacheInterface:
    """
    Return the store registered under ``name``, building it on first use.

    Args:
        config: Store settings (global config when omitted); ignored once
            ``name`` is registered
        name: Registry key

    Raises:
        ConfigurationError: Settings are incomplete or the store could not be built
    """
    existing = _stores.get(name)
    if existing is not None:
        return existing

    config = config or get_config().cache
    backend = CacheBackend(config.backend).value

    try:
        store = _build_store(config)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            f"Could not build cache store '{name}': {e}",
            extra={"cache_name": name, "backend": backend, "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cache store '{name}': {e}",
            details={"cache_name": name, "backend": backend, "error": str(e)},
        ) from e

    _stores[name] = store
    logger.info(f"Cache store '{name}' ready", extra={"cache_name": name, "backend": backend})
    return store


async def close_all_caches() -> None:
    """Close every registered store and empty the registry. Used on server shutdown."""
    while _stores:
        name, store = _stores.popitem()
        try:
            await store.close()
        except Exception as e:
            logger.error(
                f"Error closing cache store '{name}': {e}",
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )


def reset_cache_factory() -> None:
    """Forget registered stores without closing them (tests only)."""
    _stores.clear()
