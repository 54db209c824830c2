"""
gqlcache - Redis Cache Backend

Shared store for multi-worker deployments. Values are JSON text written with
a single SET ... EX; per-user invalidation walks keys with SCAN MATCH and
deletes each batch.

Every Redis failure is raised as CacheOperationError; the operation cache
decides how to degrade.

Example:
    cache = RedisCacheBackend(redis_url="redis://localhost:6379", default_ttl=300)
    await cache.set("gql:u1:GetMe", {"value": {"data": {"me": {"id": "u1"}}}}, ttl=300)
    entry = await cache.get("gql:u1:GetMe")
"""

from __future__ import annotations

import logging
import re
from typing import Any

from redis.asyncio import Redis

from ...errors import CacheOperationError
from ..codec import decode_value, encode_value
from ..interface import CacheInterface

logger = logging.getLogger(__name__)

# Characters with special meaning in Redis glob-style MATCH patterns
_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


def escape_glob(text: str) -> str:
    """Escape text so a Redis MATCH pattern treats it literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend.

    Keys carry the namespace as a prefix when one is configured. TTL maps to
    EX seconds: None takes default_ttl and 0 leaves the key without expiry.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "",
        default_ttl: int = 300,
        max_connections: int = 10,
        socket_timeout: int = 5,
        scan_count: int = 500,
        client: Redis | None = None,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            redis_url: Connection URL, e.g. redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys (empty = keys stored as-is)
            default_ttl: Default TTL in seconds (0 => no expiry)
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
            scan_count: COUNT hint for SCAN during prefix deletes
            client: Pre-built client (tests)
        """
        if not redis_url and client is None:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip()
        self.default_ttl = max(0, int(default_ttl))
        self.scan_count = scan_count
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        # from_url does not connect until the first command
        self._client = client or Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _expiry(self, ttl: int | None) -> int | None:
        seconds = int(self.default_ttl if ttl is None else ttl)
        return seconds if seconds > 0 else None

    def _fail(self, action: str, error: Exception, **details: Any) -> CacheOperationError:
        logger.error(
            f"Redis {action} failed: {error}",
            extra={"namespace": self.namespace, "error": str(error), **details},
        )
        return CacheOperationError(
            f"Redis {action} failed: {error}",
            details={"backend": "redis", "action": action, "error": str(error), **details},
        )

    async def get(self, key: str) -> Any | None:
        try:
            data = await self._client.get(self._make_key(key))
        except Exception as e:
            raise self._fail("get", e, key=key) from e

        if data is None:
            self._misses += 1
            return None

        self._hits += 1
        return decode_value(data)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        payload = encode_value(value)

        try:
            written = await self._client.set(name=self._make_key(key), value=payload, ex=self._expiry(ttl))
        except Exception as e:
            raise self._fail("set", e, key=key, ttl=ttl) from e

        if written:
            self._sets += 1
        return bool(written)

    async def delete(self, key: str) -> bool:
        try:
            removed = await self._client.delete(self._make_key(key))
        except Exception as e:
            raise self._fail("delete", e, key=key) from e

        if removed:
            self._deletes += 1
        return bool(removed)

    async def delete_prefix(self, prefix: str) -> int:
        """SCAN MATCH "<escaped prefix>*" and DEL each batch the cursor returns."""
        if not prefix:
            logger.warning("Refusing to delete with an empty prefix")
            return 0

        pattern = escape_glob(self._make_key(prefix)) + "*"
        removed = 0
        cursor = 0
        try:
            while True:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=self.scan_count)
                if keys:
                    removed += int(await self._client.delete(*keys))
                if cursor == 0:
                    break
        except Exception as e:
            raise self._fail("delete_prefix", e, prefix=prefix, removed=removed) from e

        self._deletes += removed
        return removed

    async def get_stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        stats: dict[str, Any] = {
            "backend": "redis",
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups * 100, 2) if lookups else 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        try:
            stats["connected"] = bool(await self._client.ping())
            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
        except Exception as e:
            # INFO may be restricted on managed Redis
            logger.warning(f"Redis health details unavailable: {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        try:
            await self._client.aclose()
            logger.info(f"Closed Redis cache backend for namespace '{self.namespace}'")
        except Exception as e:
            logger.error(
                f"Error closing Redis client: {e}", extra={"namespace": self.namespace, "error": str(e)}, exc_info=True
            )
