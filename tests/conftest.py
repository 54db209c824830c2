"""
gqlcache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import base64
import json
import os
import socket
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from redis.asyncio import Redis

# Set test environment before any gqlcache config is loaded
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["JSON_LOGS"] = "false"

from gqlcache.cache.backends.memory import MemoryCacheBackend  # noqa: E402
from gqlcache.observability import ObservabilityAdapter, initialize_observability  # noqa: E402
from gqlcache.operations import CachePolicy, OperationCache  # noqa: E402


def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except OSError:
        return False


# Skip marker for Redis tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingFetch:
    """Backend stand-in that counts calls and returns a payload per call."""

    def __init__(self, payload: Any = None, error: Exception | None = None):
        self.calls: list[tuple[str, Any]] = []
        self.payload = payload
        self.error = error

    async def __call__(self, operation_name: str, arguments: Any) -> Any:
        self.calls.append((operation_name, arguments))
        if self.error is not None:
            raise self.error
        if self.payload is not None:
            return self.payload
        return {"data": {"operation": operation_name, "call": len(self.calls), "arguments": arguments}}

    @property
    def count(self) -> int:
        return len(self.calls)


def make_jwt(claims: dict[str, Any]) -> str:
    """Unsigned JWT carrying the given claims."""

    def segment(obj: dict[str, Any]) -> str:
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(claims)}.signature"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryCacheBackend:
    """Memory store driven by the fake clock."""
    return MemoryCacheBackend(max_size=1000, default_ttl=300, clock=clock)


@pytest.fixture
def observability() -> ObservabilityAdapter:
    """Fresh global observability adapter per test."""
    return initialize_observability(enable_metrics=True, json_logs=False)


@pytest.fixture
def operation_cache(store: MemoryCacheBackend, observability: ObservabilityAdapter) -> OperationCache:
    return OperationCache(store, CachePolicy.default(), observability=observability)


@pytest.fixture
def fetch_factory() -> Callable[..., RecordingFetch]:
    return RecordingFetch


@pytest.fixture
def jwt_factory() -> Callable[[dict[str, Any]], str]:
    return make_jwt


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def redis_client(test_redis_url: str) -> AsyncGenerator[Redis, None]:
    """
    Redis client for tests; skips when Redis is not reachable.

    Clears the test database before and after each test.
    """
    client: Redis = Redis.from_url(test_redis_url, decode_responses=True)

    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available for testing: {e}")

    await client.flushdb()
    yield client

    try:
        await client.flushdb()
    finally:
        await client.aclose()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for memory cache backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_MAX_SIZE", "100")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "600")


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset factory and config singletons after each test to prevent state leakage."""
    yield
    from gqlcache.cache.factory import reset_cache_factory
    from gqlcache.config import reset_config

    reset_cache_factory()
    reset_config()
