"""
gqlcache - Configuration Schemas

Typed configuration models using Pydantic for validation and type safety.
All configuration is defined here and validated at startup.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache store and operation-cache configuration."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Cache backend to use")
    ttl_seconds: int = Field(default=300, ge=0, description="Store-level default TTL in seconds (0 = no expiry)")
    max_size: int = Field(default=10000, ge=1, description="Max cache entries (memory backend)")
    namespace: str = Field(default="", description="Store-level key namespace (empty = keys stored as-is)")
    key_prefix: str = Field(default="gql", min_length=1, description="Operation cache key prefix")
    ttl_overrides: dict[str, int] = Field(
        default_factory=dict,
        description="Per-operation TTL overrides in seconds, merged over the default table",
    )

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == CacheBackend.REDIS and not v:
            raise ValueError("redis_url is required when cache backend is 'redis'")
        return v

    @field_validator("ttl_overrides")
    @classmethod
    def validate_ttl_overrides(cls, v: dict[str, int]) -> dict[str, int]:
        """TTL overrides must be non-negative."""
        negative = [name for name, ttl in v.items() if ttl < 0]
        if negative:
            raise ValueError(f"TTL overrides must be >= 0: {', '.join(sorted(negative))}")
        return v


class BackendConfig(BaseModel):
    """Authoritative GraphQL backend."""

    url: str | None = Field(default=None, description="GraphQL endpoint the gateway forwards to")
    timeout: float = Field(default=30.0, ge=1.0, description="Request timeout in seconds")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    enable_metrics: bool = Field(default=True, description="Record Prometheus metrics")
    json_logs: bool = Field(default=True, description="Install the JSON log formatter")


class ServerConfig(BaseModel):
    """HTTP server binding."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")


class GqlCacheConfig(BaseModel):
    """Root configuration for gqlcache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: BackendConfig, info: Any) -> BackendConfig:
        """The gateway cannot run in production without a backend URL."""
        environment = info.data.get("environment")
        if environment == Environment.PRODUCTION and not v.url:
            raise ValueError("BACKEND_GRAPHQL_URL must be set in production")
        return v

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
