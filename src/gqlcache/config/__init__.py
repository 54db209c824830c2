"""
gqlcache - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    BackendConfig,
    CacheBackend,
    CacheConfig,
    Environment,
    GqlCacheConfig,
    LogLevel,
    ObservabilityConfig,
    ServerConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "GqlCacheConfig",
    # Enums
    "Environment",
    "CacheBackend",
    "LogLevel",
    # Config sections
    "CacheConfig",
    "BackendConfig",
    "ObservabilityConfig",
    "ServerConfig",
]
