"""
gqlcache - Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import GqlCacheConfig

logger = logging.getLogger(__name__)

_config_instance: GqlCacheConfig | None = None


def _parse_ttl_overrides(raw: str | None) -> dict[str, Any]:
    """Parse GQLCACHE_TTL_OVERRIDES, a JSON object of operation name -> seconds."""
    if not raw:
        return {}
    try:
        overrides = json.loads(raw)
    except ValueError as e:
        raise ConfigurationError(
            "GQLCACHE_TTL_OVERRIDES must be a JSON object",
            details={"env": "GQLCACHE_TTL_OVERRIDES", "error": str(e)},
        ) from e
    if not isinstance(overrides, dict):
        raise ConfigurationError(
            "GQLCACHE_TTL_OVERRIDES must be a JSON object",
            details={"env": "GQLCACHE_TTL_OVERRIDES", "type": type(overrides).__name__},
        )
    return overrides


def _env_number(name: str, default: str, cast: Callable[[str], Any] = int) -> Any:
    """Read a numeric environment variable; a malformed value names the variable."""
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            details={"env": name, "value": raw},
        ) from e


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> GqlCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated GqlCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect cache backend: Redis if REDIS_URL is set, else memory
    redis_url = os.getenv("REDIS_URL")
    cache_backend = "redis" if redis_url else "memory"

    try:
        config_dict = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "cache": {
                "backend": os.getenv("CACHE_BACKEND", cache_backend),
                "ttl_seconds": _env_number("CACHE_TTL_SECONDS", "300"),
                "max_size": _env_number("CACHE_MAX_SIZE", "10000"),
                "namespace": os.getenv("CACHE_NAMESPACE", ""),
                "key_prefix": os.getenv("GQLCACHE_KEY_PREFIX", "gql"),
                "ttl_overrides": _parse_ttl_overrides(os.getenv("GQLCACHE_TTL_OVERRIDES")),
                "redis_url": redis_url,
                "redis_max_connections": _env_number("REDIS_MAX_CONNECTIONS", "10"),
                "redis_socket_timeout": _env_number("REDIS_SOCKET_TIMEOUT", "5"),
            },
            "backend": {
                "url": os.getenv("BACKEND_GRAPHQL_URL"),
                "timeout": _env_number("BACKEND_TIMEOUT", "30.0", float),
            },
            "observability": {
                "enable_metrics": os.getenv("ENABLE_METRICS", "true").lower() == "true",
                "json_logs": os.getenv("JSON_LOGS", "true").lower() == "true",
            },
            "server": {
                "host": os.getenv("HOST", "127.0.0.1"),
                "port": _env_number("PORT", "8000"),
            },
        }
        _config_instance = GqlCacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "cache_backend": _config_instance.cache.backend},
        )
        return _config_instance
    except ConfigurationError:
        raise
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors()},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e
    except Exception as e:
        logger.error(
            f"Unexpected error loading configuration: {e}",
            extra={"error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to load configuration: {e}",
            details={"error": str(e)},
        ) from e


def get_config() -> GqlCacheConfig:
    """
    Get the current configuration instance.

    Loads configuration from the environment on first access.
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> GqlCacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded GqlCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance. Used by tests."""
    global _config_instance
    _config_instance = None
