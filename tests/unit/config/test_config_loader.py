"""
gqlcache - Configuration Loader Tests
"""

from pathlib import Path

import pytest

from gqlcache.config import CacheBackend, CacheConfig, GqlCacheConfig, get_config, load_config, reset_config
from gqlcache.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run from an empty directory with no cache/backend variables set."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "REDIS_URL",
        "CACHE_BACKEND",
        "CACHE_TTL_SECONDS",
        "CACHE_MAX_SIZE",
        "CACHE_NAMESPACE",
        "GQLCACHE_KEY_PREFIX",
        "GQLCACHE_TTL_OVERRIDES",
        "BACKEND_GRAPHQL_URL",
        "BACKEND_TIMEOUT",
        "HOST",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()


class TestLoadConfig:
    def test_defaults(self) -> None:
        config = load_config()

        assert config.environment == "test"
        assert config.cache.backend == CacheBackend.MEMORY
        assert config.cache.ttl_seconds == 300
        assert config.cache.key_prefix == "gql"
        assert config.cache.ttl_overrides == {}
        assert config.backend.url is None
        assert config.server.port == 8000

    def test_memory_settings(self, mock_env_memory: None) -> None:
        config = load_config()

        assert config.cache.max_size == 100
        assert config.cache.ttl_seconds == 600

    def test_redis_url_selects_redis(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")

        config = load_config()

        assert config.cache.backend == CacheBackend.REDIS
        assert config.cache.redis_url == "redis://localhost:6379/0"

    def test_explicit_redis_without_url_is_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_BACKEND", "redis")

        with pytest.raises(ConfigurationError):
            load_config()

    def test_ttl_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GQLCACHE_TTL_OVERRIDES", '{"GetMe": 30, "GetReport": 0}')

        config = load_config()

        assert config.cache.ttl_overrides == {"GetMe": 30, "GetReport": 0}

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"GetMe": -5}'])
    def test_bad_ttl_overrides(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("GQLCACHE_TTL_OVERRIDES", raw)

        with pytest.raises(ConfigurationError):
            load_config()

    @pytest.mark.parametrize(
        ("name", "raw"),
        [("PORT", "abc"), ("BACKEND_TIMEOUT", "soon"), ("CACHE_TTL_SECONDS", "5m"), ("CACHE_MAX_SIZE", "")],
    )
    def test_malformed_number_is_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch, name: str, raw: str
    ) -> None:
        monkeypatch.setenv(name, raw)

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert exc_info.value.details == {"env": name, "value": raw}
        assert not isinstance(exc_info.value.__cause__, ConfigurationError)

    def test_backend_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKEND_GRAPHQL_URL", "http://api.internal/graphql")
        monkeypatch.setenv("BACKEND_TIMEOUT", "12.5")

        config = load_config()

        assert config.backend.url == "http://api.internal/graphql"
        assert config.backend.timeout == 12.5

    def test_production_requires_backend_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")

        with pytest.raises(ConfigurationError):
            load_config()

    def test_env_file_is_read(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = tmp_path / "custom.env"
        env_file.write_text("CACHE_NAMESPACE=staging\n")
        monkeypatch.setenv("CACHE_NAMESPACE", "")

        config = load_config(env_file=str(env_file))

        assert config.cache.namespace == "staging"

    def test_config_is_a_singleton_until_reload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_config()
        monkeypatch.setenv("CACHE_MAX_SIZE", "42")

        assert get_config() is first
        assert load_config(reload=True).cache.max_size == 42


class TestSchemas:
    def test_cache_config_rejects_negative_override(self) -> None:
        with pytest.raises(ValueError):
            CacheConfig(ttl_overrides={"GetMe": -1})

    def test_root_config_defaults(self) -> None:
        config = GqlCacheConfig()
        assert config.cache.backend == CacheBackend.MEMORY
        assert config.observability.enable_metrics is True
