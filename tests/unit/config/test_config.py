"""
MongoCache - Configuration Tests

Covers schema defaults, aliases, validation and the environment loader.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from mongocache.config import MongoCacheConfig, MongoCacheSettings, load_config, reload_config
from mongocache.errors import ConfigurationError


class TestMongoCacheConfig:
    """Schema behavior."""

    def test_defaults(self) -> None:
        config = MongoCacheConfig()

        assert config.connection == "mongodb://localhost:27017"
        assert config.database == Path.cwd().name.replace(".", "_").replace(" ", "_")
        assert config.collection == "cache"
        assert config.capped is False
        assert config.size == 100000
        assert config.max_entries is None
        assert config.background is True
        assert config.expiry == "+1 hour"
        assert config.use_ttl_collection is False

    def test_original_option_names_are_accepted(self) -> None:
        config = MongoCacheConfig(max=25, useTtlCollection=True)

        assert config.max_entries == 25
        assert config.use_ttl_collection is True

    def test_field_names_are_accepted(self) -> None:
        config = MongoCacheConfig(max_entries=25, use_ttl_collection=True)

        assert config.max_entries == 25
        assert config.use_ttl_collection is True

    def test_invalid_expiry_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MongoCacheConfig(expiry="whenever")

    def test_capped_ttl_combination_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MongoCacheConfig(capped=True, useTtlCollection=True)

    def test_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            MongoCacheConfig(size=0)

    def test_config_is_immutable(self) -> None:
        config = MongoCacheConfig()

        with pytest.raises(ValidationError):
            config.expiry = "+5 minutes"  # type: ignore[misc]


class TestLoader:
    """Environment-driven loading."""

    @pytest.fixture(autouse=True)
    def isolated_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        for name in (
            "MONGO_CACHE_URL",
            "MONGO_CACHE_DATABASE",
            "MONGO_CACHE_COLLECTION",
            "MONGO_CACHE_CAPPED",
            "MONGO_CACHE_SIZE",
            "MONGO_CACHE_MAX",
            "MONGO_CACHE_EXPIRY",
            "MONGO_CACHE_USE_TTL_COLLECTION",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_load_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MONGO_CACHE_URL", "mongodb://db.internal:27017")
        monkeypatch.setenv("MONGO_CACHE_DATABASE", "database_test")
        monkeypatch.setenv("MONGO_CACHE_COLLECTION", "collection_test")
        monkeypatch.setenv("MONGO_CACHE_EXPIRY", "+10 days")
        monkeypatch.setenv("MONGO_CACHE_MAX", "500")
        monkeypatch.setenv("MONGO_CACHE_USE_TTL_COLLECTION", "true")

        settings = reload_config()

        assert isinstance(settings, MongoCacheSettings)
        assert settings.environment == "test"
        assert settings.cache.connection == "mongodb://db.internal:27017"
        assert settings.cache.database == "database_test"
        assert settings.cache.collection == "collection_test"
        assert settings.cache.expiry == "+10 days"
        assert settings.cache.max_entries == 500
        assert settings.cache.use_ttl_collection is True

    def test_numeric_and_never_expiry(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MONGO_CACHE_EXPIRY", "3600")
        assert reload_config().cache.expiry == 3600

        monkeypatch.setenv("MONGO_CACHE_EXPIRY", "never")
        assert reload_config().cache.expiry is None

    def test_load_is_cached_until_reload(self) -> None:
        first = reload_config()

        assert load_config() is first
        assert reload_config() is not first

    def test_env_file_is_loaded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Registered so monkeypatch removes what python-dotenv writes
        monkeypatch.setenv("MONGO_CACHE_COLLECTION", "cache")
        env_file = tmp_path / "cache.env"
        env_file.write_text("MONGO_CACHE_COLLECTION=from_dotenv\n")

        settings = reload_config(env_file=str(env_file))

        assert settings.cache.collection == "from_dotenv"

    def test_invalid_settings_raise_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MONGO_CACHE_CAPPED", "true")
        monkeypatch.setenv("MONGO_CACHE_USE_TTL_COLLECTION", "true")

        with pytest.raises(ConfigurationError) as exc_info:
            reload_config()

        assert exc_info.value.details["validation_errors"]

    def test_non_numeric_size_raises_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MONGO_CACHE_SIZE", "lots")

        with pytest.raises(ConfigurationError):
            reload_config()
