"""
MongoCache - Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the process.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import MongoCacheSettings

logger = logging.getLogger(__name__)

_config_instance: MongoCacheSettings | None = None


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_expiry() -> str | int | None:
    raw = os.getenv("MONGO_CACHE_EXPIRY")
    if raw is None:
        return "+1 hour"
    raw = raw.strip()
    if raw.lower() in ("", "none", "never"):
        return None
    return int(raw) if raw.isdigit() else raw


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> MongoCacheSettings:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated MongoCacheSettings instance

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

    try:
        cache: dict[str, object] = {
            "connection": os.getenv("MONGO_CACHE_URL", "mongodb://localhost:27017"),
            "collection": os.getenv("MONGO_CACHE_COLLECTION", "cache"),
            "capped": _env_bool("MONGO_CACHE_CAPPED", "false"),
            "size": int(os.getenv("MONGO_CACHE_SIZE", "100000")),
            "max": int(os.environ["MONGO_CACHE_MAX"]) if os.getenv("MONGO_CACHE_MAX") else None,
            "background": _env_bool("MONGO_CACHE_BACKGROUND", "true"),
            "expiry": _env_expiry(),
            "useTtlCollection": _env_bool("MONGO_CACHE_USE_TTL_COLLECTION", "false"),
            "server_selection_timeout_ms": int(os.getenv("MONGO_CACHE_SERVER_SELECTION_TIMEOUT_MS", "5000")),
            "max_pool_size": int(os.getenv("MONGO_CACHE_MAX_POOL_SIZE", "10")),
        }
        # Unset database falls back to the app-derived default
        if os.getenv("MONGO_CACHE_DATABASE"):
            cache["database"] = os.environ["MONGO_CACHE_DATABASE"]
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric cache setting: {e}",
            details={"error": str(e)},
        ) from e

    config_dict = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "json_logs": _env_bool("JSON_LOGS", "false"),
        "cache": cache,
    }

    try:
        _config_instance = MongoCacheSettings(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={
                "environment": _config_instance.environment,
                "collection": _config_instance.cache.collection,
                "use_ttl_collection": _config_instance.cache.use_ttl_collection,
            },
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> MongoCacheSettings:
    """
    Get the current configuration instance.

    Loads configuration on first access.
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> MongoCacheSettings:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded MongoCacheSettings instance
    """
    return load_config(env_file=env_file, reload=True)
