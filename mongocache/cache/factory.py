"""
MongoCache - Cache Factory

Bootstraps a connected, provisioned cache adapter from configuration.

Examples:
    from mongocache.cache import create_cache

    # Uses env-configured settings
    cache = await create_cache()

    # Or explicitly supply a MongoCacheConfig (e.g., for tests)
    from mongocache.config import MongoCacheConfig
    cfg = MongoCacheConfig(database="app", collection="cache", expiry="+10 minutes")
    cache = await create_cache(cfg)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..config import MongoCacheConfig, get_config
from ..errors import CacheConnectionError, DependencyError
from ..observability import configure_logging_from_settings
from .capabilities import driver_available
from .interface import CacheInterface

if TYPE_CHECKING:
    from .expiration import ExpirationPolicy

logger = logging.getLogger(__name__)


async def create_cache(
    config: MongoCacheConfig | None = None,
    policy: ExpirationPolicy | None = None,
) -> CacheInterface:
    """
    Connect to MongoDB and return a provisioned cache adapter.

    The returned adapter owns its client; call `close()` on shutdown.

    Args:
        config: Cache configuration (uses global config if not provided)
        policy: Expiration policy override (defaults to the one `config` selects)

    Returns:
        Ready-to-use cache adapter

    Raises:
        DependencyError: If pymongo is not installed
        CacheConnectionError: If MongoDB is unreachable
        CacheOperationError: If the collection or indexes cannot be provisioned
    """
    if not driver_available():
        raise DependencyError(
            "pymongo",
            feature="MongoDB cache",
            install_hint="pip install 'pymongo>=4.13'",
        )

    # Deferred so the package imports without the driver installed
    from pymongo import AsyncMongoClient
    from pymongo.errors import PyMongoError

    from .backends.mongodb import MongoCacheBackend

    if config is None:
        settings = get_config()
        configure_logging_from_settings(settings)
        config = settings.cache

    logger.info(
        "Creating MongoDB cache on %s.%s",
        config.database,
        config.collection,
        extra={"database": config.database, "collection": config.collection},
    )

    client: AsyncMongoClient = AsyncMongoClient(
        config.connection,
        serverSelectionTimeoutMS=config.server_selection_timeout_ms,
        maxPoolSize=config.max_pool_size,
    )

    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        logger.error(
            f"MongoDB is unreachable: {e}",
            extra={"database": config.database, "error": str(e)},
            exc_info=True,
        )
        await client.close()
        raise CacheConnectionError("mongodb", details={"database": config.database, "error": str(e)}) from e

    try:
        return await MongoCacheBackend.create(client[config.database], config, policy=policy, client=client)
    except Exception:
        await client.close()
        raise
