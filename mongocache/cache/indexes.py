"""
MongoCache - Index Manager

Provisions the cache collection before any operation runs:
- creates the collection (optionally capped) if it does not exist yet
- ensures the unique identity index over the policy's identity fields
- ensures the TTL index when the policy delegates expiration to the server

Every step is idempotent; existing data and existing collection options are
never altered, except that a changed TTL interval is applied with `collMod`.
"""

import logging
from typing import Any

from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import CollectionInvalid, ConnectionFailure, OperationFailure, PyMongoError

from ..config.schemas import MongoCacheConfig
from ..errors import CacheConnectionError, CacheOperationError
from .expiration import ExpirationPolicy

logger = logging.getLogger(__name__)

# Server error code for an existing index with the same keys but different options
INDEX_OPTIONS_CONFLICT = 85


class IndexManager:
    """One-time collection and index setup for a given expiration policy."""

    def __init__(self, policy: ExpirationPolicy):
        self._policy = policy

    async def initialize(self, database: AsyncDatabase, config: MongoCacheConfig) -> AsyncCollection:
        """
        Provision the collection and its indexes.

        Args:
            database: Database handle the collection lives in
            config: Cache configuration (collection name, capacity, index options)

        Returns:
            Handle to the provisioned collection

        Raises:
            CacheConnectionError: If the server cannot be reached
            CacheOperationError: If the collection or an index cannot be created
        """
        details = {"database": database.name, "collection": config.collection, "policy": self._policy.name}

        try:
            await self._ensure_collection(database, config)
            collection = database[config.collection]
            await self._ensure_identity_index(collection, config)
            await self._ensure_ttl_index(database, collection, config)
        except ConnectionFailure as e:
            logger.error(
                f"Cannot reach MongoDB while provisioning cache collection: {e}",
                extra={**details, "error": str(e)},
                exc_info=True,
            )
            raise CacheConnectionError("mongodb", details={**details, "error": str(e)}) from e
        except PyMongoError as e:
            logger.error(
                f"Failed to provision cache collection '{config.collection}': {e}",
                extra={**details, "error": str(e)},
                exc_info=True,
            )
            raise CacheOperationError(
                f"Failed to provision cache collection '{config.collection}': {e}",
                details={**details, "error": str(e)},
            ) from e

        logger.debug("Cache collection provisioned", extra=details)
        return collection

    async def _ensure_collection(self, database: AsyncDatabase, config: MongoCacheConfig) -> None:
        existing = await database.list_collection_names(filter={"name": config.collection})
        if config.collection in existing:
            return

        options: dict[str, Any] = {}
        if config.capped:
            options["capped"] = True
            options["size"] = config.size
            if config.max_entries is not None:
                options["max"] = config.max_entries

        try:
            await database.create_collection(config.collection, **options)
            logger.info(
                f"Created cache collection '{config.collection}'",
                extra={"collection": config.collection, **options},
            )
        except CollectionInvalid:
            # Another process created it between the listing and the create
            logger.debug("Cache collection created concurrently", extra={"collection": config.collection})

    async def _ensure_identity_index(self, collection: AsyncCollection, config: MongoCacheConfig) -> None:
        keys = [(field, ASCENDING) for field in self._policy.identity_fields]
        name = await collection.create_index(keys, unique=True, background=config.background)
        logger.debug("Ensured identity index", extra={"index": name, "collection": config.collection})

    async def _ensure_ttl_index(
        self,
        database: AsyncDatabase,
        collection: AsyncCollection,
        config: MongoCacheConfig,
    ) -> None:
        ttl = self._policy.ttl_index()
        if ttl is None:
            return

        field, seconds = ttl
        index_name = f"{field}_1"
        try:
            await collection.create_index(
                [(field, ASCENDING)],
                name=index_name,
                expireAfterSeconds=seconds,
                background=config.background,
            )
        except OperationFailure as e:
            if e.code != INDEX_OPTIONS_CONFLICT:
                raise
            await database.command(
                {
                    "collMod": config.collection,
                    "index": {"name": index_name, "expireAfterSeconds": seconds},
                }
            )
            logger.info(
                "Updated TTL interval on existing index",
                extra={"index": index_name, "expire_after_seconds": seconds},
            )
