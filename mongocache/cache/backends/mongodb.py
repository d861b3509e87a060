"""
MongoCache - MongoDB Cache Backend

Asynchronous MongoDB cache adapter with:
- write as a single atomic upsert keyed by the policy's identity
- reads, existence checks and counters restricted to live entries
- atomic find-and-modify counters that create missing entries
- bulk invalidation by dropping the collection

Expiration semantics come entirely from the injected ExpirationPolicy; this
module never branches on the strategy itself.

Requires: pymongo>=4.13 (AsyncMongoClient)

Example:
    client = AsyncMongoClient("mongodb://localhost:27017")
    cache = await MongoCacheBackend.create(client["app"], MongoCacheConfig(), client=client)
    await cache.write("greeting", {"msg": "hello"}, "+5 minutes")
    val = await cache.read("greeting")
"""

from __future__ import annotations

import logging
from typing import Any

from bson.errors import InvalidDocument
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.asynchronous.mongo_client import AsyncMongoClient
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from ...config.schemas import MongoCacheConfig
from ...durations import Duration
from ...errors import CacheError
from ..capabilities import DriverProbe, driver_available
from ..expiration import KEY_FIELD, VALUE_FIELD, ExpirationPolicy, build_policy
from ..indexes import IndexManager
from ..interface import CacheInterface

logger = logging.getLogger(__name__)

# Server error code raised when $inc targets a non-numeric field
TYPE_MISMATCH = 14

_VALUE_PROJECTION = {"_id": False, VALUE_FIELD: True}
_NEWEST_FIRST = [("_id", DESCENDING)]


class MongoCacheBackend(CacheInterface):
    """
    MongoDB cache adapter.

    Notes:
    - The database handle, configuration and policy are fixed at construction.
    - `initialize()` must run before use; `create()` does it for you.
    - Field expiry leaves stale documents on disk until `clear()` or capacity
      eviction; use a TTL collection when physical cleanup matters.
    - On a capped collection even live entries can be evicted when the
      collection overflows.
    """

    def __init__(
        self,
        database: AsyncDatabase,
        config: MongoCacheConfig | None = None,
        *,
        policy: ExpirationPolicy | None = None,
        client: AsyncMongoClient | None = None,
        driver_probe: DriverProbe = driver_available,
    ) -> None:
        """
        Initialize the adapter without touching the server.

        Args:
            database: Database holding the cache collection
            config: Cache configuration (defaults to MongoCacheConfig())
            policy: Expiration policy (defaults to the one selected by `config`)
            client: Client to close in `close()`; None if the caller owns it
            driver_probe: Capability probe backing `enabled()`
        """
        self._config = config or MongoCacheConfig()
        self._policy = policy or build_policy(self._config)
        self._database = database
        self._collection = database[self._config.collection]
        self._indexes = IndexManager(self._policy)
        self._client = client
        self._driver_probe = driver_probe

    @classmethod
    async def create(
        cls,
        database: AsyncDatabase,
        config: MongoCacheConfig | None = None,
        *,
        policy: ExpirationPolicy | None = None,
        client: AsyncMongoClient | None = None,
        driver_probe: DriverProbe = driver_available,
    ) -> MongoCacheBackend:
        """Construct an adapter and provision its collection and indexes."""
        backend = cls(database, config, policy=policy, client=client, driver_probe=driver_probe)
        await backend.initialize()
        return backend

    @property
    def config(self) -> MongoCacheConfig:
        return self._config

    @property
    def policy(self) -> ExpirationPolicy:
        return self._policy

    async def initialize(self) -> None:
        """
        Provision the collection and indexes. Safe to re-run.

        Raises:
            CacheConnectionError: If MongoDB is unreachable
            CacheOperationError: If the collection or an index cannot be created
        """
        await self._indexes.initialize(self._database, self._config)

    # ------------ Core Interface ------------

    async def write(self, key: str, value: Any, duration: Duration = None) -> bool:
        """Upsert a value; a live entry under the same key is replaced."""
        try:
            document = self._policy.build_write_document(key, value, duration)
            return await self._replace_live(key, document)
        except (InvalidDocument, TypeError, ValueError) as e:
            logger.error(
                f"Failed to encode cache entry '{key}': {e}",
                extra={"key": key, "value_type": type(value).__name__, "error": str(e)},
                exc_info=True,
            )
            return False
        except PyMongoError as e:
            logger.error(
                f"Failed to write key '{key}' to MongoDB: {e}",
                extra={"key": key, "collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return False

    async def _replace_live(self, key: str, document: dict[str, Any]) -> bool:
        try:
            result = await self._collection.replace_one(self._policy.live_filter(key), document, upsert=True)
        except DuplicateKeyError:
            # A concurrent upsert inserted first; the retry matches its document
            logger.debug("Duplicate key on upsert, retrying", extra={"key": key})
            result = await self._collection.replace_one(self._policy.live_filter(key), document, upsert=True)
        return bool(result.acknowledged)

    async def read(self, key: str, default: Any = None) -> Any:
        """Return the newest live value for a key, or `default`."""
        try:
            entry = await self._collection.find_one(
                self._policy.live_filter(key),
                projection=_VALUE_PROJECTION,
                sort=_NEWEST_FIRST,
            )
        except PyMongoError as e:
            logger.error(
                f"Failed to read key '{key}' from MongoDB: {e}",
                extra={"key": key, "collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return default

        if entry is None:
            return default
        return entry.get(VALUE_FIELD, default)

    async def delete(self, key: str) -> bool:
        """Remove all documents for a key, live or stale."""
        try:
            result = await self._collection.delete_many({KEY_FIELD: key})
            return result.deleted_count > 0
        except PyMongoError as e:
            logger.error(
                f"Failed to delete key '{key}' from MongoDB: {e}",
                extra={"key": key, "collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return False

    async def increment(self, key: str, offset: int = 1) -> int | None:
        """Atomically add `offset` to a live counter, creating it at `offset`."""
        try:
            return await self._add(key, offset)
        except OperationFailure as e:
            if e.code == TYPE_MISMATCH:
                logger.debug("Counter update skipped for non-numeric value", extra={"key": key, "offset": offset})
                return None
            logger.error(
                f"Failed to update counter '{key}' in MongoDB: {e}",
                extra={"key": key, "offset": offset, "error": str(e)},
                exc_info=True,
            )
            return None
        except PyMongoError as e:
            logger.error(
                f"Failed to update counter '{key}' in MongoDB: {e}",
                extra={"key": key, "offset": offset, "error": str(e)},
                exc_info=True,
            )
            return None

    async def decrement(self, key: str, offset: int = 1) -> int | None:
        """Atomically subtract `offset` from a live counter, creating it at `-offset`."""
        return await self.increment(key, -offset)

    async def _add(self, key: str, offset: int) -> int | None:
        update = {
            "$inc": {VALUE_FIELD: offset},
            "$setOnInsert": self._policy.insert_defaults(),
        }
        try:
            entry = await self._find_and_add(key, update)
        except DuplicateKeyError:
            logger.debug("Duplicate key on counter upsert, retrying", extra={"key": key})
            entry = await self._find_and_add(key, update)
        return None if entry is None else entry.get(VALUE_FIELD)

    async def _find_and_add(self, key: str, update: dict[str, Any]) -> dict[str, Any] | None:
        return await self._collection.find_one_and_update(
            self._policy.live_filter(key),
            update,
            projection=_VALUE_PROJECTION,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    async def clear(self, reinitialize: bool = True) -> bool:
        """
        Drop the collection, losing every entry and the index configuration.

        Args:
            reinitialize: Re-provision the collection and indexes right away so
                the adapter stays usable. With False, call `initialize()` before
                the next operation.
        """
        try:
            await self._collection.drop()
            logger.info(f"Dropped cache collection '{self._config.collection}'")
        except PyMongoError as e:
            logger.error(
                f"Failed to clear cache collection '{self._config.collection}': {e}",
                extra={"collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return False

        if reinitialize:
            try:
                await self.initialize()
            except CacheError:
                return False
        return True

    def enabled(self) -> bool:
        """Report whether the MongoDB driver is available."""
        try:
            return bool(self._driver_probe())
        except Exception as e:
            logger.warning(f"Driver probe failed: {e}", extra={"error": str(e)})
            return False

    async def exists(self, key: str) -> bool:
        """Check whether a live entry exists for a key."""
        try:
            return await self._collection.count_documents(self._policy.live_filter(key), limit=1) > 0
        except PyMongoError as e:
            logger.error(
                f"Failed to check existence of key '{key}' in MongoDB: {e}",
                extra={"key": key, "collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return False

    async def get_stats(self) -> dict[str, Any]:
        """Return adapter settings plus collection size and connectivity."""
        default_duration = self._policy.default_duration
        stats: dict[str, Any] = {
            "backend": "mongodb",
            "database": self._database.name,
            "collection": self._config.collection,
            "strategy": self._policy.name,
            "default_expiry_seconds": int(default_duration.total_seconds()) if default_duration else None,
            "capped": self._config.capped,
            "entries": None,
            "connected": False,
        }

        try:
            pong = await self._database.command("ping")
            stats["connected"] = bool(pong.get("ok"))
            stats["entries"] = await self._collection.estimated_document_count()
        except PyMongoError as e:
            logger.warning(f"Failed to collect MongoDB stats: {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the client if this adapter owns it."""
        if self._client is None:
            return
        try:
            await self._client.close()
            logger.info(f"Closed MongoDB cache backend for collection '{self._config.collection}'")
        except PyMongoError as e:
            logger.error(
                f"Error closing MongoDB client: {e}",
                extra={"collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )

    # ------------ Batch operations ------------

    async def read_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple live values in one round-trip.
        Missing keys are omitted from the result.
        """
        if not keys:
            return {}

        query = {"$or": [self._policy.live_filter(key) for key in keys]}
        result: dict[str, Any] = {}
        try:
            # Oldest first so the newest live document wins on duplicates
            cursor = self._collection.find(
                query,
                projection={"_id": False, KEY_FIELD: True, VALUE_FIELD: True},
                sort=[("_id", 1)],
            )
            async for entry in cursor:
                result[entry[KEY_FIELD]] = entry.get(VALUE_FIELD)
        except PyMongoError as e:
            logger.error(
                f"Failed to read multiple keys from MongoDB: {e}",
                extra={"key_count": len(keys), "collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return {}

        return result

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete every document, live or stale, for the given keys in one round-trip.

        Returns:
            Number of documents removed. A key with stale copies counts once per copy.
        """
        if not keys:
            return 0

        try:
            result = await self._collection.delete_many({KEY_FIELD: {"$in": list(keys)}})
            return result.deleted_count
        except PyMongoError as e:
            logger.error(
                f"Failed to delete multiple keys from MongoDB: {e}",
                extra={"key_count": len(keys), "collection": self._config.collection, "error": str(e)},
                exc_info=True,
            )
            return 0
