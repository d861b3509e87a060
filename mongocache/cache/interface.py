"""
MongoCache - Cache Interface

Defines the abstract interface the cache adapter implements.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..durations import Duration


class CacheInterface(ABC):
    """
    Abstract base class for cache adapters.

    Operations never raise on ordinary misses: reads return the supplied
    default, deletes return False and counters return None on failure.
    """

    @abstractmethod
    async def write(self, key: str, value: Any, duration: Duration = None) -> bool:
        """
        Store a value, replacing any live value under the same key.

        Args:
            key: Cache key
            value: Value to cache (must be BSON-serializable)
            duration: Expiry such as "+5 minutes" or seconds (None = configured default).
                Adapters with a uniform, collection-wide expiry discard it.

        Returns:
            True if the store acknowledged the write, False otherwise
        """
        pass

    @abstractmethod
    async def read(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a live value.

        Args:
            key: Cache key
            default: Value returned on a miss

        Returns:
            Cached value if a live entry exists, `default` otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove every entry stored under a key, live or stale.

        Returns:
            True if something was removed, False if the key was absent
        """
        pass

    @abstractmethod
    async def increment(self, key: str, offset: int = 1) -> int | None:
        """
        Atomically add `offset` to a numeric value, creating it if absent.

        Returns:
            The new value, or None if the stored value is not numeric or the call failed
        """
        pass

    @abstractmethod
    async def decrement(self, key: str, offset: int = 1) -> int | None:
        """
        Atomically subtract `offset` from a numeric value, creating it if absent.

        Returns:
            The new value, or None if the stored value is not numeric or the call failed
        """
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """
        Remove all entries.

        Returns:
            True if the cache was cleared successfully
        """
        pass

    @abstractmethod
    def enabled(self) -> bool:
        """Report whether the storage driver is available. Never raises."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a live entry exists for a key."""
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get adapter statistics (backend, strategy, size, connectivity)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Release resources held by the adapter.

        Should be called during graceful shutdown.
        """
        pass

    async def read_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple values.

        Default implementation calls read() for each key; missing keys are omitted.
        """
        missing = object()
        result = {}
        for key in keys:
            value = await self.read(key, missing)
            if value is not missing:
                result[key] = value
        return result

    async def write_many(self, items: dict[str, Any], duration: Duration = None) -> int:
        """
        Store multiple values with the same duration.

        Returns:
            Number of items successfully stored
        """
        count = 0
        for key, value in items.items():
            if await self.write(key, value, duration):
                count += 1
        return count

    async def delete_many(self, keys: list[str]) -> int:
        """
        Delete multiple keys.

        Default implementation calls delete() for each key and counts keys.
        Backends that delete in a single call may count removed documents instead.

        Returns:
            Number of keys (or documents) removed
        """
        count = 0
        for key in keys:
            if await self.delete(key):
                count += 1
        return count
