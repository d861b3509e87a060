"""
MongoCache - Cache Module

Key-addressed cache storage on MongoDB with time-based expiration,
atomic counters and bulk invalidation.

- factory.py: connection bootstrap (`create_cache`)
- interface.py: abstract cache interface
- expiration.py: field-based and TTL-index expiration policies
- indexes.py: collection and index provisioning
- backends/: the MongoDB adapter (imported lazily; needs pymongo)

Usage:
    from mongocache.cache import create_cache

    cache = await create_cache()
    await cache.write("key", "value", "+1 hour")
    value = await cache.read("key")
"""

from .capabilities import driver_available
from .factory import create_cache
from .interface import CacheInterface

__all__ = [
    "create_cache",
    "driver_available",
    "CacheInterface",
]
