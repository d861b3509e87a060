"""
MongoCache - MongoDB Cache Adapter

Key-addressed caching on MongoDB with per-entry or TTL-index expiration,
atomic counters and bulk invalidation.
"""

__version__ = "1.0.0"

from .cache import CacheInterface, create_cache

__all__ = ["CacheInterface", "create_cache"]
