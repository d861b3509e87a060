"""
MongoCache - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config
from .schemas import (
    Environment,
    LogLevel,
    MongoCacheConfig,
    MongoCacheSettings,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "MongoCacheSettings",
    "MongoCacheConfig",
    # Enums
    "Environment",
    "LogLevel",
]
