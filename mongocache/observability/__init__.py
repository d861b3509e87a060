"""
MongoCache - Observability Module

Logging setup shared by the whole package.

Usage:
    from mongocache.observability import configure_logging

    configure_logging("DEBUG", json_format=True)
"""

from .logging import JSONFormatter, configure_logging, configure_logging_from_settings

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "configure_logging_from_settings",
]
