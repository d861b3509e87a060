"""
MongoCache - Core Error Types

Defines the exception hierarchy for the MongoDB cache adapter.
All exceptions inherit from MongoCacheError for consistent error handling.

Ordinary cache misses are never errors. Only initialization and
configuration problems surface as exceptions.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes attached to every MongoCacheError."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"

    # Cache errors
    CACHE_FAILURE = "CACHE_FAILURE"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class MongoCacheError(Exception):
    """Base exception for all MongoCache errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logs and responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(MongoCacheError):
    """Raised when configuration is invalid or missing."""

    code = ErrorCode.CONFIGURATION_ERROR


class DependencyError(MongoCacheError):
    """Raised when a required dependency is missing or fails to load."""

    code = ErrorCode.DEPENDENCY_MISSING

    def __init__(
        self,
        package: str,
        feature: str | None = None,
        install_hint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        if feature:
            message = f"Required dependency '{package}' is missing for {feature}"
        else:
            message = f"Required dependency '{package}' is missing"

        if install_hint:
            message += f". Install with: {install_hint}"

        error_details = details or {}
        error_details.update(
            {
                "package": package,
                "feature": feature,
                "install_hint": install_hint,
            }
        )

        super().__init__(message, error_details)


class CacheError(MongoCacheError):
    """Base exception for cache-related errors."""

    code = ErrorCode.CACHE_FAILURE


class CacheConnectionError(CacheError):
    """Raised when the storage endpoint cannot be reached."""

    code = ErrorCode.CACHE_UNAVAILABLE

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)


class CacheOperationError(CacheError):
    """Raised when collection or index provisioning fails."""

    pass
