"""
MongoCache - Expiration Policies

Two interchangeable strategies decide how entries expire:

- FieldExpiry stamps every document with an `expires` timestamp and filters
  stale documents out of every read and update. Expiration is exact and
  per-entry, but stale documents stay on disk until `clear()` or capacity
  eviction removes them; nothing sweeps them proactively.
- NativeTTL leaves expiry to a MongoDB TTL index on the `created` field. One
  uniform interval applies to every entry, removal is eventual (the server's
  TTL monitor runs roughly once a minute) and a per-write duration cannot be
  represented, so it is discarded with a warning.

Adapters call exactly one policy method per concern and never branch on the
strategy themselves.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from ..config.schemas import MongoCacheConfig
from ..durations import Duration, parse_duration

logger = logging.getLogger(__name__)

KEY_FIELD = "key"
VALUE_FIELD = "value"
EXPIRES_FIELD = "expires"
CREATED_FIELD = "created"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class ExpirationPolicy(ABC):
    """
    Strategy producing the document shapes and filters every cache operation uses.

    Instances are immutable after construction.
    """

    name: str = "abstract"

    def __init__(self, default_duration: timedelta | None, clock: Clock = utcnow):
        self._default_duration = default_duration
        self._clock = clock

    @property
    def default_duration(self) -> timedelta | None:
        return self._default_duration

    @property
    @abstractmethod
    def identity_fields(self) -> tuple[str, ...]:
        """Fields covered by the unique identity index."""

    @abstractmethod
    def build_write_document(self, key: str, value: Any, duration: Duration = None) -> dict[str, Any]:
        """Build the full document stored by a write."""

    @abstractmethod
    def live_filter(self, key: str) -> dict[str, Any]:
        """Filter matching only the live documents for `key`."""

    @abstractmethod
    def insert_defaults(self) -> dict[str, Any]:
        """Fields stamped on documents created by a counter upsert."""

    def ttl_index(self) -> tuple[str, int] | None:
        """(field, expireAfterSeconds) of the native expiration index, if any."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(default_duration={self._default_duration!r})"


class FieldExpiry(ExpirationPolicy):
    """Application-managed expiration through an explicit `expires` field."""

    name = "field"

    @property
    def identity_fields(self) -> tuple[str, ...]:
        return (KEY_FIELD, EXPIRES_FIELD)

    def _expires_at(self, duration: Duration) -> datetime | None:
        delta = parse_duration(duration) if duration is not None else self._default_duration
        if delta is None:
            return None
        return self._clock() + delta

    def build_write_document(self, key: str, value: Any, duration: Duration = None) -> dict[str, Any]:
        return {
            KEY_FIELD: key,
            VALUE_FIELD: value,
            EXPIRES_FIELD: self._expires_at(duration),
        }

    def live_filter(self, key: str) -> dict[str, Any]:
        # `expires: None` also matches documents without the field
        return {
            KEY_FIELD: key,
            "$or": [
                {EXPIRES_FIELD: None},
                {EXPIRES_FIELD: {"$gte": self._clock()}},
            ],
        }

    def insert_defaults(self) -> dict[str, Any]:
        return {EXPIRES_FIELD: self._expires_at(None)}


class NativeTTL(ExpirationPolicy):
    """Server-managed expiration through a TTL index with one uniform interval."""

    name = "native_ttl"

    def __init__(self, default_duration: timedelta, clock: Clock = utcnow):
        if default_duration is None or default_duration <= timedelta(0):
            raise ValueError("NativeTTL requires a positive uniform duration")
        super().__init__(default_duration, clock)
        self._uniform_duration: timedelta = default_duration

    @property
    def identity_fields(self) -> tuple[str, ...]:
        return (KEY_FIELD,)

    def build_write_document(self, key: str, value: Any, duration: Duration = None) -> dict[str, Any]:
        """
        Build a write document without an expiry field.

        Any per-write `duration` is silently discarded from the stored data;
        the uniform TTL configured on the index applies instead.
        """
        if duration is not None:
            logger.warning(
                "Per-write expiry discarded under TTL collection expiration",
                extra={"key": key, "requested_expiry": str(duration), "uniform_expiry": str(self._uniform_duration)},
            )
        return {
            KEY_FIELD: key,
            VALUE_FIELD: value,
            CREATED_FIELD: self._clock(),
        }

    def live_filter(self, key: str) -> dict[str, Any]:
        return {KEY_FIELD: key}

    def insert_defaults(self) -> dict[str, Any]:
        return {CREATED_FIELD: self._clock()}

    def ttl_index(self) -> tuple[str, int] | None:
        return CREATED_FIELD, int(self._uniform_duration.total_seconds())


def build_policy(config: MongoCacheConfig, clock: Clock = utcnow) -> ExpirationPolicy:
    """
    Select the expiration policy for a configuration.

    A TTL collection without a resolvable default expiry has nothing to put on
    the index, so it falls back to field expiry with no default.
    """
    default_duration = parse_duration(config.expiry)

    if config.use_ttl_collection:
        if default_duration is not None:
            return NativeTTL(default_duration, clock=clock)
        logger.warning(
            "TTL collection requested without a default expiry; falling back to field expiration",
            extra={"collection": config.collection},
        )

    return FieldExpiry(default_duration, clock=clock)
