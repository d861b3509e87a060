"""
MongoCache - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
The cache options mirror the adapter's recognized configuration surface; the
original camel-case names (`max`, `useTtlCollection`) are accepted as aliases.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..durations import parse_duration


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def default_database_name() -> str:
    """Derive the database name from the application directory."""
    return Path.cwd().name.replace(".", "_").replace(" ", "_") or "mongocache"


class MongoCacheConfig(BaseModel):
    """MongoDB cache configuration."""

    connection: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URI")
    database: str = Field(default_factory=default_database_name, description="Database name")
    collection: str = Field(default="cache", min_length=1, description="Collection name")

    capped: bool = Field(default=False, description="Bound the collection size (oldest entries evicted)")
    size: int = Field(default=100000, ge=1, description="Capped collection ceiling in bytes")
    max_entries: int | None = Field(default=None, ge=1, alias="max", description="Capped entry-count ceiling")
    background: bool = Field(default=True, description="Build indexes without blocking foreground operations")

    expiry: str | int | None = Field(default="+1 hour", description="Default expiry for writes (None = never)")
    use_ttl_collection: bool = Field(
        default=False,
        alias="useTtlCollection",
        description="Delegate expiration to a MongoDB TTL index (per-write expiry is discarded)",
    )

    server_selection_timeout_ms: int = Field(default=5000, ge=1, description="Server selection timeout")
    max_pool_size: int = Field(default=10, ge=1, description="Connection pool size")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("expiry")
    @classmethod
    def validate_expiry(cls, v: str | int | None) -> str | int | None:
        """Reject expiry strings that cannot be parsed."""
        parse_duration(v)
        return v

    @model_validator(mode="after")
    def validate_capped_ttl(self) -> "MongoCacheConfig":
        """MongoDB cannot build a TTL index on a capped collection."""
        if self.capped and self.use_ttl_collection:
            raise ValueError("capped collections cannot use TTL expiration; disable 'capped' or 'useTtlCollection'")
        return self


class MongoCacheSettings(BaseModel):
    """Root configuration for MongoCache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    json_logs: bool = Field(default=False, description="Emit structured JSON log lines")

    cache: MongoCacheConfig = Field(default_factory=MongoCacheConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
