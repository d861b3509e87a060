"""
MongoCache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
Integration fixtures skip automatically when no MongoDB server is reachable.
"""

import os
import socket
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import urlparse

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"

TEST_MONGO_URL = os.environ.get("TEST_MONGO_URL", "mongodb://localhost:27017")


def is_mongo_available() -> bool:
    """Check if a MongoDB server is available for testing."""
    parsed = urlparse(TEST_MONGO_URL)
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((parsed.hostname or "localhost", parsed.port or 27017))
        sock.close()
        return result == 0
    except Exception:
        return False


class FrozenClock:
    """Controllable UTC clock for expiration policies."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    """Frozen clock starting at a fixed instant."""
    return FrozenClock()


@pytest.fixture
def test_mongo_url() -> str:
    """MongoDB URL for testing."""
    return TEST_MONGO_URL


@pytest.fixture
def mock_collection() -> MagicMock:
    """Collection double whose driver calls are awaitable."""
    collection = MagicMock()
    collection.replace_one = AsyncMock(return_value=MagicMock(acknowledged=True))
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value={"value": 1})
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.count_documents = AsyncMock(return_value=0)
    collection.estimated_document_count = AsyncMock(return_value=0)
    collection.drop = AsyncMock(return_value=None)
    collection.create_index = AsyncMock(return_value="key_1")
    return collection


@pytest.fixture
def mock_database(mock_collection: MagicMock) -> MagicMock:
    """Database double returning `mock_collection` for any collection name."""
    database = MagicMock()
    database.name = "database_test"
    database.__getitem__.return_value = mock_collection
    database.list_collection_names = AsyncMock(return_value=[])
    database.create_collection = AsyncMock(return_value=mock_collection)
    database.command = AsyncMock(return_value={"ok": 1.0})
    return database


@pytest_asyncio.fixture
async def mongo_database() -> AsyncGenerator[Any, None]:
    """
    Create an isolated MongoDB database for testing.

    Skips the test if MongoDB is not available. The database is dropped afterwards.
    """
    if not is_mongo_available():
        pytest.skip("MongoDB not available")

    from pymongo import AsyncMongoClient

    client: AsyncMongoClient = AsyncMongoClient(TEST_MONGO_URL, serverSelectionTimeoutMS=2000)
    try:
        await client.admin.command("ping")
    except Exception as e:
        await client.close()
        pytest.skip(f"MongoDB not available for testing: {e}")

    name = f"mongocache_test_{uuid.uuid4().hex[:8]}"
    database = client[name]

    yield database

    try:
        await client.drop_database(name)
    finally:
        await client.close()


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }
