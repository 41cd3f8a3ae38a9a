"""
Pytest configuration and shared fixtures for MDB_KIT tests.

This module provides:
- Mock pymongo collection/database/client fixtures
- Sample document types
- Testcontainers fixtures for integration tests
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from mdb_kit.database.codecs import Document
from mdb_kit.observability import get_metrics_collector


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: tests that need a real MongoDB (testcontainers)"
    )


# ============================================================================
# SAMPLE DOCUMENT TYPES
# ============================================================================


class Widget(Document):
    """Pydantic document used across tests."""

    name: str
    status: str = "active"
    stock: int = 0


class Order(Document):
    """Second pydantic document type."""

    number: int
    total: float = 0.0


@dataclass
class Gadget:
    """Dataclass document type."""

    name: str
    id: Optional[Any] = None
    color: str = "black"


class Unregistered(Document):
    """Document type that is never loaded into a registry."""

    label: str = ""


# ============================================================================
# MOCK PYMONGO FIXTURES
# ============================================================================


def make_mock_collection(name: str = "widgets", db_name: str = "test_db") -> MagicMock:
    """Create a mock pymongo collection with sensible default results."""
    collection = MagicMock(spec=Collection)
    collection.name = name
    collection.database.name = db_name
    collection.find_one = MagicMock(return_value=None)
    collection.find = MagicMock(return_value=[])
    collection.insert_one = MagicMock(return_value=MagicMock(inserted_id="test_id"))
    collection.insert_many = MagicMock(return_value=MagicMock(inserted_ids=["id1", "id2"]))
    collection.update_one = MagicMock(
        return_value=MagicMock(matched_count=1, modified_count=1, upserted_id=None)
    )
    collection.find_one_and_update = MagicMock(return_value=None)
    collection.delete_one = MagicMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = MagicMock(return_value=MagicMock(deleted_count=2))
    collection.count_documents = MagicMock(return_value=0)
    collection.aggregate = MagicMock(return_value=[])
    collection.create_index = MagicMock(return_value="test_index")
    collection.drop_index = MagicMock()
    return collection


@pytest.fixture
def mock_collection() -> MagicMock:
    """Create a mock pymongo collection named 'widgets'."""
    return make_mock_collection("widgets")


@pytest.fixture
def mock_database() -> MagicMock:
    """
    Create a mock pymongo database.

    ``database[name]`` returns the same mock collection for the same name.
    """
    database = MagicMock(spec=Database)
    database.name = "test_db"
    collections: Dict[str, MagicMock] = {}

    def get_collection(name: str) -> MagicMock:
        if name not in collections:
            collections[name] = make_mock_collection(name)
        return collections[name]

    database.__getitem__.side_effect = get_collection
    database.get_collection.side_effect = get_collection
    database.list_collection_names = MagicMock(return_value=[])
    return database


@pytest.fixture
def mock_mongo_client(mock_database: MagicMock) -> MagicMock:
    """Create a mock pymongo client whose databases are mock databases."""
    client = MagicMock(spec=MongoClient)
    client.admin = MagicMock()
    client.admin.command = MagicMock(return_value={"ok": 1})

    databases: Dict[str, MagicMock] = {}

    def get_database(name: str, **kwargs) -> MagicMock:
        if name not in databases:
            database = MagicMock(spec=Database)
            database.name = name
            database.codec_options = kwargs.get("codec_options")
            database.__getitem__.side_effect = lambda coll: make_mock_collection(coll, name)
            databases[name] = database
        return databases[name]

    client.get_database.side_effect = get_database
    return client


# ============================================================================
# ISOLATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_observability():
    """Reset global metrics between tests."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration environment variables for the duration of a test."""
    env_vars_to_clear = [
        "MONGO_URI",
        "DB_NAME",
        "MONGO_MAX_POOL_SIZE",
        "MONGO_MIN_POOL_SIZE",
        "MONGO_SERVER_SELECTION_TIMEOUT_MS",
        "MDB_KIT_REGISTRY_REPLACE",
        "MDB_KIT_UUID_AS_STRING",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield monkeypatch


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: container starts once and is reused for all integration tests.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    with MongoDbContainer(image="mongo:7.0") as container:
        yield container


@pytest.fixture
def mongodb_connection_string(mongodb_container) -> str:
    """Connection string for the test container, without a database name."""
    return mongodb_container.get_connection_url()


@pytest.fixture
def real_mongo_client(mongodb_connection_string):
    """
    Create a real pymongo client connected to the testcontainer.

    Automatically closes the client after the test.
    """
    client = MongoClient(mongodb_connection_string, serverSelectionTimeoutMS=10000)
    client.admin.command("ping")
    yield client
    client.close()


@pytest.fixture
def real_mongo_db(real_mongo_client):
    """
    Create a real MongoDB database for testing.

    Uses a unique database name per test to avoid conflicts and drops it afterwards.
    """
    db_name = f"test_db_{os.getpid()}_{id(real_mongo_client)}"
    yield real_mongo_client[db_name]
    real_mongo_client.drop_database(db_name)
