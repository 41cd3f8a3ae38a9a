"""
Unit tests for ConnectionManager and its single/multi database variants.

Tests URI handling, connection initialization, error handling,
registry creation and shutdown.
"""

from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from mdb_kit.config import KitConfig
from mdb_kit.database import (ConnectionManager, MultiDatabaseConnection, Registry,
                              SingleDatabaseConnection, default_codec_options)
from mdb_kit.exceptions import ConfigurationError, InitializationError, NotRegisteredError
from mdb_kit.observability import get_metrics_collector
from tests.conftest import Widget

CLIENT_PATH = "mdb_kit.database.connection.MongoClient"


@pytest.fixture
def connection_config():
    """Provide default configuration for ConnectionManager."""
    return {
        "mongo_uri": "mongodb://localhost:27017/shop",
        "max_pool_size": 10,
        "min_pool_size": 1,
    }


class TestConnectionManagerConstruction:
    """Test URI parsing and configuration."""

    def test_default_db_name_from_uri(self, connection_config):
        manager = ConnectionManager(**connection_config)

        assert manager.default_db_name == "shop"
        assert manager.initialized is False
        assert manager.codec_options == default_codec_options()

    def test_uri_without_database(self):
        manager = ConnectionManager("mongodb://localhost:27017")
        assert manager.default_db_name is None

    def test_invalid_uri_raises_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConnectionManager("not-a-mongodb-uri")

        assert exc_info.value.config_key == "mongo_uri"

    def test_from_config_uses_db_name_when_uri_has_none(self):
        config = KitConfig(mongo_uri="mongodb://localhost:27017", db_name="audit")

        manager = ConnectionManager.from_config(config)

        assert manager.default_db_name == "audit"
        assert manager.max_pool_size == config.max_pool_size

    def test_from_config_prefers_uri_database(self):
        config = KitConfig(mongo_uri="mongodb://localhost:27017/shop", db_name="audit")
        assert ConnectionManager.from_config(config).default_db_name == "shop"

    def test_from_config_validates(self, clean_env):
        with pytest.raises(ConfigurationError):
            ConnectionManager.from_config(KitConfig())

    def test_client_before_initialize_raises(self, connection_config):
        manager = ConnectionManager(**connection_config)

        with pytest.raises(RuntimeError, match="not initialized"):
            manager.mongo_client


class TestConnectionManagerInitialize:
    """Test connection initialization."""

    def test_initialize_pings_and_configures_client(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client) as client_class:
            manager = ConnectionManager(**connection_config)
            manager.initialize()

        assert manager.initialized is True
        assert manager.mongo_client is mock_mongo_client
        mock_mongo_client.admin.command.assert_called_once_with("ping")

        _, kwargs = client_class.call_args
        assert kwargs["maxPoolSize"] == 10
        assert kwargs["minPoolSize"] == 1
        assert kwargs["appname"] == "MDB_KIT"
        assert get_metrics_collector().get_operation_count("connection.initialize") == 1

    def test_initialize_twice_is_noop(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client) as client_class:
            manager = ConnectionManager(**connection_config)
            manager.initialize()
            manager.initialize()

        assert client_class.call_count == 1

    def test_connection_failure(self, connection_config):
        mock_client = MagicMock()
        mock_client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")

        with patch(CLIENT_PATH, return_value=mock_client):
            manager = ConnectionManager(**connection_config)

            with pytest.raises(InitializationError) as exc_info:
                manager.initialize()

        assert "Failed to connect to MongoDB" in str(exc_info.value)
        assert exc_info.value.context["error_type"] == "ServerSelectionTimeoutError"
        assert exc_info.value.db_name == "shop"
        assert manager.initialized is False
        mock_client.close.assert_called_once()
        assert get_metrics_collector().get_error_count("connection.initialize") == 1

    @pytest.mark.parametrize("error", [TypeError("bad"), ValueError("bad"), KeyError("bad")])
    def test_initialize_unexpected_errors(self, connection_config, error):
        mock_client = MagicMock()
        mock_client.admin.command.side_effect = error

        with patch(CLIENT_PATH, return_value=mock_client):
            manager = ConnectionManager(**connection_config)

            with pytest.raises(InitializationError) as exc_info:
                manager.initialize()

        assert "ConnectionManager initialization failed" in str(exc_info.value)
        assert exc_info.value.context["error_type"] == type(error).__name__

    def test_initialize_attribute_error(self, connection_config):
        mock_client = MagicMock()
        mock_client.admin = None

        with patch(CLIENT_PATH, return_value=mock_client):
            manager = ConnectionManager(**connection_config)

            with pytest.raises(InitializationError) as exc_info:
                manager.initialize()

        assert exc_info.value.context["error_type"] == "AttributeError"

    def test_shutdown_is_idempotent(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            manager = ConnectionManager(**connection_config)
            manager.initialize()

        manager.shutdown()
        manager.shutdown()

        assert manager.initialized is False
        mock_mongo_client.close.assert_called_once()

    def test_new_registry_applies_codec_options(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            manager = ConnectionManager(**connection_config, registry_replace=False)
            manager.initialize()

        registry = manager.new_registry("audit")

        assert isinstance(registry, Registry)
        assert registry.name == "audit"
        assert registry.replace_existing is False
        assert registry.uuid_as_string is False
        mock_mongo_client.get_database.assert_called_with(
            "audit", codec_options=manager.codec_options
        )

    def test_new_registry_follows_uuid_mode(self, mock_mongo_client):
        config = KitConfig(mongo_uri="mongodb://localhost:27017/shop", uuid_as_string=True)

        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            manager = ConnectionManager.from_config(config)
            manager.initialize()

        handle = manager.new_registry("shop").load("widgets", Widget)

        assert handle.codec.uuid_as_string is True


class TestSingleDatabaseConnection:
    """Test the single-database variant."""

    def test_requires_database_in_uri(self):
        with pytest.raises(ConfigurationError, match="No database name"):
            SingleDatabaseConnection("mongodb://localhost:27017")

    def test_db_name_argument_when_uri_has_none(self):
        connection = SingleDatabaseConnection("mongodb://localhost:27017", db_name="shop")
        assert connection.default_db_name == "shop"

    def test_from_config_with_db_name(self, mock_mongo_client):
        config = KitConfig(mongo_uri="mongodb://localhost:27017", db_name="shop")

        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = SingleDatabaseConnection.from_config(config)
            connection.initialize()

        assert isinstance(connection, SingleDatabaseConnection)
        assert connection.default_db_name == "shop"
        assert connection.registry.name == "shop"

    def test_from_config_without_any_database_raises(self, clean_env):
        config = KitConfig(mongo_uri="mongodb://localhost:27017")

        with pytest.raises(ConfigurationError, match="No database name"):
            SingleDatabaseConnection.from_config(config)

    def test_registry_after_initialize(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = SingleDatabaseConnection(**connection_config)
            connection.initialize()

        handle = connection.registry.load("widgets", Widget)

        assert connection.registry.name == "shop"
        assert connection.registry.get(Widget) is handle

    def test_registry_before_initialize_raises(self, connection_config):
        connection = SingleDatabaseConnection(**connection_config)

        with pytest.raises(RuntimeError):
            connection.registry

    def test_shutdown_drops_registry(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = SingleDatabaseConnection(**connection_config)
            connection.initialize()

        connection.shutdown()

        with pytest.raises(RuntimeError):
            connection.registry


class TestMultiDatabaseConnection:
    """Test the multi-database variant."""

    def test_uri_database_is_loaded_on_initialize(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = MultiDatabaseConnection(**connection_config)
            connection.initialize()

        assert list(connection.registries) == ["shop"]
        assert connection.get_registry("shop").name == "shop"

    def test_load_registries(self, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = MultiDatabaseConnection("mongodb://localhost:27017")
            connection.initialize()

        result = connection.load_registries("shop", "audit")

        assert result is connection
        assert set(connection.registries) == {"shop", "audit"}
        assert connection.get_registry("audit").name == "audit"

    def test_missing_registry_raises(self, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = MultiDatabaseConnection("mongodb://localhost:27017")
            connection.initialize()

        with pytest.raises(NotRegisteredError):
            connection.get_registry("missing")

    def test_load_registry_before_initialize_raises(self):
        connection = MultiDatabaseConnection("mongodb://localhost:27017")

        with pytest.raises(RuntimeError):
            connection.load_registry("shop")

    def test_shutdown_clears_registries(self, connection_config, mock_mongo_client):
        with patch(CLIENT_PATH, return_value=mock_mongo_client):
            connection = MultiDatabaseConnection(**connection_config)
            connection.initialize()

        connection.shutdown()

        assert connection.registries == {}
