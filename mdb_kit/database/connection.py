"""
Connection management for MDB_KIT.

This module parses the connection URI, opens the pymongo client, applies the
codec configuration and hands out one Registry per database.

This module is part of MDB_KIT.

Usage:
    connection = SingleDatabaseConnection("mongodb://localhost:27017/shop")
    connection.initialize()
    widgets = connection.registry.load("widgets", Widget)
    ...
    connection.shutdown()
"""

import logging
import time

from bson.codec_options import CodecOptions
from pymongo import MongoClient
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from pymongo.uri_parser import parse_uri

from ..config import KitConfig
from ..constants import (
    APP_NAME,
    DEFAULT_MAX_IDLE_TIME_MS,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_REGISTRY_REPLACE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    DEFAULT_UUID_AS_STRING,
)
from ..exceptions import ConfigurationError, InitializationError, NotRegisteredError
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation
from .codecs import default_codec_options
from .registry import Registry

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class ConnectionManager:
    """
    Manages the MongoDB client lifecycle and codec configuration.

    Handles connection initialization, validation, and shutdown, and builds
    registries over the databases of the connected deployment.
    """

    def __init__(
        self,
        mongo_uri: str,
        codec_options: CodecOptions | None = None,
        db_name: str | None = None,
        max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
        min_pool_size: int = DEFAULT_MIN_POOL_SIZE,
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        registry_replace: bool = DEFAULT_REGISTRY_REPLACE,
        uuid_as_string: bool = DEFAULT_UUID_AS_STRING,
    ) -> None:
        """
        Initialize the connection manager.

        Args:
            mongo_uri: MongoDB connection URI, optionally naming a default database
            codec_options: BSON codec options (defaults to default_codec_options())
            db_name: Default database used when the URI names none
            max_pool_size: Maximum MongoDB connection pool size
            min_pool_size: Minimum MongoDB connection pool size
            server_selection_timeout_ms: Server selection timeout in milliseconds
            registry_replace: Whether created registries replace duplicate loads
            uuid_as_string: Whether created registries store UUIDs as strings

        Raises:
            ConfigurationError: If the URI cannot be parsed
        """
        try:
            parsed = parse_uri(mongo_uri)
        except (PyMongoConfigurationError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid MongoDB URI: {e}", config_key="mongo_uri"
            ) from e

        self.mongo_uri = mongo_uri
        self.default_db_name: str | None = parsed.get("database") or db_name or None
        self.codec_options = codec_options or default_codec_options()
        self.max_pool_size = max_pool_size
        self.min_pool_size = min_pool_size
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.registry_replace = registry_replace
        self.uuid_as_string = uuid_as_string

        # Connection state
        self._mongo_client: MongoClient | None = None
        self._initialized: bool = False

    @classmethod
    def from_config(cls, config: KitConfig, codec_options: CodecOptions | None = None):
        """
        Build a manager from a validated KitConfig.

        A ``db_name`` set in the config is used only when the URI names no database.
        """
        config.validate()
        return cls(
            config.mongo_uri,
            codec_options=codec_options,
            db_name=config.db_name or None,
            max_pool_size=config.max_pool_size,
            min_pool_size=config.min_pool_size,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
            registry_replace=config.registry_replace,
            uuid_as_string=config.uuid_as_string,
        )

    def initialize(self) -> None:
        """
        Initialize the MongoDB connection.

        This method:
        1. Connects to MongoDB
        2. Validates the connection with a ping
        3. Runs the subclass hook that prepares registries

        Raises:
            InitializationError: If initialization fails
        """
        start_time = time.time()

        if self._initialized:
            logger.warning("ConnectionManager already initialized. Skipping re-initialization.")
            return

        contextual_logger.info(
            "Initializing MongoDB connection",
            extra={
                "db_name": self.default_db_name,
                "max_pool_size": self.max_pool_size,
                "min_pool_size": self.min_pool_size,
            },
        )

        try:
            self._mongo_client = MongoClient(
                self.mongo_uri,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                appname=APP_NAME,
                maxPoolSize=self.max_pool_size,
                minPoolSize=self.min_pool_size,
                maxIdleTimeMS=DEFAULT_MAX_IDLE_TIME_MS,
                retryWrites=True,
                retryReads=True,
            )

            # Verify connection
            self._mongo_client.admin.command("ping")

            self._initialized = True
            self._on_initialized()

            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=True)
            contextual_logger.info(
                "MongoDB connection initialized successfully",
                extra={
                    "db_name": self.default_db_name,
                    "pool_size": f"{self.min_pool_size}-{self.max_pool_size}",
                    "duration_ms": round(duration_ms, 2),
                },
            )
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            self._reset()
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=False)
            contextual_logger.critical(
                "MongoDB connection failed",
                extra={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            raise InitializationError(
                f"Failed to connect to MongoDB: {e}",
                mongo_uri=self.mongo_uri,
                db_name=self.default_db_name,
                context={
                    "error_type": type(e).__name__,
                    "max_pool_size": self.max_pool_size,
                    "min_pool_size": self.min_pool_size,
                },
            ) from e
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            self._reset()
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=False)
            contextual_logger.critical(
                "ConnectionManager initialization failed",
                extra={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            raise InitializationError(
                f"ConnectionManager initialization failed: {e}",
                mongo_uri=self.mongo_uri,
                db_name=self.default_db_name,
                context={
                    "error_type": type(e).__name__,
                },
            ) from e

    def _on_initialized(self) -> None:
        """Hook run once the client is connected."""

    def _reset(self) -> None:
        if self._mongo_client is not None:
            self._mongo_client.close()
        self._mongo_client = None
        self._initialized = False

    def shutdown(self) -> None:
        """
        Shutdown the MongoDB connection and clean up resources.

        This method is idempotent - it's safe to call multiple times.
        """
        start_time = time.time()

        if not self._initialized:
            return

        contextual_logger.info("Shutting down MongoDB connection...")
        self._reset()

        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.shutdown", duration_ms, success=True)
        contextual_logger.info(
            "MongoDB connection shutdown complete",
            extra={"duration_ms": round(duration_ms, 2)},
        )

    def new_registry(self, name: str) -> Registry:
        """
        Create a registry over database ``name`` with this manager's codec options.

        Raises:
            RuntimeError: If connection is not initialized
        """
        database = self.mongo_client.get_database(name, codec_options=self.codec_options)
        return Registry(
            database,
            replace_existing=self.registry_replace,
            uuid_as_string=self.uuid_as_string,
        )

    @property
    def mongo_client(self) -> MongoClient:
        """
        Get the MongoDB client.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if not self._initialized or self._mongo_client is None:
            raise RuntimeError(
                "ConnectionManager not initialized. Call initialize() first.",
            )
        return self._mongo_client

    @property
    def initialized(self) -> bool:
        """Check if connection is initialized."""
        return self._initialized


class SingleDatabaseConnection(ConnectionManager):
    """
    Connection bound to one database, named in the URI or passed as ``db_name``.

    Example:
        connection = SingleDatabaseConnection("mongodb://localhost:27017/shop")
        connection.initialize()
        connection.registry.load("widgets", Widget)
    """

    def __init__(self, mongo_uri: str, codec_options: CodecOptions | None = None, **kwargs) -> None:
        """
        Raises:
            ConfigurationError: If neither the URI nor ``db_name`` names a database
        """
        super().__init__(mongo_uri, codec_options=codec_options, **kwargs)
        if not self.default_db_name:
            raise ConfigurationError(
                "No database name found in connection URI or db_name", config_key="mongo_uri"
            )
        self._registry: Registry | None = None

    def _on_initialized(self) -> None:
        self._registry = self.new_registry(self.default_db_name)

    def _reset(self) -> None:
        super()._reset()
        self._registry = None

    @property
    def registry(self) -> Registry:
        """
        Registry over the bound database.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if self._registry is None:
            raise RuntimeError(
                "ConnectionManager not initialized. Call initialize() first.",
            )
        return self._registry


class MultiDatabaseConnection(ConnectionManager):
    """
    Connection serving registries for several databases.

    The URI's database, if it names one, is loaded on initialize().

    Example:
        connection = MultiDatabaseConnection("mongodb://localhost:27017")
        connection.initialize()
        connection.load_registries("shop", "audit")
        connection.get_registry("shop").load("widgets", Widget)
    """

    def __init__(self, mongo_uri: str, codec_options: CodecOptions | None = None, **kwargs) -> None:
        super().__init__(mongo_uri, codec_options=codec_options, **kwargs)
        self.registries: dict[str, Registry] = {}

    def _on_initialized(self) -> None:
        if self.default_db_name:
            self.load_registry(self.default_db_name)

    def _reset(self) -> None:
        super()._reset()
        self.registries.clear()

    def load_registry(self, name: str) -> Registry:
        """Create and keep the registry for database ``name``, replacing any previous one."""
        registry = self.new_registry(name)
        self.registries[name] = registry
        logger.debug(f"Loaded registry for database '{name}'")
        return registry

    def load_registries(self, *names: str) -> "MultiDatabaseConnection":
        for name in names:
            self.load_registry(name)
        return self

    def get_registry(self, name: str) -> Registry:
        """
        Return the loaded registry for database ``name``.

        Raises:
            NotRegisteredError: If no registry was loaded for ``name``
        """
        registry = self.registries.get(name)
        if registry is None:
            raise NotRegisteredError(f"No registry loaded for database '{name}'", key=name)
        return registry
