"""MongoDB connection management with motor."""

import logging
from typing import Any, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from db_query_optimizer.adapters.motor import MotorCollection
from db_query_optimizer.models.config import DatabaseConfig


class DatabaseConnection:
    """Manages the motor client and its connection pool."""

    def __init__(
        self, config: DatabaseConfig, logger: Optional[logging.Logger] = None
    ):
        """
        Initialize database connection.

        Args:
            config: Database configuration with connection URI and pool settings
            logger: Logger to report lifecycle events to (defaults to module logger)
        """
        self.config = config
        self.client: Optional[AsyncIOMotorClient] = None
        self.logger = logger or logging.getLogger(__name__)

    async def initialize(self) -> None:
        """Create the motor client. Connections are opened lazily by the driver."""
        if self.client is not None:
            return  # Already initialized

        kwargs: dict[str, Any] = {
            "maxPoolSize": self.config.max_pool_size,
            "minPoolSize": self.config.min_pool_size,
            "maxConnecting": self.config.max_connecting,
            "serverSelectionTimeoutMS": self.config.server_selection_timeout_ms,
            "connectTimeoutMS": self.config.connect_timeout_ms,
            "socketTimeoutMS": self.config.socket_timeout_ms,
        }
        if self.config.app_name:
            kwargs["appname"] = self.config.app_name

        self.client = AsyncIOMotorClient(self.config.url, **kwargs)
        self.logger.info(f"MongoDB client created for {self.config.safe_url}")

    async def dispose(self) -> None:
        """Close the client and release pooled connections."""
        if self.client is not None:
            self.client.close()
            self.client = None
            self.logger.info("MongoDB client closed")

    def _require_client(self) -> AsyncIOMotorClient:
        if self.client is None:
            raise RuntimeError(
                "DatabaseConnection not initialized. Call initialize() first."
            )
        return self.client

    def get_database(self, name: Optional[str] = None) -> AsyncIOMotorDatabase:
        """
        Get a database handle.

        Args:
            name: Database name (defaults to the configured database)

        Raises:
            RuntimeError: If client not initialized
        """
        client = self._require_client()
        return client[name or self.config.database_name]

    def get_collection(
        self, name: str, database: Optional[str] = None
    ) -> MotorCollection:
        """
        Get a collection wrapped in the query interface.

        Args:
            name: Collection name
            database: Database name (defaults to the configured database)
        """
        return MotorCollection(self.get_database(database)[name])

    async def admin_command(self, command: Mapping[str, Any]) -> dict[str, Any]:
        """
        Run a command against the ``admin`` database.

        Args:
            command: Command document; its first key names the command

        Returns:
            Command response
        """
        client = self._require_client()
        return await client.admin.command(dict(command))

    @property
    def is_initialized(self) -> bool:
        """Check if the client is initialized."""
        return self.client is not None

    async def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if the server answered a ping, False otherwise
        """
        try:
            await self.admin_command({"ping": 1})
            return True
        except (PyMongoError, RuntimeError) as e:
            self.logger.warning(f"MongoDB ping failed: {e}")
            return False

    async def get_version(self) -> str:
        """
        Get server version string.

        Returns:
            Server version string
        """
        info = await self.admin_command({"buildInfo": 1})
        return str(info.get("version", "Unknown"))

    async def __aenter__(self) -> "DatabaseConnection":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.dispose()
