"""Connection pool tuning model."""

from pydantic import BaseModel, Field


class PoolSettings(BaseModel):
    """Pool settings suggested for connection construction."""

    pool_size: int = Field(..., ge=1, description="Suggested maximum pool size")
    socket_timeout_ms: int = Field(
        default=30000, description="Socket timeout in milliseconds"
    )
    connect_timeout_ms: int = Field(
        default=30000, description="Connect timeout in milliseconds"
    )
    max_connecting: int = Field(
        ..., ge=1, description="Connections a pool may establish concurrently"
    )

    def to_client_kwargs(self) -> dict[str, int]:
        """Keyword arguments accepted by MongoClient/AsyncIOMotorClient."""
        return {
            "maxPoolSize": self.pool_size,
            "socketTimeoutMS": self.socket_timeout_ms,
            "connectTimeoutMS": self.connect_timeout_ms,
            "maxConnecting": self.max_connecting,
        }
