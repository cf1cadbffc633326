"""Connection pool sizing from the host's CPU count."""

import logging
import math
import os
from typing import TYPE_CHECKING, Optional

from db_query_optimizer.models.config import OptimizerSettings
from db_query_optimizer.models.pool import PoolSettings

if TYPE_CHECKING:
    from db_query_optimizer.core.connection import DatabaseConnection


def suggest_pool_size(
    cpu_count: int, settings: Optional[OptimizerSettings] = None
) -> int:
    """
    Suggested maximum pool size: ``min(100, cpu_count * 5)`` by default.

    Args:
        cpu_count: Number of CPU cores
        settings: Source of the cap and per-core factor
    """
    settings = settings or OptimizerSettings()
    return max(1, min(settings.pool_size_cap, cpu_count * settings.pool_size_per_cpu))


async def optimize_connection_pooling(
    connection: Optional["DatabaseConnection"] = None,
    cpu_count: Optional[int] = None,
    settings: Optional[OptimizerSettings] = None,
    logger: Optional[logging.Logger] = None,
) -> PoolSettings:
    """
    Compute pool settings and hint ``maxConnecting`` to a live server.

    The server-side hint is best effort: a failure is logged and the
    computed settings are still returned. Apply the result when building
    the client, e.g. ``DatabaseConfig.with_pool_settings(settings)``.

    Args:
        connection: Initialized connection to send the hint through (optional)
        cpu_count: CPU cores to size for (defaults to ``os.cpu_count()``)
        settings: Sizing constants
        logger: Logger for hint failures (defaults to module logger)

    Returns:
        Suggested pool settings
    """
    log = logger or logging.getLogger(__name__)
    settings = settings or OptimizerSettings()

    if cpu_count is None:
        cpu_count = os.cpu_count() or 1

    pool_size = suggest_pool_size(cpu_count, settings)
    max_connecting = math.ceil(pool_size / settings.max_connecting_divisor)

    if connection is not None and connection.is_initialized:
        try:
            await connection.admin_command(
                {"setParameter": 1, "maxConnecting": max_connecting}
            )
        except Exception as e:
            log.error(f"Error setting maxConnecting: {e}")

    return PoolSettings(
        pool_size=pool_size,
        socket_timeout_ms=settings.socket_timeout_ms,
        connect_timeout_ms=settings.connect_timeout_ms,
        max_connecting=max_connecting,
    )
