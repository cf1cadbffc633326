"""Aggregation pipeline wrapper with spill-to-disk and timeout defaults."""

import logging
from typing import Any, Mapping, Optional, Sequence

from db_query_optimizer.adapters.base import BaseAggregation, BaseCollection
from db_query_optimizer.models.config import OptimizerSettings
from db_query_optimizer.utils import dumps


async def optimized_aggregation(
    collection: BaseCollection,
    pipeline: Sequence[Mapping[str, Any]],
    explain_query: bool = False,
    settings: Optional[OptimizerSettings] = None,
    logger: Optional[logging.Logger] = None,
    **options: Any,
) -> BaseAggregation:
    """
    Prepare an aggregation that may spill to disk and times out after 60s.

    ``allowDiskUse`` and ``maxTimeMS`` can be overridden through ``options``.
    With ``explain_query`` the engine's plan is logged at DEBUG; a failed
    explain is logged and does not fail the call.

    Args:
        collection: Collection to aggregate
        pipeline: Pipeline stages
        explain_query: Log the explain plan before returning
        settings: Source of the default timeout
        logger: Logger for the plan (defaults to module logger)
        **options: Aggregate command options

    Returns:
        Unexecuted aggregation handle
    """
    log = logger or logging.getLogger(__name__)
    settings = settings or OptimizerSettings()

    aggregate_options: dict[str, Any] = {
        "allowDiskUse": True,
        "maxTimeMS": settings.aggregation_max_time_ms,
        **options,
    }
    aggregation = collection.aggregate(pipeline, **aggregate_options)

    if explain_query:
        log.debug(f"Aggregation pipeline explanation for {collection.name}:")
        try:
            plan = await aggregation.explain()
        except Exception as e:
            log.error(f"Error explaining aggregation on {collection.name}: {e}")
        else:
            log.debug(dumps(plan, indent=True))

    return aggregation
