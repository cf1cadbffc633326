"""
db_query_optimizer - Query shaping and batch execution helpers for MongoDB

Projection and pagination shapers, explain-based index advice, index
builders, cursor-stable batch processing, time-bucketed range queries and
connection pool sizing on top of the motor async driver.
"""

__version__ = "0.1.0"

from db_query_optimizer.core import (
    BatchProcessor,
    DatabaseConnection,
    IndexBuilder,
    QueryAnalyzer,
    TimeRangeQueryRunner,
    build_time_buckets,
    lean_query,
    optimize_connection_pooling,
    optimized_aggregation,
    paginate,
    select_fields,
    set_read_preference,
)
from db_query_optimizer.models import (
    BatchStats,
    BulkInsertStats,
    DatabaseConfig,
    EqualWeight,
    ExecutionStatsReport,
    OptimizerSettings,
    PoolSettings,
    TextIndexSpec,
    TimeBucket,
    WeightedFields,
)

__all__ = [
    "DatabaseConnection",
    "QueryAnalyzer",
    "IndexBuilder",
    "BatchProcessor",
    "TimeRangeQueryRunner",
    "build_time_buckets",
    "lean_query",
    "select_fields",
    "paginate",
    "set_read_preference",
    "optimized_aggregation",
    "optimize_connection_pooling",
    "DatabaseConfig",
    "OptimizerSettings",
    "ExecutionStatsReport",
    "BatchStats",
    "BulkInsertStats",
    "EqualWeight",
    "WeightedFields",
    "TextIndexSpec",
    "PoolSettings",
    "TimeBucket",
]
