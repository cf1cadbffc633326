"""Core query shaping, analysis and execution helpers."""

from .aggregation import optimized_aggregation
from .analyzer import QueryAnalyzer
from .batch import BatchProcessor
from .connection import DatabaseConnection
from .indexes import IndexBuilder
from .pool import optimize_connection_pooling, suggest_pool_size
from .shaping import lean_query, paginate, select_fields, set_read_preference
from .time_range import TimeRangeQueryRunner, add_months, build_time_buckets

__all__ = [
    "DatabaseConnection",
    "QueryAnalyzer",
    "IndexBuilder",
    "BatchProcessor",
    "TimeRangeQueryRunner",
    "build_time_buckets",
    "add_months",
    "lean_query",
    "select_fields",
    "paginate",
    "set_read_preference",
    "optimized_aggregation",
    "optimize_connection_pooling",
    "suggest_pool_size",
]
