"""Pydantic models for configuration and helper results."""

from .batch import BatchStats, BulkInsertStats
from .config import DatabaseConfig, OptimizerSettings
from .index import EqualWeight, TextIndexSpec, WeightedFields, to_text_index_spec
from .pool import PoolSettings
from .query import ExecutionStatsReport
from .time_range import BUCKET_SIZES, BucketSize, TimeBucket

__all__ = [
    "DatabaseConfig",
    "OptimizerSettings",
    "ExecutionStatsReport",
    "BatchStats",
    "BulkInsertStats",
    "EqualWeight",
    "WeightedFields",
    "TextIndexSpec",
    "to_text_index_spec",
    "PoolSettings",
    "TimeBucket",
    "BucketSize",
    "BUCKET_SIZES",
]
