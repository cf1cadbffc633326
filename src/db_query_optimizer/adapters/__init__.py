"""Query interface definitions and driver implementations."""

from .base import (
    BaseAggregation,
    BaseCollection,
    BaseQuery,
    IndexKeys,
    Projection,
    SortSpec,
    merge_conditions,
    normalize_projection,
    normalize_sort,
)
from .motor import (
    READ_PREFERENCES,
    MotorAggregation,
    MotorCollection,
    MotorQuery,
    resolve_read_preference,
)

__all__ = [
    "BaseQuery",
    "BaseAggregation",
    "BaseCollection",
    "MotorQuery",
    "MotorAggregation",
    "MotorCollection",
    "READ_PREFERENCES",
    "resolve_read_preference",
    "merge_conditions",
    "normalize_sort",
    "normalize_projection",
    "SortSpec",
    "Projection",
    "IndexKeys",
]
