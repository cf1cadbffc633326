"""Time-bucketed range queries.

A long ``[start, end)`` range is split into consecutive day, week or month
buckets and one query runs per bucket, in order, so only one slice of the
range is held in memory at a time.

EXAMPLE
-------

    start = datetime(2023, 1, 1)
    end = datetime(2023, 1, 10)
    bucket_size = "day"

    Bucket 1: 2023-01-01 -> 2023-01-02
    Bucket 2: 2023-01-02 -> 2023-01-03
    ...
    Bucket 9: 2023-01-09 -> 2023-01-10

Month buckets step to the same day of the following months, counted from
``start`` and clamped to the month's last day:

    start = datetime(2024, 1, 31), end = datetime(2024, 4, 15)

    Bucket 1: 2024-01-31 -> 2024-02-29
    Bucket 2: 2024-02-29 -> 2024-03-31
    Bucket 3: 2024-03-31 -> 2024-04-15 (clipped to end)
"""

import calendar
import inspect
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Callable, Optional, Union

from db_query_optimizer.adapters.base import BaseCollection, BaseQuery
from db_query_optimizer.models.time_range import BUCKET_SIZES, BucketSize, TimeBucket

QueryBuilder = Callable[[BaseCollection], BaseQuery]
ResultProcessor = Callable[
    [list[dict[str, Any]], TimeBucket], Union[Any, Awaitable[Any]]
]

_FIXED_STEPS = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
}


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months, clamping the day of month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def build_time_buckets(
    start: Union[date, datetime],
    end: Union[date, datetime],
    bucket_size: BucketSize = "day",
) -> list[TimeBucket]:
    """
    Partition ``[start, end)`` into contiguous, non-overlapping buckets.

    Args:
        start: Inclusive range start
        end: Exclusive range end
        bucket_size: "day", "week" or "month"

    Returns:
        Buckets in chronological order; the last one ends exactly at ``end``.
        Empty if ``start >= end``.

    Raises:
        ValueError: If bucket_size is unknown or start/end mix naive and
            timezone-aware datetimes
    """
    if bucket_size not in BUCKET_SIZES:
        raise ValueError(
            f"Unknown bucket size: {bucket_size}. Supported: {', '.join(BUCKET_SIZES)}"
        )

    range_start = _as_datetime(start)
    range_end = _as_datetime(end)
    if (range_start.tzinfo is None) != (range_end.tzinfo is None):
        raise ValueError("start and end must both be naive or both be timezone-aware")

    buckets: list[TimeBucket] = []
    current = range_start
    step = 0

    while current < range_end:
        step += 1
        if bucket_size == "month":
            bucket_end = add_months(range_start, step)
        else:
            bucket_end = current + _FIXED_STEPS[bucket_size]

        if bucket_end > range_end:
            bucket_end = range_end

        buckets.append(TimeBucket(start=current, end=bucket_end))
        current = bucket_end

    return buckets


class TimeRangeQueryRunner:
    """Runs one query per time bucket over a collection."""

    def __init__(
        self, collection: BaseCollection, logger: Optional[logging.Logger] = None
    ):
        """
        Initialize time range runner.

        Args:
            collection: Collection passed to the query builder
            logger: Logger for progress and failures (defaults to module logger)
        """
        self.collection = collection
        self.logger = logger or logging.getLogger(__name__)

    async def run(
        self,
        time_field: str,
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        query_builder: QueryBuilder,
        bucket_size: BucketSize = "day",
        result_processor: Optional[ResultProcessor] = None,
    ) -> list[Any]:
        """
        Query ``[start_date, end_date)`` one bucket at a time.

        Each bucket's query is ``query_builder(collection)`` narrowed to
        ``time_field`` in ``[bucket.start, bucket.end)``. Buckets run
        sequentially in chronological order.

        Args:
            time_field: Timestamp field to range over
            start_date: Inclusive range start
            end_date: Exclusive range end
            query_builder: Builds the base query for one bucket
            bucket_size: "day", "week" or "month"
            result_processor: Optional ``(results, bucket)`` transform; may be
                a coroutine function

        Returns:
            Concatenated documents of every bucket, or one processed entry
            per bucket when ``result_processor`` is given

        Raises:
            ValueError: If bucket_size is unknown
            pymongo.errors.PyMongoError: If a bucket query fails
        """
        buckets = build_time_buckets(start_date, end_date, bucket_size)
        results: list[Any] = []

        try:
            for bucket in buckets:
                query = query_builder(self.collection)
                query.where(bucket.to_filter(time_field))
                bucket_results = await query.lean().exec()

                if result_processor is not None:
                    processed = result_processor(bucket_results, bucket)
                    if inspect.isawaitable(processed):
                        processed = await processed
                    results.append(processed)
                else:
                    results.extend(bucket_results)

                self.logger.debug(
                    f"Bucket {bucket.start.isoformat()} -> {bucket.end.isoformat()}: "
                    f"{len(bucket_results)} documents"
                )
        except Exception as e:
            self.logger.error(f"Error executing time range query: {e}")
            raise

        return results
