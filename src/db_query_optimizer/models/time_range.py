"""Time bucket models for range queries."""

from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field, model_validator

BucketSize = Literal["day", "week", "month"]

BUCKET_SIZES: tuple[str, ...] = ("day", "week", "month")


class TimeBucket(BaseModel):
    """Half-open time interval ``[start, end)`` scoping one sub-query."""

    start: datetime = Field(..., description="Inclusive lower bound")
    end: datetime = Field(..., description="Exclusive upper bound")

    @model_validator(mode="after")
    def check_order(self) -> "TimeBucket":
        """A bucket must have a positive width."""
        if self.end <= self.start:
            raise ValueError(
                f"Bucket end {self.end.isoformat()} must be after "
                f"start {self.start.isoformat()}"
            )
        return self

    @property
    def duration(self) -> timedelta:
        """Width of the bucket."""
        return self.end - self.start

    def to_filter(self, time_field: str) -> dict[str, dict[str, datetime]]:
        """Filter document restricting ``time_field`` to this bucket."""
        return {time_field: {"$gte": self.start, "$lt": self.end}}

    model_config = {"frozen": True}
