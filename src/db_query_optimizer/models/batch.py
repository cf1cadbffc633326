"""Counters accumulated by batch processing and bulk inserts."""

from pydantic import BaseModel, Field


class BatchStats(BaseModel):
    """Result of a batch processing run."""

    total_processed: int = Field(
        default=0, description="Documents processed without error"
    )
    batches: int = Field(default=0, description="Non-empty pages fetched")
    errors: int = Field(default=0, description="Documents whose processing failed")

    @property
    def total_visited(self) -> int:
        """Documents handed to the processing function, failed or not."""
        return self.total_processed + self.errors


class BulkInsertStats(BaseModel):
    """Result of a chunked bulk insert."""

    total_inserted: int = Field(default=0, description="Documents inserted")
    batches: int = Field(default=0, description="Chunks submitted")
    errors: int = Field(default=0, description="Chunks that reported a failure")

    @property
    def has_errors(self) -> bool:
        """Check if any chunk failed."""
        return self.errors > 0
