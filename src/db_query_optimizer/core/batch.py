"""Cursor-stable batch processing and chunked bulk inserts."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from pymongo.errors import BulkWriteError

from db_query_optimizer.adapters.base import BaseCollection, BaseQuery
from db_query_optimizer.models.batch import BatchStats, BulkInsertStats
from db_query_optimizer.models.config import OptimizerSettings

QueryFactory = Callable[[], BaseQuery]
DocumentProcessor = Callable[[dict[str, Any]], Union[Any, Awaitable[Any]]]


class BatchProcessor:
    """
    Walks a collection page by page and inserts documents in chunks.

    Pages are keyed on ``_id`` rather than an offset: each page asks for
    ``_id`` greater than the last one seen, sorted ascending, so documents
    are visited once and in key order. Documents inserted during a run with
    an ``_id`` at or below the current cursor are not visited. Pages always
    include ``_id``, even when the query factory's projection excludes it.
    """

    def __init__(
        self,
        collection: BaseCollection,
        batch_size: Optional[int] = None,
        settings: Optional[OptimizerSettings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize batch processor.

        Args:
            collection: Collection to insert into
            batch_size: Documents per page / per insert chunk (overrides settings)
            settings: Source of the default batch size
            logger: Logger for progress and failures (defaults to module logger)

        Raises:
            ValueError: If batch_size is below 1
        """
        settings = settings or OptimizerSettings()
        if batch_size is None:
            batch_size = settings.batch_size
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self.collection = collection
        self.batch_size = batch_size
        self.logger = logger or logging.getLogger(__name__)

    async def _fetch_page(
        self, query_factory: QueryFactory, last_id: Any
    ) -> list[dict[str, Any]]:
        query = query_factory().keep_id()
        if last_id is not None:
            query.where({"_id": {"$gt": last_id}})
        return await query.sort([("_id", 1)]).limit(self.batch_size).lean().exec()

    async def process(
        self, query_factory: QueryFactory, process_fn: DocumentProcessor
    ) -> BatchStats:
        """
        Apply ``process_fn`` to every document matched by the factory's query.

        Args:
            query_factory: Returns a fresh query (filter only) on each call
            process_fn: Called once per document; may be a coroutine function

        Returns:
            Processed, batch and error counts

        Raises:
            pymongo.errors.PyMongoError: If fetching a page fails
        """
        stats = BatchStats()
        last_id: Any = None

        while True:
            try:
                batch = await self._fetch_page(query_factory, last_id)
            except Exception as e:
                self.logger.error(f"Error in batch processing: {e}")
                raise

            if not batch:
                break

            for doc in batch:
                try:
                    result = process_fn(doc)
                    if inspect.isawaitable(result):
                        await result
                    stats.total_processed += 1
                except Exception as e:
                    self.logger.error(
                        f"Error processing document {doc.get('_id')}: {e}"
                    )
                    stats.errors += 1

            last_id = batch[-1]["_id"]
            stats.batches += 1

            self.logger.debug(
                f"Processed batch #{stats.batches} with {len(batch)} documents"
            )

        return stats

    async def bulk_insert(
        self, documents: Sequence[Mapping[str, Any]]
    ) -> BulkInsertStats:
        """
        Insert documents in unordered chunks of ``batch_size``.

        A failing chunk is counted once in ``errors``; documents of that chunk
        the server did insert are still counted, and later chunks still run.

        Args:
            documents: Documents to insert

        Returns:
            Inserted, batch and error counts
        """
        stats = BulkInsertStats()

        for start in range(0, len(documents), self.batch_size):
            chunk = documents[start : start + self.batch_size]

            try:
                stats.total_inserted += await self.collection.insert_many(
                    chunk, ordered=False
                )
            except BulkWriteError as e:
                stats.total_inserted += e.details.get("nInserted", 0)
                stats.errors += 1
                self.logger.error(
                    f"Error in bulk insert batch #{stats.batches + 1}: "
                    f"{len(e.details.get('writeErrors', []))} write errors"
                )
            except Exception as e:
                stats.errors += 1
                self.logger.error(
                    f"Error in bulk insert batch #{stats.batches + 1}: {e}"
                )

            stats.batches += 1
            self.logger.debug(
                f"Processed insert batch #{stats.batches} with {len(chunk)} documents"
            )

        return stats
