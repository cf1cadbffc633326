"""Query interface implementation for the motor asyncio driver."""

from typing import Any, Mapping, Optional, Sequence

from motor.motor_asyncio import (
    AsyncIOMotorCollection,
    AsyncIOMotorCursor,
    AsyncIOMotorDatabase,
)
from pymongo.read_preferences import ReadPreference

from .base import BaseAggregation, BaseCollection, BaseQuery, IndexKeys

READ_PREFERENCES: dict[str, Any] = {
    "primary": ReadPreference.PRIMARY,
    "primaryPreferred": ReadPreference.PRIMARY_PREFERRED,
    "secondary": ReadPreference.SECONDARY,
    "secondaryPreferred": ReadPreference.SECONDARY_PREFERRED,
    "nearest": ReadPreference.NEAREST,
}


def resolve_read_preference(name: str) -> Any:
    """
    Map a read preference mode name to the pymongo object.

    Raises:
        ValueError: If the name is not a known mode
    """
    try:
        return READ_PREFERENCES[name]
    except KeyError:
        raise ValueError(
            f"Unknown read preference: {name}. "
            f"Supported: {', '.join(READ_PREFERENCES)}"
        ) from None


class MotorQuery(BaseQuery):
    """Find query executed through an AsyncIOMotorCollection."""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        conditions: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(collection.name, conditions)
        self._collection = collection

    def read(self, preference: str) -> "MotorQuery":
        """Route this query according to a named read preference."""
        resolve_read_preference(preference)
        super().read(preference)
        return self

    def _target(self) -> AsyncIOMotorCollection:
        """Collection handle carrying this query's read preference."""
        if self._read_preference is None:
            return self._collection
        return self._collection.with_options(
            read_preference=resolve_read_preference(self._read_preference)
        )

    def _build_cursor(self) -> AsyncIOMotorCursor:
        cursor = self._target().find(self._conditions, self._projection)
        if self._sort:
            cursor = cursor.sort(self._sort)
        if self._skip:
            cursor = cursor.skip(self._skip)
        if self._limit:
            cursor = cursor.limit(self._limit)
        if self._max_time_ms is not None:
            cursor = cursor.max_time_ms(self._max_time_ms)
        return cursor

    async def explain(self, verbosity: str = "executionStats") -> dict[str, Any]:
        """Run the explain command for the equivalent find command."""
        target = self._target()
        return await target.database.command(
            {"explain": self.to_find_command(), "verbosity": verbosity},
            read_preference=target.read_preference,
        )

    async def exec(self) -> list[dict[str, Any]]:
        """Execute the query and return all matching documents."""
        # motor always yields plain dicts, so lean() needs no conversion here
        return await self._build_cursor().to_list(length=None)


class MotorAggregation(BaseAggregation):
    """Aggregation pipeline executed through an AsyncIOMotorCollection."""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        pipeline: Sequence[Mapping[str, Any]],
        options: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(collection.name, pipeline, options)
        self._collection = collection

    async def explain(self) -> dict[str, Any]:
        """Run the aggregate command with ``explain: true``."""
        database: AsyncIOMotorDatabase = self._collection.database
        kwargs: dict[str, Any] = {"pipeline": self._pipeline, "explain": True}
        if "allowDiskUse" in self._options:
            kwargs["allowDiskUse"] = self._options["allowDiskUse"]
        return await database.command("aggregate", self._collection_name, **kwargs)

    async def exec(self) -> list[dict[str, Any]]:
        """Run the pipeline and collect every result document."""
        cursor = self._collection.aggregate(self._pipeline, **self._options)
        return await cursor.to_list(length=None)


class MotorCollection(BaseCollection):
    """Collection operations backed by motor."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Wrap a motor collection.

        Args:
            collection: Motor collection handle
        """
        self._collection = collection

    @property
    def name(self) -> str:
        """Collection name."""
        return self._collection.name

    @property
    def raw(self) -> AsyncIOMotorCollection:
        """Underlying motor collection."""
        return self._collection

    def find(self, conditions: Optional[Mapping[str, Any]] = None) -> MotorQuery:
        """Start a new find query."""
        return MotorQuery(self._collection, conditions)

    async def create_index(self, keys: IndexKeys, **options: Any) -> str:
        """Create an index and return its name."""
        return await self._collection.create_index(keys, **options)

    async def insert_many(
        self, documents: Sequence[Mapping[str, Any]], ordered: bool = False
    ) -> int:
        """Insert documents and return the inserted count."""
        result = await self._collection.insert_many(list(documents), ordered=ordered)
        return len(result.inserted_ids)

    def aggregate(
        self, pipeline: Sequence[Mapping[str, Any]], **options: Any
    ) -> MotorAggregation:
        """Prepare an aggregation."""
        return MotorAggregation(self._collection, pipeline, options)
