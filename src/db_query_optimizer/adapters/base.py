"""Driver-independent query, aggregation and collection interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence, Union

# (field, direction) pairs, as accepted by pymongo's sort() and create_index()
SortSpec = list[tuple[str, int]]
Projection = dict[str, int]
IndexKeys = list[tuple[str, Union[int, str]]]


def _is_operator_document(value: Any) -> bool:
    """Check if value is a non-empty mapping whose keys are all $-operators."""
    return (
        isinstance(value, Mapping)
        and len(value) > 0
        and all(isinstance(k, str) and k.startswith("$") for k in value)
    )


def merge_conditions(
    base: Mapping[str, Any], extra: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Merge filter conditions field by field.

    Operator documents on the same field are combined, so
    ``{"_id": {"$gt": a}}`` merged with ``{"_id": {"$lt": b}}`` gives
    ``{"_id": {"$gt": a, "$lt": b}}``. Any other collision is overwritten
    by ``extra``: an equality on ``_id`` or a time field is replaced by a
    later range on that field, the way chained ``where().gt()`` calls behave.
    """
    merged = dict(base)
    for field, condition in extra.items():
        current = merged.get(field)
        if _is_operator_document(current) and _is_operator_document(condition):
            merged[field] = {**current, **condition}
        else:
            merged[field] = condition
    return merged


def normalize_sort(
    spec: Union[str, Mapping[str, int], Sequence[Union[str, tuple[str, int]]]],
) -> SortSpec:
    """
    Normalize the sort notations accepted by the builder.

    Accepts ``"-createdAt name"``, ``{"createdAt": -1}``, or a list of
    ``(field, direction)`` pairs / bare field names.
    """
    if isinstance(spec, str):
        pairs = []
        for token in spec.split():
            if token.startswith("-"):
                pairs.append((token[1:], -1))
            else:
                pairs.append((token.lstrip("+"), 1))
        return pairs

    if isinstance(spec, Mapping):
        return [
            (field, 1 if direction in (1, "asc", "ascending") else -1)
            for field, direction in spec.items()
        ]

    pairs = []
    for item in spec:
        if isinstance(item, str):
            pairs.append((item, 1))
        else:
            field, direction = item
            pairs.append((field, 1 if direction in (1, "asc", "ascending") else -1))
    return pairs


def normalize_projection(
    fields: Union[str, Mapping[str, int], Sequence[str]],
) -> Projection:
    """
    Normalize field selection into a projection document.

    ``"name -password"`` includes ``name`` and excludes ``password``;
    a list of names includes each of them.
    """
    if isinstance(fields, Mapping):
        return {field: 1 if flag else 0 for field, flag in fields.items()}

    tokens = fields.split() if isinstance(fields, str) else list(fields)
    projection: Projection = {}
    for token in tokens:
        if token.startswith("-"):
            projection[token[1:]] = 0
        else:
            projection[token.lstrip("+")] = 1
    return projection


class BaseQuery(ABC):
    """
    Unexecuted find query with chainable shaping operations.

    Builder methods mutate this handle and return it. ``explain`` and
    ``exec`` are implemented per driver.
    """

    def __init__(
        self,
        collection_name: str,
        conditions: Optional[Mapping[str, Any]] = None,
    ):
        self._collection_name = collection_name
        self._conditions: dict[str, Any] = dict(conditions or {})
        self._projection: Optional[Projection] = None
        self._sort: Optional[SortSpec] = None
        self._skip: int = 0
        self._limit: int = 0
        self._lean: bool = False
        self._read_preference: Optional[str] = None
        self._max_time_ms: Optional[int] = None

    @property
    def collection_name(self) -> str:
        """Name of the collection this query targets."""
        return self._collection_name

    @property
    def is_lean(self) -> bool:
        """Whether results are returned as plain dictionaries."""
        return self._lean

    def get_filter(self) -> dict[str, Any]:
        """Copy of the current filter conditions."""
        return dict(self._conditions)

    def get_options(self) -> dict[str, Any]:
        """Current shaping options (only those that were set)."""
        options: dict[str, Any] = {}
        if self._projection is not None:
            options["projection"] = dict(self._projection)
        if self._sort is not None:
            options["sort"] = list(self._sort)
        if self._skip:
            options["skip"] = self._skip
        if self._limit:
            options["limit"] = self._limit
        if self._read_preference is not None:
            options["read_preference"] = self._read_preference
        if self._max_time_ms is not None:
            options["max_time_ms"] = self._max_time_ms
        return options

    def where(self, conditions: Mapping[str, Any]) -> "BaseQuery":
        """Add filter conditions, combining operators on shared fields."""
        self._conditions = merge_conditions(self._conditions, conditions)
        return self

    def select(
        self, fields: Union[str, Mapping[str, int], Sequence[str]]
    ) -> "BaseQuery":
        """Restrict returned fields."""
        self._projection = normalize_projection(fields)
        return self

    def skip(self, count: int) -> "BaseQuery":
        """Skip the first ``count`` matching documents."""
        if count < 0:
            raise ValueError(f"skip must be >= 0, got {count}")
        self._skip = count
        return self

    def limit(self, count: int) -> "BaseQuery":
        """Return at most ``count`` documents (0 means no limit)."""
        if count < 0:
            raise ValueError(f"limit must be >= 0, got {count}")
        self._limit = count
        return self

    def keep_id(self) -> "BaseQuery":
        """
        Make sure returned documents carry ``_id``.

        An exclusion of ``_id`` is dropped and an inclusion projection gains
        ``_id: 1``; other fields keep their projection.
        """
        if self._projection is None:
            return self
        projection = {f: flag for f, flag in self._projection.items() if f != "_id"}
        if any(projection.values()):
            projection["_id"] = 1
        self._projection = projection or None
        return self

    def sort(
        self,
        spec: Union[str, Mapping[str, int], Sequence[Union[str, tuple[str, int]]]],
    ) -> "BaseQuery":
        """Replace the sort order."""
        self._sort = normalize_sort(spec)
        return self

    def lean(self, enabled: bool = True) -> "BaseQuery":
        """Return plain dictionaries instead of wrapped documents."""
        self._lean = enabled
        return self

    def read(self, preference: str) -> "BaseQuery":
        """Route this query according to a named read preference."""
        self._read_preference = preference
        return self

    def max_time_ms(self, milliseconds: int) -> "BaseQuery":
        """Server-side execution time limit."""
        self._max_time_ms = milliseconds
        return self

    def to_find_command(self) -> dict[str, Any]:
        """Equivalent ``find`` database command, as used by ``explain``."""
        command: dict[str, Any] = {
            "find": self._collection_name,
            "filter": dict(self._conditions),
        }
        if self._projection is not None:
            command["projection"] = dict(self._projection)
        if self._sort is not None:
            command["sort"] = dict(self._sort)
        if self._skip:
            command["skip"] = self._skip
        if self._limit:
            command["limit"] = self._limit
        if self._max_time_ms is not None:
            command["maxTimeMS"] = self._max_time_ms
        return command

    @abstractmethod
    async def explain(self, verbosity: str = "executionStats") -> dict[str, Any]:
        """
        Run the query in explain mode.

        Args:
            verbosity: Explain verbosity (executionStats or allPlansExecution)

        Returns:
            Raw explain output with ``queryPlanner`` and ``executionStats``
        """
        ...

    @abstractmethod
    async def exec(self) -> list[dict[str, Any]]:
        """
        Execute the query.

        Returns:
            Matching documents
        """
        ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(collection={self._collection_name!r}, "
            f"filter={self._conditions!r}, options={self.get_options()!r})"
        )


class BaseAggregation(ABC):
    """Unexecuted aggregation pipeline with its command options."""

    def __init__(
        self,
        collection_name: str,
        pipeline: Sequence[Mapping[str, Any]],
        options: Optional[Mapping[str, Any]] = None,
    ):
        self._collection_name = collection_name
        self._pipeline = [dict(stage) for stage in pipeline]
        self._options = dict(options or {})

    @property
    def collection_name(self) -> str:
        """Name of the collection the pipeline runs against."""
        return self._collection_name

    @property
    def pipeline(self) -> list[dict[str, Any]]:
        """Pipeline stages."""
        return list(self._pipeline)

    @property
    def options(self) -> dict[str, Any]:
        """Aggregate command options (allowDiskUse, maxTimeMS, ...)."""
        return dict(self._options)

    @abstractmethod
    async def explain(self) -> dict[str, Any]:
        """Return the engine's explain output for this pipeline."""
        ...

    @abstractmethod
    async def exec(self) -> list[dict[str, Any]]:
        """Run the pipeline and return all result documents."""
        ...


class BaseCollection(ABC):
    """Collection-level operations the helpers depend on."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Collection name."""
        ...

    @abstractmethod
    def find(self, conditions: Optional[Mapping[str, Any]] = None) -> BaseQuery:
        """
        Start a new find query.

        Args:
            conditions: Initial filter conditions

        Returns:
            Unexecuted query handle
        """
        ...

    @abstractmethod
    async def create_index(self, keys: IndexKeys, **options: Any) -> str:
        """
        Create an index.

        Args:
            keys: (field, direction-or-type) pairs
            **options: createIndexes options (name, unique, weights, ...)

        Returns:
            Name of the created index
        """
        ...

    @abstractmethod
    async def insert_many(
        self, documents: Sequence[Mapping[str, Any]], ordered: bool = False
    ) -> int:
        """
        Insert documents.

        Args:
            documents: Documents to insert
            ordered: Stop at the first failure when True

        Returns:
            Number of documents inserted

        Raises:
            pymongo.errors.BulkWriteError: If any document failed; ``details``
                carries ``nInserted``
        """
        ...

    @abstractmethod
    def aggregate(
        self, pipeline: Sequence[Mapping[str, Any]], **options: Any
    ) -> BaseAggregation:
        """
        Prepare an aggregation.

        Args:
            pipeline: Pipeline stages
            **options: Aggregate command options

        Returns:
            Unexecuted aggregation handle
        """
        ...
