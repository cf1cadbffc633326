"""Pytest configuration and shared fixtures for query helper tests"""

import copy
import os
from typing import Any, AsyncGenerator, Callable, Mapping, Optional, Sequence

import pytest
from dotenv import load_dotenv
from pymongo.errors import OperationFailure

from db_query_optimizer.adapters.base import (
    BaseAggregation,
    BaseCollection,
    BaseQuery,
    IndexKeys,
)
from db_query_optimizer.core import DatabaseConnection
from db_query_optimizer.models.config import DatabaseConfig

# Load environment variables
load_dotenv()


# ==================== In-memory query interface ====================


def _compare(value: Any, operator: str, operand: Any) -> bool:
    if operator == "$eq":
        return value == operand
    if operator == "$ne":
        return value != operand
    if operator == "$in":
        return value in operand
    if operator == "$nin":
        return value not in operand
    if value is None:
        return False
    if operator == "$gt":
        return value > operand
    if operator == "$gte":
        return value >= operand
    if operator == "$lt":
        return value < operand
    if operator == "$lte":
        return value <= operand
    raise NotImplementedError(f"Operator {operator} not supported by test double")


def matches(document: Mapping[str, Any], conditions: Mapping[str, Any]) -> bool:
    """Evaluate the subset of MongoDB filter syntax used in the tests."""
    for field, condition in conditions.items():
        value = document.get(field)
        is_operator = isinstance(condition, Mapping) and all(
            k.startswith("$") for k in condition
        )
        if is_operator:
            if not all(_compare(value, op, arg) for op, arg in condition.items()):
                return False
        elif value != condition:
            return False
    return True


class InMemoryQuery(BaseQuery):
    """Query over an InMemoryCollection's document list."""

    def __init__(self, collection: "InMemoryCollection", conditions=None):
        super().__init__(collection.name, conditions)
        self._source = collection

    async def explain(self, verbosity: str = "executionStats") -> dict[str, Any]:
        self._source.explain_calls.append((self.to_find_command(), verbosity))
        if self._source.explain_error is not None:
            raise self._source.explain_error
        return copy.deepcopy(self._source.explain_output)

    async def exec(self) -> list[dict[str, Any]]:
        self._source.executed.append(
            {"filter": self.get_filter(), **self.get_options()}
        )
        if self._source.exec_error is not None:
            raise self._source.exec_error

        docs = [
            copy.deepcopy(d)
            for d in self._source.documents
            if matches(d, self._conditions)
        ]
        for field, direction in reversed(self._sort or []):
            docs.sort(key=lambda d: d.get(field), reverse=direction == -1)
        if self._skip:
            docs = docs[self._skip :]
        if self._limit:
            docs = docs[: self._limit]
        if self._projection:
            included = {f for f, flag in self._projection.items() if flag}
            excluded = {f for f, flag in self._projection.items() if not flag}
            if included:
                docs = [
                    {k: v for k, v in d.items() if k in included or k == "_id"}
                    for d in docs
                ]
            else:
                docs = [
                    {k: v for k, v in d.items() if k not in excluded} for d in docs
                ]
        return docs


class InMemoryAggregation(BaseAggregation):
    """Aggregation whose explain output and results are preset."""

    def __init__(self, collection: "InMemoryCollection", pipeline, options):
        super().__init__(collection.name, pipeline, options)
        self._source = collection

    async def explain(self) -> dict[str, Any]:
        if self._source.explain_error is not None:
            raise self._source.explain_error
        return copy.deepcopy(self._source.explain_output)

    async def exec(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._source.aggregate_results)


class InMemoryCollection(BaseCollection):
    """
    Collection double recording every call made through the query interface.

    ``insert_failures`` maps the 0-based insert_many call number to the
    exception that call should raise.
    """

    def __init__(self, name: str = "products", documents: Optional[list] = None):
        self._name = name
        self.documents: list[dict[str, Any]] = list(documents or [])
        self.executed: list[dict[str, Any]] = []
        self.explain_calls: list[tuple[dict[str, Any], str]] = []
        self.explain_output: dict[str, Any] = {}
        self.explain_error: Optional[Exception] = None
        self.exec_error: Optional[Exception] = None
        self.indexes: list[tuple[IndexKeys, dict[str, Any]]] = []
        self.index_error: Optional[Exception] = None
        self.insert_calls: list[list[dict[str, Any]]] = []
        self.insert_failures: dict[int, Exception] = {}
        self.aggregate_calls: list[tuple[list, dict[str, Any]]] = []
        self.aggregate_results: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return self._name

    def find(self, conditions=None) -> InMemoryQuery:
        return InMemoryQuery(self, conditions)

    async def create_index(self, keys: IndexKeys, **options: Any) -> str:
        if self.index_error is not None:
            raise self.index_error
        self.indexes.append((list(keys), dict(options)))
        return options.get("name") or "_".join(f"{f}_{d}" for f, d in keys)

    async def insert_many(
        self, documents: Sequence[Mapping[str, Any]], ordered: bool = False
    ) -> int:
        call_number = len(self.insert_calls)
        self.insert_calls.append([dict(d) for d in documents])
        failure = self.insert_failures.get(call_number)
        if failure is not None:
            raise failure
        self.documents.extend(dict(d) for d in documents)
        return len(documents)

    def aggregate(self, pipeline, **options: Any) -> InMemoryAggregation:
        self.aggregate_calls.append((list(pipeline), dict(options)))
        return InMemoryAggregation(self, pipeline, options)


# ==================== Explain output builders ====================


def _collscan_explain(
    examined: int, returned: int, time_ms: int = 12
) -> dict[str, Any]:
    """Explain output of a full collection scan."""
    return {
        "queryPlanner": {
            "namespace": "shop.products",
            "winningPlan": {"stage": "COLLSCAN", "direction": "forward"},
        },
        "executionStats": {
            "executionTimeMillis": time_ms,
            "totalDocsExamined": examined,
            "totalKeysExamined": 0,
            "nReturned": returned,
        },
    }


def _ixscan_explain(
    index_name: str,
    key_pattern: dict[str, int],
    examined: int,
    returned: int,
    time_ms: int = 3,
) -> dict[str, Any]:
    """Explain output of a FETCH over an index scan."""
    return {
        "queryPlanner": {
            "namespace": "shop.products",
            "winningPlan": {
                "stage": "FETCH",
                "inputStage": {
                    "stage": "IXSCAN",
                    "indexName": index_name,
                    "keyPattern": key_pattern,
                },
            },
        },
        "executionStats": {
            "executionTimeMillis": time_ms,
            "totalDocsExamined": examined,
            "totalKeysExamined": examined,
            "nReturned": returned,
        },
    }


# ==================== Fixtures ====================


@pytest.fixture
def make_collection() -> Callable[..., InMemoryCollection]:
    """Factory for in-memory collections"""
    return InMemoryCollection


@pytest.fixture
def products() -> InMemoryCollection:
    """Collection with 25 products keyed 1..25"""
    docs = [
        {
            "_id": i,
            "name": f"product-{i}",
            "category": "shoes" if i % 2 else "hats",
            "price": i * 10,
        }
        for i in range(1, 26)
    ]
    return InMemoryCollection("products", docs)


@pytest.fixture
def collscan_explain() -> Callable[..., dict[str, Any]]:
    """Builder for collection scan explain output"""
    return _collscan_explain


@pytest.fixture
def ixscan_explain() -> Callable[..., dict[str, Any]]:
    """Builder for index scan explain output"""
    return _ixscan_explain


@pytest.fixture
def duplicate_key_error() -> Callable[[int, int], Exception]:
    """Build a BulkWriteError reporting partial success"""
    from pymongo.errors import BulkWriteError

    def build(inserted: int, failed: int) -> Exception:
        return BulkWriteError(
            {
                "nInserted": inserted,
                "writeErrors": [
                    {"index": i, "code": 11000, "errmsg": "E11000 duplicate key error"}
                    for i in range(failed)
                ],
            }
        )

    return build


@pytest.fixture
def operation_failure() -> Exception:
    """Generic server-side failure"""
    return OperationFailure("not authorized on shop", code=13)


# ==================== MongoDB Fixtures ====================


@pytest.fixture(scope="session")
def mongo_database_url() -> Optional[str]:
    """MongoDB test database URL from environment"""
    return os.getenv("MONGO_TEST_DATABASE_URL")


@pytest.fixture
async def mongo_config(mongo_database_url: Optional[str]) -> DatabaseConfig:
    """MongoDB database configuration"""
    if not mongo_database_url:
        pytest.skip("MONGO_TEST_DATABASE_URL not set in environment")
    return DatabaseConfig(
        url=mongo_database_url,
        database=os.getenv("MONGO_TEST_DATABASE", "db_query_optimizer_test"),
        server_selection_timeout_ms=3000,
    )


@pytest.fixture
async def mongo_connection(
    mongo_config: DatabaseConfig,
) -> AsyncGenerator[DatabaseConnection, None]:
    """MongoDB connection with proper cleanup"""
    connection = DatabaseConnection(mongo_config)
    await connection.initialize()
    if not await connection.test_connection():
        await connection.dispose()
        pytest.skip("MongoDB test server not reachable")
    try:
        yield connection
    finally:
        await connection.dispose()


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "mongodb: MongoDB-specific tests")
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring database"
    )
    config.addinivalue_line("markers", "slow: Slow-running tests")
