"""Query shapers: lean results, projection, pagination and read preference."""

from typing import Mapping, Sequence, Union

from db_query_optimizer.adapters.base import BaseQuery
from db_query_optimizer.models.config import READ_PREFERENCE_NAMES

DEFAULT_PAGE_SIZE = 20
DEFAULT_READ_PREFERENCE = "secondaryPreferred"


def lean_query(query: BaseQuery) -> BaseQuery:
    """Return plain dictionaries instead of driver document wrappers."""
    return query.lean()


def select_fields(
    query: BaseQuery, fields: Union[str, Mapping[str, int], Sequence[str]]
) -> BaseQuery:
    """
    Apply a projection so only the needed fields come back.

    Args:
        query: Query handle
        fields: Field names, a ``"name -password"`` string, or a projection mapping

    Returns:
        The same query with the projection applied
    """
    return query.select(fields)


def paginate(
    query: BaseQuery, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
) -> BaseQuery:
    """
    Apply offset pagination.

    Args:
        query: Query handle
        page: 1-based page number
        limit: Documents per page

    Returns:
        The same query with ``skip=(page-1)*limit`` and ``limit`` applied

    Raises:
        ValueError: If page or limit is below 1
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    return query.skip((page - 1) * limit).limit(limit)


def set_read_preference(
    query: BaseQuery, preference: str = DEFAULT_READ_PREFERENCE
) -> BaseQuery:
    """
    Route a query to replicas according to a read preference.

    The default prefers secondaries. Such reads may not observe a write
    the same caller just made, so read-your-writes paths must not use it.

    Args:
        query: Query handle
        preference: primary, primaryPreferred, secondary, secondaryPreferred or nearest

    Raises:
        ValueError: If the preference name is unknown
    """
    if preference not in READ_PREFERENCE_NAMES:
        raise ValueError(
            f"Unknown read preference: {preference}. "
            f"Supported: {', '.join(sorted(READ_PREFERENCE_NAMES))}"
        )
    return query.read(preference)
