"""Compound and text index creation."""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from db_query_optimizer.adapters.base import BaseCollection, IndexKeys
from db_query_optimizer.models.index import TextIndexSpec, to_text_index_spec
from db_query_optimizer.utils import dumps


class IndexBuilder:
    """Creates indexes on one collection, logging each outcome."""

    def __init__(
        self, collection: BaseCollection, logger: Optional[logging.Logger] = None
    ):
        """
        Initialize index builder.

        Args:
            collection: Collection to index
            logger: Logger for created/failed indexes (defaults to module logger)
        """
        self.collection = collection
        self.logger = logger or logging.getLogger(__name__)

    async def create(
        self,
        fields: Union[Mapping[str, int], Sequence[tuple[str, int]]],
        **options: Any,
    ) -> str:
        """
        Create a compound index.

        The server treats an identical existing index as a no-op; a
        conflicting one is reported as an error and re-raised.

        Args:
            fields: Field to direction mapping (1 or -1), in key order
            **options: createIndexes options (name, unique, sparse, ...)

        Returns:
            Name of the index

        Raises:
            ValueError: If no fields are given
            pymongo.errors.PyMongoError: If the server rejects the index
        """
        keys: IndexKeys = (
            list(fields.items()) if isinstance(fields, Mapping) else list(fields)
        )
        if not keys:
            raise ValueError("At least one field is required to create an index")

        return await self._create(keys, options, kind="compound")

    async def create_text(
        self,
        fields: Union[TextIndexSpec, Sequence[str], Mapping[str, int]],
        **options: Any,
    ) -> str:
        """
        Create a text index for full-text search.

        Args:
            fields: EqualWeight/WeightedFields spec, a list of field names
                (equal weights) or a field-to-weight mapping
            **options: createIndexes options (name, default_language, ...)

        Returns:
            Name of the index

        Raises:
            pymongo.errors.PyMongoError: If the server rejects the index
        """
        spec = to_text_index_spec(fields)
        keys: IndexKeys = list(spec.key_pattern().items())
        merged_options = {**options, **spec.index_options()}

        return await self._create(keys, merged_options, kind="text")

    async def _create(self, keys: IndexKeys, options: dict[str, Any], kind: str) -> str:
        rendered = dumps(dict(keys))
        try:
            name = await self.collection.create_index(keys, **options)
        except Exception as e:
            self.logger.error(
                f"Error creating {kind} index on {self.collection.name}: {e}"
            )
            raise

        self.logger.info(
            f"Created {kind} index on {self.collection.name}: {rendered}"
        )
        return name
