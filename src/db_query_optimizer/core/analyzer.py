"""Query plan analysis and index suggestions."""

import logging
from typing import Any, Iterator, Optional

from db_query_optimizer.adapters.base import BaseQuery
from db_query_optimizer.models.config import OptimizerSettings
from db_query_optimizer.models.query import ExecutionStatsReport
from db_query_optimizer.utils import convert_document_to_json_safe

COLLSCAN_SUGGESTION = (
    "Query is performing a full collection scan. Consider adding an index."
)
SORT_SUGGESTION = (
    "Sorting is not using an index, which can be inefficient for large datasets."
)


def _iter_stages(stage: Optional[dict[str, Any]]) -> Iterator[dict[str, Any]]:
    """Walk a plan tree depth-first, yielding every stage."""
    if not stage:
        return
    yield stage
    if "inputStage" in stage:
        yield from _iter_stages(stage["inputStage"])
    for child in stage.get("inputStages", []):
        yield from _iter_stages(child)
    # Slot-based engine nests the classic tree under queryPlan
    if "queryPlan" in stage:
        yield from _iter_stages(stage["queryPlan"])


def _winning_plan(explain_output: dict[str, Any]) -> dict[str, Any]:
    planner = explain_output.get("queryPlanner", {})
    plan = planner.get("winningPlan", {})
    return plan.get("queryPlan", plan)


class QueryAnalyzer:
    """Explain-based analysis of find queries."""

    def __init__(
        self,
        settings: Optional[OptimizerSettings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize query analyzer.

        Args:
            settings: Thresholds and explain verbosity
            logger: Logger for analysis failures (defaults to module logger)
        """
        self.settings = settings or OptimizerSettings()
        self.logger = logger or logging.getLogger(__name__)

    async def analyze(self, query: BaseQuery) -> ExecutionStatsReport:
        """
        Explain a query with execution statistics and derive index advice.

        Only read queries can be analyzed; the query itself is not modified.

        Args:
            query: Unexecuted find query

        Returns:
            Execution statistics report

        Raises:
            pymongo.errors.PyMongoError: If the explain command fails
        """
        try:
            explain_output = await query.explain(self.settings.explain_verbosity)
        except Exception as e:
            self.logger.error(
                f"Error analyzing query on {query.collection_name}: {e}"
            )
            raise

        return self.build_report(query, explain_output)

    def build_report(
        self, query: BaseQuery, explain_output: dict[str, Any]
    ) -> ExecutionStatsReport:
        """
        Turn raw explain output into a report.

        Args:
            query: The explained query (for its filter and sort)
            explain_output: Output of the explain command

        Returns:
            Execution statistics report
        """
        conditions = query.get_filter()
        sort_spec = query.get_options().get("sort") or []
        stats = explain_output.get("executionStats", {})
        plan = _winning_plan(explain_output)

        docs_examined = int(stats.get("totalDocsExamined", 0))
        docs_returned = int(stats.get("nReturned", 0))

        indexes_used: list[str] = []
        covered_fields: set[str] = set()
        collection_scan = False
        for stage in _iter_stages(plan):
            if stage.get("stage") == "COLLSCAN":
                collection_scan = True
            index_name = stage.get("indexName")
            if index_name and index_name not in indexes_used:
                indexes_used.append(index_name)
                covered_fields.update(stage.get("keyPattern", {}).keys())

        used_index = bool(indexes_used)
        suggestions: list[str] = []
        suggested_indexes: list[dict[str, int]] = []

        if collection_scan and not used_index:
            suggestions.append(COLLSCAN_SUGGESTION)

        efficiency: Optional[float] = None
        if docs_examined > 0:
            ratio = docs_returned / docs_examined
            efficiency = round(ratio * 100, 2)
            if ratio < self.settings.low_efficiency_threshold:
                suggestions.append(
                    f"Low query efficiency: examined {docs_examined} docs to return "
                    f"{docs_returned} docs. Consider refining the query or "
                    f"creating a compound index."
                )

        if sort_spec and not used_index:
            suggestions.append(SORT_SUGGESTION)
            suggested_indexes.append(
                {field: 1 if direction == 1 else -1 for field, direction in sort_spec}
            )

        if self.settings.suggest_filter_indexes:
            for field in conditions:
                if field.startswith("$") or field == "_id":
                    continue
                if field in covered_fields:
                    continue
                candidate = {field: 1}
                if candidate not in suggested_indexes:
                    suggested_indexes.append(candidate)

        return ExecutionStatsReport(
            collection=query.collection_name,
            conditions=convert_document_to_json_safe(conditions),
            execution_time_ms=stats.get("executionTimeMillis"),
            total_docs_examined=docs_examined,
            total_docs_returned=docs_returned,
            used_index=used_index,
            indexes_used=indexes_used,
            suggested_indexes=suggested_indexes,
            efficiency=efficiency,
            suggestions=suggestions,
        )
