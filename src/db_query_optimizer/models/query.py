"""Query plan analysis models."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ExecutionStatsReport(BaseModel):
    """Execution statistics and index advice derived from an explain plan."""

    collection: str = Field(..., description="Target collection name")
    conditions: dict[str, Any] = Field(
        default_factory=dict, description="Query filter conditions (JSON-safe)"
    )
    execution_time_ms: Optional[int] = Field(
        None, description="Server-reported execution time in milliseconds"
    )
    total_docs_examined: int = Field(
        default=0, description="Documents examined by the winning plan"
    )
    total_docs_returned: int = Field(
        default=0, description="Documents returned by the winning plan"
    )
    used_index: bool = Field(
        default=False, description="Whether the winning plan used an index"
    )
    indexes_used: list[str] = Field(
        default_factory=list, description="Names of indexes used by the winning plan"
    )
    suggested_indexes: list[dict[str, int]] = Field(
        default_factory=list, description="Suggested index key patterns"
    )
    efficiency: Optional[float] = Field(
        None,
        description="Returned/examined ratio in percent (None if nothing examined)",
    )
    suggestions: list[str] = Field(
        default_factory=list, description="Human-readable optimization suggestions"
    )

    @property
    def is_collection_scan(self) -> bool:
        """Check if the query scanned the whole collection."""
        return not self.used_index

    @property
    def has_suggestions(self) -> bool:
        """Check if the analyzer found anything worth acting on."""
        return bool(self.suggestions or self.suggested_indexes)

    def suggested_index_strings(self) -> list[str]:
        """Render suggested key patterns in shell notation, e.g. ``{ price: -1 }``."""
        rendered = []
        for keys in self.suggested_indexes:
            body = ", ".join(f"{field}: {value}" for field, value in keys.items())
            rendered.append(f"{{ {body} }}")
        return rendered

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "collection": "products",
                    "conditions": {"category": "shoes", "price": {"$lt": 100}},
                    "execution_time_ms": 42,
                    "total_docs_examined": 100,
                    "total_docs_returned": 5,
                    "used_index": False,
                    "indexes_used": [],
                    "suggested_indexes": [{"category": 1}, {"price": 1}],
                    "efficiency": 5.0,
                    "suggestions": [
                        "Query is performing a full collection scan. Consider adding an index."
                    ],
                }
            ]
        },
    }
