"""Index specification models."""

from typing import Any, Literal, Mapping, Sequence, Union

from pydantic import BaseModel, Field, field_validator


class EqualWeight(BaseModel):
    """Text index where every field carries the same weight."""

    kind: Literal["equal"] = "equal"
    fields: list[str] = Field(..., min_length=1, description="Fields to index")

    def key_pattern(self) -> dict[str, str]:
        """Key pattern for createIndexes."""
        return {field: "text" for field in self.fields}

    def index_options(self) -> dict[str, Any]:
        """Extra createIndexes options implied by the spec."""
        return {}


class WeightedFields(BaseModel):
    """Text index with an explicit weight per field."""

    kind: Literal["weighted"] = "weighted"
    weights: dict[str, int] = Field(
        ..., min_length=1, description="Field name to relative weight"
    )

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, int]) -> dict[str, int]:
        """MongoDB text weights must be positive integers."""
        for field, weight in v.items():
            if weight < 1:
                raise ValueError(f"Weight for '{field}' must be >= 1, got {weight}")
        return v

    def key_pattern(self) -> dict[str, str]:
        """Key pattern for createIndexes."""
        return {field: "text" for field in self.weights}

    def index_options(self) -> dict[str, Any]:
        """Extra createIndexes options implied by the spec."""
        return {"weights": dict(self.weights)}


TextIndexSpec = Union[EqualWeight, WeightedFields]


def to_text_index_spec(
    fields: Union[TextIndexSpec, Sequence[str], Mapping[str, int]],
) -> TextIndexSpec:
    """
    Coerce a field list or a field-to-weight mapping into a TextIndexSpec.

    Args:
        fields: An existing spec, a list of field names, or a weights mapping

    Returns:
        EqualWeight for a list, WeightedFields for a mapping
    """
    if isinstance(fields, (EqualWeight, WeightedFields)):
        return fields
    if isinstance(fields, Mapping):
        return WeightedFields(weights=dict(fields))
    if isinstance(fields, str):
        return EqualWeight(fields=[fields])
    return EqualWeight(fields=list(fields))
