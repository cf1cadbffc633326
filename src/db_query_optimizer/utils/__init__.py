"""Utility modules for the query helpers."""

from db_query_optimizer.utils.serialization import (
    convert_document_to_json_safe,
    convert_documents_to_json_safe,
    convert_value_to_json_safe,
    dumps,
)

__all__ = [
    "convert_value_to_json_safe",
    "convert_document_to_json_safe",
    "convert_documents_to_json_safe",
    "dumps",
]
