"""JSON serialization for BSON values using orjson.

orjson handles the common Python types natively:
- datetime, date, time → ISO format
- UUID → string
- dataclasses, pydantic models → dict

BSON-specific values returned by the driver (ObjectId, Decimal128, Regex,
Timestamp, Binary) need a default handler.
"""

import base64
import datetime
import decimal
import re
from typing import Any, Union

import orjson
from bson import ObjectId
from bson.decimal128 import Decimal128
from bson.regex import Regex
from bson.timestamp import Timestamp

# Flag letters in the order MongoDB prints $options
_REGEX_FLAGS = (
    ("i", re.IGNORECASE),
    ("l", re.LOCALE),
    ("m", re.MULTILINE),
    ("s", re.DOTALL),
    ("u", re.UNICODE),
    ("x", re.VERBOSE),
)


def _regex_options(flags: Union[int, str]) -> str:
    """Render regex flags as a $options string (e.g. ``re.I | re.M`` -> ``"im"``)."""
    if isinstance(flags, str):
        return "".join(sorted(flags))
    return "".join(letter for letter, flag in _REGEX_FLAGS if flags & flag)


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation

    Raises:
        TypeError: If object cannot be serialized
    """
    if isinstance(obj, ObjectId):
        return str(obj)

    if isinstance(obj, Decimal128):
        return str(obj.to_decimal())

    if isinstance(obj, decimal.Decimal):
        return str(obj)

    if isinstance(obj, Regex):
        return {"$regex": obj.pattern, "$options": _regex_options(obj.flags)}

    # Compiled re.Pattern used directly in a filter
    if hasattr(obj, "pattern") and hasattr(obj, "flags") and hasattr(obj, "match"):
        return {"$regex": obj.pattern}

    if isinstance(obj, Timestamp):
        return {"t": obj.time, "i": obj.inc}

    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()

    # bytes and bson.Binary (a bytes subclass) - try UTF-8 decode, fall back to base64
    if isinstance(obj, (bytes, bytearray)):
        try:
            return bytes(obj).decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(bytes(obj)).decode("ascii")

    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)

    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def convert_value_to_json_safe(value: Any) -> Any:
    """
    Convert a value to JSON-serializable format.

    Uses orjson's serialization and decodes back to Python objects.

    Args:
        value: Value to convert

    Returns:
        JSON-serializable value
    """
    try:
        json_bytes = orjson.dumps(
            value, default=_default_handler, option=orjson.OPT_NON_STR_KEYS
        )
        return orjson.loads(json_bytes)
    except TypeError:
        return str(value)


def convert_document_to_json_safe(document: dict[str, Any]) -> dict[str, Any]:
    """
    Convert all values in a document to JSON-serializable formats.

    Args:
        document: MongoDB document or filter

    Returns:
        Dictionary with JSON-serializable values
    """
    return {key: convert_value_to_json_safe(value) for key, value in document.items()}


def convert_documents_to_json_safe(
    documents: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Convert all documents to JSON-serializable format.

    Args:
        documents: List of documents

    Returns:
        List of dictionaries with JSON-serializable values
    """
    return [convert_document_to_json_safe(doc) for doc in documents]


def dumps(obj: Any, indent: bool = False) -> str:
    """
    Serialize object to JSON string using orjson.

    Args:
        obj: Object to serialize
        indent: Pretty-print with two-space indentation

    Returns:
        JSON string
    """
    option = orjson.OPT_NON_STR_KEYS
    if indent:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, default=_default_handler, option=option).decode("utf-8")
