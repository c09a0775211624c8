"""
JSON Field Accessors

Typed, non-raising field extraction from loosely structured REST responses.

Azure DevOps omits fields freely (a running build has no ``result``, a
timeline record without output has no ``log``), so every hydration path reads
through these helpers and gets one well-defined fallback per type:

    get_string -> ""
    get_int    -> -1
    get_enum   -> the enum's first (unknown) member

Usage:
    from build_status.utils.json_fields import get_enum, get_int, get_string

    build_id = get_int(node, "id")
    status = get_enum(node, "status", Status)
"""

from enum import Enum
from typing import Any, TypeVar, Union

JsonNode = Union[dict[str, Any], list[Any], str, int, float, bool, None]

E = TypeVar("E", bound=Enum)

DEFAULT_STRING = ""
DEFAULT_INT = -1


def _field(node: JsonNode, key: str) -> Any:
    if not isinstance(node, dict):
        return None
    return node.get(key)


def get_string(node: JsonNode, key: str) -> str:
    """
    Read a string field.

    Numbers are converted with ``str()`` and booleans to ``"true"``/``"false"``.
    Objects, arrays, null and missing keys give ``""``.
    """
    value = _field(node, key)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return DEFAULT_STRING


def get_int(node: JsonNode, key: str) -> int:
    """
    Read an integer field.

    Accepts JSON integers, integral floats and numeric strings ("42").
    Anything else, including booleans, gives ``-1``.
    """
    value = _field(node, key)
    if isinstance(value, bool):
        return DEFAULT_INT
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else DEFAULT_INT
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return DEFAULT_INT
    return DEFAULT_INT


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()


def get_enum(node: JsonNode, key: str, enum_cls: type[E]) -> E:
    """
    Read an enum field, matching case-insensitively.

    The raw string is compared against member names (underscores ignored, so
    ``"inProgress"`` matches ``IN_PROGRESS``) and member values. Missing or
    unknown values give the first member declared on ``enum_cls``.

    Example:
        >>> get_enum({"result": "PartiallySucceeded"}, "result", Result)
        <Result.PARTIALLY_SUCCEEDED: 'partiallySucceeded'>
    """
    default = next(iter(enum_cls))
    value = _field(node, key)
    if not isinstance(value, str) or not value:
        return default

    wanted = _normalize(value.strip())
    for member in enum_cls:
        if _normalize(member.name) == wanted:
            return member
        if isinstance(member.value, str) and _normalize(member.value) == wanted:
            return member
    return default


def get_object(node: JsonNode, key: str) -> dict[str, Any] | None:
    """Read a nested object; anything that is not a JSON object gives None."""
    value = _field(node, key)
    return value if isinstance(value, dict) else None


def get_array(node: JsonNode, key: str) -> list[Any]:
    """Read a nested array; anything that is not a JSON array gives an empty list."""
    value = _field(node, key)
    return value if isinstance(value, list) else []
