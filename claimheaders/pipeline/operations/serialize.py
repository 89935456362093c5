"""
Claim value to header string conversion.

Handles every JSON type a decoded token can contain:
- null: empty string
- string: as-is
- boolean: "true" / "false"
- number: plain decimal, never exponent notation
- array: joined text ("admin, user") or a compact JSON array
- object: always a compact JSON object
"""

from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any

from claimheaders.errors import SerializationError
from claimheaders.models import ListRenderMode


def serialize_value(value: Any, list_mode: ListRenderMode) -> str:
    """
    Convert a claim value to a header-safe string.

    Args:
        value: Resolved claim value
        list_mode: How arrays are rendered

    Returns:
        String representation (not yet sanitized)

    Raises:
        SerializationError: if the value, or an element of it, cannot be encoded
    """
    try:
        return _serialize(value, list_mode)
    except RecursionError as e:
        raise SerializationError("claim value is nested too deeply") from e


def _serialize(value: Any, list_mode: ListRenderMode) -> str:
    if value is None:
        return ""

    # bool before numbers: bool is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, str):
        return value

    if isinstance(value, (int, float)):
        return format_number(value)

    if isinstance(value, list):
        if list_mode is ListRenderMode.ENCODED_LIST:
            return _encode_json(value, "array")
        return ", ".join(_serialize(item, list_mode) for item in value)

    if isinstance(value, dict):
        return _encode_json(value, "object")

    raise SerializationError(f"unsupported claim type: {type(value).__name__}")


def format_number(value: int | float) -> str:
    """
    Format a number as plain decimal text.

    Uses the shortest digits that round-trip and drops the decimal point for
    integral values: 1.0 -> "1", 1e21 -> "1000000000000000000000",
    1e-07 -> "0.0000001".
    """
    if isinstance(value, int):
        return str(value)

    if not math.isfinite(value):
        raise SerializationError(f"cannot serialize non-finite number: {value}")

    return format(Decimal(repr(value)).normalize(), "f")


def _encode_json(value: list | dict, kind: str) -> str:
    """Compact JSON literal for arrays and objects."""
    try:
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to encode {kind} as JSON: {e}") from e
