"""
JSON content checks for wiki data files.
Data files are either a top-level array or an object; scalars are rejected.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .errors import InvalidJSONError


@dataclass
class ValidatedJSON:
    parsed: Any
    is_array: bool
    item_count: int


def item_count(parsed: Any) -> int:
    """
    Records in a data file:
    - array: its length
    - object with an "items" array: that array's length
    - object with a single array-valued key ({"weapons": [...]}): that array's length
    - other objects: number of top-level keys
    """
    if isinstance(parsed, list):
        return len(parsed)
    if not isinstance(parsed, dict):
        return 0
    if isinstance(parsed.get("items"), list):
        return len(parsed["items"])
    if len(parsed) == 1:
        (only,) = parsed.values()
        if isinstance(only, list):
            return len(only)
    return len(parsed)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON, though the json module accepts them by default.
    raise ValueError(f"unexpected constant {name}")


def validate_json(content: Any) -> ValidatedJSON:
    if not content or not isinstance(content, str):
        raise InvalidJSONError("Content must be a non-empty string")
    try:
        parsed = json.loads(content, parse_constant=_reject_constant)
    except ValueError as e:
        raise InvalidJSONError(f"Invalid JSON: {e}") from e
    if not isinstance(parsed, (dict, list)):
        raise InvalidJSONError("JSON content must be an object or array")
    return ValidatedJSON(parsed=parsed, is_array=isinstance(parsed, list), item_count=item_count(parsed))


def safe_stringify(data: Any, indent: int = 2) -> str:
    try:
        return json.dumps(data, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise InvalidJSONError(f"Failed to stringify JSON: {e}") from e
