"""Utility functions for esquent.

Shared helpers for the query builder, the client wrapper and the model glue.
"""

from copy import deepcopy
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Sequence, Union


# ===========================================================================
# Structural helpers
# ===========================================================================


def merge_recursive(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge two nested mappings into a new dict.

    - dict values are merged key by key, recursively
    - list values are concatenated, `base` items first
    - anything else: the value from `override` wins

    Neither input is modified.
    """
    result: Dict[str, Any] = deepcopy(dict(base))
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = merge_recursive(current, value)
        elif isinstance(current, list) and isinstance(value, (list, tuple)):
            result[key] = current + deepcopy(list(value))
        else:
            result[key] = deepcopy(value)
    return result


def flatten_fields(fields: Sequence[Any]) -> List[str]:
    """Accept `select("a", "b")` as well as `select(["a", "b"])`.

    A set is sorted so the requested field order is stable across runs.
    """
    if len(fields) == 1 and isinstance(fields[0], (set, frozenset)):
        return sorted(str(f) for f in fields[0])
    if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
        fields = list(fields[0])
    return [str(f) for f in fields]


def unique(items: Sequence[Any]) -> List[Any]:
    """Drop duplicates, keeping first-seen order."""
    seen: List[Any] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


# ===========================================================================
# Document / hit helpers
# ===========================================================================


def serialize_value(value: Any) -> Any:
    """Render values the engine cannot take as-is (dates) as strings."""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


def serialize_document(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: serialize_value(value) for key, value in data.items()}


def coerce_key(value: Union[str, int]) -> Union[str, int]:
    """Engine ids are strings; numeric ids go back to int for the model key."""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def normalize_total(total: Any) -> int:
    """Hit totals are `{"value": n, "relation": ...}` on 7.x+ and a plain int before."""
    if isinstance(total, Mapping):
        return int(total.get("value", 0))
    if total is None:
        return 0
    return int(total)
