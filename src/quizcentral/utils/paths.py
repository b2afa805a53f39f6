"""
Dot-path helpers shared by the evaluator, template compiler and engine.

Runtime state keeps global variables flat ("quiz.timer" -> 10) while logic
expressions address them hierarchically ({"var": "quiz.timer"}). These helpers
inflate flat keys into nested dictionaries and walk nested data by path.
"""

import re
from typing import Any, Dict, List, Mapping, Union

# Sentinel distinguishing "path not present" from a stored None
MISSING = object()

_INDEX_PATTERN = re.compile(r"^([^\[]+)\[(\d+)\]$")


def parse_path(path: str) -> List[Union[str, int]]:
    """
    Split a dotted path into segments.

    Examples:
        "q1.value" -> ["q1", "value"]
        "quiz.items[2].label" -> ["quiz", "items", 2, "label"]

    Args:
        path: Dot-notation path with optional bracket indices

    Returns:
        List of segments (strings for keys, integers for list indices)
    """
    segments: List[Union[str, int]] = []

    for part in str(path).split("."):
        match = _INDEX_PATTERN.match(part)
        if match:
            segments.append(match.group(1))
            segments.append(int(match.group(2)))
        else:
            segments.append(part)

    return segments


def get_path(data: Any, path: str, default: Any = MISSING) -> Any:
    """
    Resolve a dotted path inside nested dictionaries and lists.

    Numeric segments index into lists ("options.0" and "options[0]" are
    equivalent). Returns `default` when any segment is absent.
    """
    if path is None or path == "":
        return data

    current = data
    for segment in parse_path(path):
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return default
        else:
            return default

    return current


def has_path(data: Any, path: str) -> bool:
    """Return True if `path` resolves inside `data` (a stored None counts)."""
    return get_path(data, path) is not MISSING


def unflatten(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Inflate flat dot-notation keys into nested dictionaries.

    {"quiz.timer": 10, "name": "x"} -> {"quiz": {"timer": 10}, "name": "x"}

    A scalar that sits where a nested key needs a dictionary is replaced by one.
    """
    result: Dict[str, Any] = {}

    for key, value in flat.items():
        if "." not in key:
            result[key] = value
            continue

        parts = key.split(".")
        current = result
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value

    return result


def deep_equal(a: Any, b: Any) -> bool:
    """
    Structural equality for JSON-like values.

    Lists compare element-wise, dictionaries key-wise. Numbers compare by
    value (1 == 1.0), but booleans only ever equal booleans.
    """
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b

    if isinstance(a, (list, tuple, dict)) or isinstance(b, (list, tuple, dict)):
        return False

    return a == b
