"""
Dot-path helpers for nested form payloads.

Payloads are flattened once into a "items.0.reference_id" -> value map;
attribute patterns use "*" to match exactly one segment.
"""

import re
from typing import Any, Dict, List, Mapping


def flatten(data: Any, prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested mappings and lists into a dot-path map.

    Empty mappings and lists are kept as leaf values so that their keys
    remain present in the payload.

    Example:
        >>> flatten({"items": [{"reference_id": 5}], "note": {}})
        {"items.0.reference_id": 5, "note": {}}
    """
    flat: Dict[str, Any] = {}

    if isinstance(data, Mapping):
        children = [(str(key), value) for key, value in data.items()]
    elif isinstance(data, (list, tuple)):
        children = [(str(index), value) for index, value in enumerate(data)]
    else:
        children = []

    for key, value in children:
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, (Mapping, list, tuple)) and value:
            flat.update(flatten(value, path))
        else:
            flat[path] = value

    return flat


def leaf_segment(path: str) -> str:
    """Last dot-delimited segment of path ("items.*.reference_id" -> "reference_id")."""
    return path.rsplit(".", 1)[-1]


def resolve_target_path(attribute: str, reference_leaf: str, target_leaf: str, same_line: bool) -> str:
    """
    Path at which the target identifier is looked up.

    In same-line mode the reference leaf is replaced by the target leaf
    inside the current attribute path, so a row's sibling field is used
    ("items.0.reference_id" -> "items.0.target_id"). Otherwise the target
    leaf is read from the top level of the payload.
    """
    if same_line:
        return attribute.replace(reference_leaf, target_leaf)
    return target_leaf


def _pattern_regex(pattern: str) -> "re.Pattern[str]":
    parts = [r"[^.]+" if part == "*" else re.escape(part) for part in pattern.split(".")]
    return re.compile(r"\.".join(parts) + r"$")


def expand_attribute(pattern: str, flat: Mapping[str, Any]) -> List[str]:
    """
    Concrete attribute paths in the payload matching pattern.

    Paths are returned in payload order. A pattern may name a nested
    container ("items.*"), in which case every element path is returned once.
    """
    regex = _pattern_regex(pattern)
    depth = pattern.count(".") + 1

    matches: List[str] = []
    seen = set()
    for key in flat:
        segments = key.split(".")
        if len(segments) < depth:
            continue
        candidate = ".".join(segments[:depth])
        if candidate in seen:
            continue
        if regex.match(candidate):
            seen.add(candidate)
            matches.append(candidate)

    return matches



def value_at(data: Any, path: str, default: Any = None) -> Any:
    """
    Value at a dot path in the nested payload.

    Used for paths naming a container, which flatten() does not keep as a
    key. Mapping keys are compared in string form, list segments are indices.
    """
    node = data
    for segment in path.split("."):
        if isinstance(node, Mapping):
            matches = [value for key, value in node.items() if str(key) == segment]
            if not matches:
                return default
            node = matches[0]
        elif isinstance(node, (list, tuple)) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            return default
    return node
