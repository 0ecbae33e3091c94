"""Path-indexed flattening of JSON values into navigable rows.

Paths use dot/bracket syntax: top-level object keys are bare (`data`), nested
keys are joined with dots (`data.users`), array items use brackets
(`data.users[0]`, or `[0]` for a top-level array). A primitive root is a
single node at path `root`.

// [LAW:one-source-of-truth] The expansion map is the only expand/collapse state.
//   A path missing from the map is expanded.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from typing import Any

from vinet.core.models import JsonNode, ValueKind

ROOT_PATH = "root"

_TRAILING_INDEX = re.compile(r"^(.*)\[\d+\]$")


def value_kind(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    return ValueKind.STRING


def is_expanded(expanded: Mapping[str, bool], path: str) -> bool:
    return expanded.get(path, True)


def _entries(value: Any) -> Iterator[tuple[str, Any, bool]]:
    if isinstance(value, Mapping):
        for key, child in value.items():
            yield str(key), child, False
    else:
        for i, child in enumerate(value):
            yield str(i), child, True


def child_path(path: str, key: str, is_index: bool) -> str:
    if is_index:
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else key


def flatten(
    value: Any,
    expanded: Mapping[str, bool],
    path: str = "",
    depth: int = 0,
) -> Iterator[JsonNode]:
    """Yield one JsonNode per visible row, in structural order.

    Children of an entry follow it iff the entry's path is expanded.
    """
    kind = value_kind(value)
    if kind not in (ValueKind.OBJECT, ValueKind.ARRAY):
        key = path.rsplit(".", 1)[-1] if path else ""
        yield JsonNode(key, value, kind, path or ROOT_PATH, False, depth)
        return

    for key, child, is_index in _entries(value):
        node_path = child_path(path, key, is_index)
        child_kind = value_kind(child)
        container = child_kind in (ValueKind.OBJECT, ValueKind.ARRAY)
        open_ = container and is_expanded(expanded, node_path)
        yield JsonNode(key, child, child_kind, node_path, open_, depth)
        if open_:
            yield from flatten(child, expanded, node_path, depth + 1)


class FlatTree:
    """Restartable view over flatten(): each iteration starts from the top."""

    def __init__(self, value: Any, expanded: Mapping[str, bool]):
        self.value = value
        self.expanded = expanded

    def __iter__(self) -> Iterator[JsonNode]:
        return flatten(self.value, self.expanded)


def parent_path(path: str) -> str:
    """Structural parent of path; "" for top-level entries and the root."""
    m = _TRAILING_INDEX.match(path)
    if m:
        return m.group(1)
    if "." in path:
        return path.rsplit(".", 1)[0]
    return ""


def with_expansion(expanded: Mapping[str, bool], path: str, value: bool) -> dict[str, bool]:
    """Return a new expansion map with path set to value."""
    updated = dict(expanded)
    updated[path] = value
    return updated


def child_count(node: JsonNode) -> int:
    return len(node.value) if node.is_container else 0


def collapsed_summary(node: JsonNode) -> str:
    n = child_count(node)
    return f"[{n} items]" if node.kind is ValueKind.ARRAY else f"{{{n} items}}"


# ─── Serialization ────────────────────────────────────────────────────────────


def _strip_cycles(value: Any, seen: set[int]) -> Any:
    if isinstance(value, Mapping):
        if id(value) in seen:
            return "[Circular]"
        seen = seen | {id(value)}
        return {str(k): _strip_cycles(v, seen) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        if id(value) in seen:
            return "[Circular]"
        seen = seen | {id(value)}
        return [_strip_cycles(v, seen) for v in value]
    return value


def safe_stringify(value: Any, indent: int | None = None) -> str:
    """json.dumps that renders reference cycles as "[Circular]" instead of raising."""
    return json.dumps(_strip_cycles(value, set()), indent=indent, ensure_ascii=False, default=str)


def format_value(value: Any) -> str:
    """Copy text for a value: strings raw, containers as indented JSON."""
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return safe_stringify(value, indent=2)
    return safe_stringify(value)
