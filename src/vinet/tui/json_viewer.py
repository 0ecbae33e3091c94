"""Preview panel: navigable JSON tree over the selected response body."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from vinet.app.store import Store
from vinet.core import json_tree
from vinet.core.models import AppState, JsonNode

INDEX_FIELD = "json_index"

NOT_JSON = "Not a JSON response"
LOADING = "Loading response..."


def node_line(node: JsonNode) -> str:
    indent = "  " * node.depth
    if node.is_container:
        marker = "▼" if node.expanded else "▶"
        suffix = "" if node.expanded else f" {json_tree.collapsed_summary(node)}"
        return f"{indent}{marker} {node.key}:{suffix}"
    return f"{indent}  {node.key}: {json_tree.safe_stringify(node.value)}"


@dataclass(frozen=True)
class JsonFrame:
    nodes: tuple[JsonNode, ...]
    selected: int
    placeholder: str | None


class JsonViewer:
    index_field = INDEX_FIELD

    def __init__(self, store: Store):
        self._store = store

    def nodes(self, state: AppState) -> tuple[JsonNode, ...]:
        return self._store.get_json_nodes(state)

    def lines(self, state: AppState) -> list[str]:
        return [node_line(n) for n in self.nodes(state)]

    def render(self, state: AppState) -> JsonFrame:
        nodes = self.nodes(state)
        request = self._store.get_selected_request(state)
        placeholder = None
        if request is None:
            placeholder = ""
        elif request.response_body is None:
            placeholder = LOADING
        elif not request.response_body.is_json:
            placeholder = NOT_JSON
        return JsonFrame(nodes, min(state.json_index, max(len(nodes) - 1, 0)), placeholder)

    def current_node(self, state: AppState) -> JsonNode | None:
        nodes = self.nodes(state)
        if not nodes:
            return None
        return nodes[min(state.json_index, len(nodes) - 1)]

    # ─── Navigation API ───────────────────────────────────────────────

    def move_selection(self, delta: int) -> None:
        def apply(state: AppState):
            nodes = self.nodes(state)
            if not nodes:
                return None
            return {INDEX_FIELD: min(max(state.json_index + delta, 0), len(nodes) - 1)}

        self._store.set_state(apply)

    def navigate_to(self, position: Literal["first", "last"]) -> None:
        def apply(state: AppState):
            nodes = self.nodes(state)
            if not nodes:
                return None
            return {INDEX_FIELD: 0 if position == "first" else len(nodes) - 1}

        self._store.set_state(apply)

    def reveal(self, index: int) -> dict:
        return {INDEX_FIELD: index}

    def expand_node(self, path: str | None = None) -> None:
        def apply(state: AppState):
            node = self._target(state, path)
            if node is None or not node.is_container:
                return None
            return {"json_expanded": json_tree.with_expansion(state.json_expanded, node.path, True)}

        self._store.set_state(apply)

    def collapse_node(self, path: str | None = None) -> None:
        """Collapse a container; on a leaf, select its parent instead."""

        def apply(state: AppState):
            node = self._target(state, path)
            if node is None:
                return None
            if node.is_container:
                return {"json_expanded": json_tree.with_expansion(state.json_expanded, node.path, False)}
            parent = json_tree.parent_path(node.path)
            for i, candidate in enumerate(self.nodes(state)):
                if candidate.path == parent:
                    return {INDEX_FIELD: i}
            return None

        self._store.set_state(apply)

    def toggle(self, path: str) -> None:
        self._store.set_state(
            lambda s: {
                "json_expanded": json_tree.with_expansion(
                    s.json_expanded, path, not json_tree.is_expanded(s.json_expanded, path)
                )
            }
        )

    def _target(self, state: AppState, path: str | None) -> JsonNode | None:
        if path is None:
            return self.current_node(state)
        return next((n for n in self.nodes(state) if n.path == path), None)

    # ─── Yank payloads ────────────────────────────────────────────────

    def value_text(self, state: AppState) -> str | None:
        node = self.current_node(state)
        return None if node is None else json_tree.format_value(node.value)

    def json_text(self, state: AppState) -> str | None:
        node = self.current_node(state)
        return None if node is None else json_tree.safe_stringify(node.value, indent=2)

    def path_text(self, state: AppState) -> str | None:
        node = self.current_node(state)
        return None if node is None else node.path
