"""In-panel search inside INSPECT — vim-style / with n/N.

State machine: inactive → editing → navigating → inactive.
Matches are indices into the focused panel's lines; the current match index
wraps in both directions.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Protocol

from vinet.app.store import Store
from vinet.core.models import AppState, Panel, PanelSearch


class SearchablePanel(Protocol):
    index_field: str

    def lines(self, state: AppState) -> Sequence[str]: ...

    def reveal(self, index: int) -> dict: ...


def compile_search_pattern(query: str) -> re.Pattern | None:
    """Case-insensitive literal pattern for query. None for an empty query."""
    if not query:
        return None
    return re.compile(re.escape(query), re.IGNORECASE)


def find_matches(lines: Sequence[str], query: str) -> tuple[int, ...]:
    pattern = compile_search_pattern(query)
    if pattern is None:
        return ()
    return tuple(i for i, line in enumerate(lines) if pattern.search(line))


def wrap_index(current: int, direction: int, count: int) -> int:
    return (current + direction + count) % count


class PanelSearchController:
    def __init__(self, store: Store, panels: Mapping[Panel, SearchablePanel]):
        self._store = store
        self._panels = panels

    def _panel(self, state: AppState) -> SearchablePanel:
        return self._panels[state.inspect_focus]

    def start(self) -> None:
        self._store.set_state({"panel_search": PanelSearch(editing=True)})

    def _requery(self, state: AppState, query: str) -> dict:
        panel = self._panel(state)
        matches = find_matches(panel.lines(state), query)
        changes: dict = {"panel_search": PanelSearch(query, True, matches, 0)}
        if matches:
            changes.update(panel.reveal(matches[0]))
        return changes

    def type_char(self, ch: str) -> None:
        self._store.set_state(lambda s: self._requery(s, s.panel_search.query + ch))

    def backspace(self) -> None:
        self._store.set_state(lambda s: self._requery(s, s.panel_search.query[:-1]))

    def commit(self) -> None:
        """Stop editing and jump to the next match."""

        def apply(state: AppState):
            search = state.panel_search
            stopped = PanelSearch(search.query, False, search.matches, search.current)
            return {"panel_search": stopped, **self._step_changes(state, stopped, 1)}

        self._store.set_state(apply)

    def stop_editing(self) -> None:
        self._store.set_state(
            lambda s: {
                "panel_search": PanelSearch(
                    s.panel_search.query, False, s.panel_search.matches, s.panel_search.current
                )
            }
        )

    def clear(self) -> None:
        self._store.set_state({"panel_search": PanelSearch()})

    def step(self, direction: int) -> None:
        """Move to the next (1) or previous (-1) match, wrapping."""
        self._store.set_state(lambda s: self._step_changes(s, s.panel_search, direction))

    def _step_changes(self, state: AppState, search: PanelSearch, direction: int) -> dict:
        if not search.matches:
            return {}
        current = wrap_index(search.current, direction, len(search.matches))
        return {
            "panel_search": PanelSearch(search.query, search.editing, search.matches, current),
            **self._panel(state).reveal(search.matches[current]),
        }
