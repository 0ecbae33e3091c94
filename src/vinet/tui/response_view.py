"""Response panel: raw body text scrolled by lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from vinet.app.store import Store
from vinet.core.formatting import response_text
from vinet.core.models import AppState

INDEX_FIELD = "response_scroll"

LOADING = "Loading response..."
EMPTY = "(empty response)"


@dataclass(frozen=True)
class ResponseFrame:
    lines: tuple[str, ...]
    scroll: int


class ResponseView:
    index_field = INDEX_FIELD

    def __init__(self, store: Store):
        self._store = store
        self._memo: tuple | None = None
        self._lines: tuple[str, ...] = ()

    def lines(self, state: AppState) -> tuple[str, ...]:
        request = self._store.get_selected_request(state)
        key = None if request is None else (request.id, request.version)
        if key == self._memo:
            return self._lines
        if request is None:
            lines: tuple[str, ...] = ()
        elif request.response_body is None:
            lines = (LOADING,)
        else:
            lines = tuple(response_text(request).splitlines()) or (EMPTY,)
        self._memo = key
        self._lines = lines
        return lines

    def render(self, state: AppState) -> ResponseFrame:
        lines = self.lines(state)
        return ResponseFrame(lines, min(state.response_scroll, max(len(lines) - 1, 0)))

    def move_selection(self, delta: int) -> None:
        def apply(state: AppState):
            last = max(len(self.lines(state)) - 1, 0)
            return {INDEX_FIELD: min(max(state.response_scroll + delta, 0), last)}

        self._store.set_state(apply)

    def navigate_to(self, position: Literal["first", "last"]) -> None:
        def apply(state: AppState):
            last = max(len(self.lines(state)) - 1, 0)
            return {INDEX_FIELD: 0 if position == "first" else last}

        self._store.set_state(apply)

    def reveal(self, index: int) -> dict:
        return {INDEX_FIELD: index}
