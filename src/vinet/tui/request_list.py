"""Request list controller — selection API plus virtualized row frames.

// [LAW:one-way-deps] No Textual imports. RequestTable (widgets.py) paints
//   the frames this module produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from vinet.app.store import Store
from vinet.core.formatting import format_duration, format_size, status_label
from vinet.core.models import AppState, Mode, PanelSearch, Request
from vinet.tui.virtual_list import SlotPool, VirtualWindow, Window

# Terminal rows are one line tall; the estimate is corrected by measure().
ESTIMATED_ROW_HEIGHT = 1.0

Position = Literal["first", "last"]


def selection_changes(index: int) -> dict:
    """State fields that reset whenever a different request becomes selected."""
    return {
        "selected_index": index,
        "headers_index": 0,
        "json_index": 0,
        "response_scroll": 0,
        "json_expanded": {},
        "panel_search": PanelSearch(),
    }


def row_cells(request: Request) -> tuple[str, ...]:
    return (
        request.name,
        status_label(request),
        request.method,
        request.resource_type.value,
        format_size(request.transferred_size),
        format_duration(request.duration),
    )


class RowSlot:
    """A reusable presentation handle for one visible row."""

    __slots__ = ("row", "request_id", "version", "selected", "status", "cells", "swaps")

    def __init__(self) -> None:
        self.row = -1
        self.request_id: str | None = None
        self.version = -1
        self.selected = False
        self.status = 0
        self.cells: tuple[str, ...] = ()
        self.swaps = 0

    def bind(self, row: int, request: Request, selected: bool) -> bool:
        """Point this slot at row; returns False when nothing visible changed."""
        if (
            self.row == row
            and self.request_id == request.id
            and self.version == request.version
            and self.selected == selected
        ):
            return False
        self.row = row
        self.request_id = request.id
        self.version = request.version
        self.selected = selected
        self.status = request.status
        self.cells = row_cells(request)
        self.swaps += 1
        return True


@dataclass(frozen=True)
class ListFrame:
    window: Window
    rows: list[tuple[int, RowSlot]]
    scroll_offset: float
    content_height: float
    total: int
    selected: int


class RequestList:
    def __init__(self, store: Store, estimated_row_height: float = ESTIMATED_ROW_HEIGHT):
        self._store = store
        self._window = VirtualWindow(estimated_row_height)
        self._pool: SlotPool[RowSlot] = SlotPool(RowSlot)
        self.viewport_height = 20.0
        self.scroll_offset = 0.0
        self._last_selected: int | None = None

    @property
    def window(self) -> VirtualWindow:
        return self._window

    @property
    def pool(self) -> SlotPool[RowSlot]:
        return self._pool

    def set_viewport(self, height: float) -> None:
        self.viewport_height = max(0.0, float(height))

    def measure(self, row_height: float) -> bool:
        return self._window.measure(row_height)

    # ─── Rendering ────────────────────────────────────────────────────

    def render(self, state: AppState) -> ListFrame:
        view = self._store.get_filtered_view(state)
        selected = state.selected_index
        total = len(view)

        if selected != self._last_selected and total:
            target = self._window.scroll_into_view(selected, self.scroll_offset, self.viewport_height)
            if target is not None:
                self.scroll_offset = target
        self._last_selected = selected

        max_offset = max(0.0, self._window.content_height(total) - self.viewport_height)
        self.scroll_offset = min(max(self.scroll_offset, 0.0), max_offset)

        if state.inspect_expanded and state.mode is Mode.INSPECT and total:
            # Full-width inspect: only the selected row stays on screen.
            self.scroll_offset = selected * self._window.row_height
            window = Window(selected, selected + 1)
        else:
            window = self._window.window(total, self.scroll_offset, self.viewport_height)
        rows = self._pool.assign(window)
        for row, slot in rows:
            slot.bind(row, view[row], row == selected)
        return ListFrame(
            window=window,
            rows=rows,
            scroll_offset=self.scroll_offset,
            content_height=self._window.content_height(total),
            total=total,
            selected=selected,
        )

    # ─── Selection API ────────────────────────────────────────────────

    def move_selection(self, delta: int) -> None:
        def apply(state: AppState):
            total = len(self._store.get_filtered_view(state))
            if not total:
                return None
            index = min(max(state.selected_index + delta, 0), total - 1)
            return selection_changes(index) if index != state.selected_index else None

        self._store.set_state(apply)

    def navigate_to(self, position: Position) -> None:
        def apply(state: AppState):
            total = len(self._store.get_filtered_view(state))
            if not total:
                return None
            index = 0 if position == "first" else total - 1
            return selection_changes(index) if index != state.selected_index else None

        self._store.set_state(apply)

    def delete_selected(self) -> None:
        def apply(state: AppState):
            request = self._store.get_selected_request(state)
            if request is None:
                return None
            return {"requests": tuple(r for r in state.requests if r.id != request.id)}

        self._store.set_state(apply)

    def clear_all(self) -> None:
        self._store.clear_requests()
