"""Virtualized list window math and presentation slot recycling.

Independent of any rendering technology: offsets and heights are in the
host's units (terminal lines in the Textual widgets).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

BUFFER_ROWS = 3

T = TypeVar("T")


@dataclass(frozen=True)
class Window:
    start: int
    end: int

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.start <= index < self.end


def visible_window(
    total: int,
    row_height: float,
    scroll_offset: float,
    viewport_height: float,
    buffer_rows: int = BUFFER_ROWS,
) -> Window:
    """Rows to materialize: one row of overscan above, buffer_rows below."""
    if total <= 0 or row_height <= 0:
        return Window(0, 0)
    start = max(0, math.floor(scroll_offset / row_height) - 1)
    end = min(total, start + math.ceil(viewport_height / row_height) + buffer_rows)
    return Window(min(start, total), end)


def scroll_into_view(
    index: int,
    row_height: float,
    scroll_offset: float,
    viewport_height: float,
) -> float | None:
    """New scroll offset that reveals row index, or None if it is already visible.

    Scrolls up to put the row at the top edge or down to put it at the
    bottom edge, never both.
    """
    top = index * row_height
    bottom = top + row_height
    if top < scroll_offset:
        return top
    if bottom > scroll_offset + viewport_height:
        return max(0.0, bottom - viewport_height)
    return None


class VirtualWindow:
    """Row height bookkeeping: estimated until the host reports a measurement."""

    def __init__(self, estimated_row_height: float, buffer_rows: int = BUFFER_ROWS):
        self._row_height = float(estimated_row_height)
        self._measured = False
        self.buffer_rows = buffer_rows

    @property
    def row_height(self) -> float:
        return self._row_height

    @property
    def measured(self) -> bool:
        return self._measured

    def measure(self, actual_row_height: float) -> bool:
        """Record the first real measurement. Returns True if the height changed."""
        if self._measured or actual_row_height <= 0:
            return False
        self._measured = True
        changed = actual_row_height != self._row_height
        self._row_height = float(actual_row_height)
        return changed

    def window(self, total: int, scroll_offset: float, viewport_height: float) -> Window:
        return visible_window(total, self._row_height, scroll_offset, viewport_height, self.buffer_rows)

    def scroll_into_view(self, index: int, scroll_offset: float, viewport_height: float) -> float | None:
        return scroll_into_view(index, self._row_height, scroll_offset, viewport_height)

    def content_height(self, total: int) -> float:
        return total * self._row_height


class SlotPool(Generic[T]):
    """Arena of reusable row handles indexed by position within the visible window.

    Slots are created only when the window grows beyond the pool; shifting
    the window rebinds existing slots to new rows.
    """

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._slots: list[T] = []
        self.created = 0

    def __len__(self) -> int:
        return len(self._slots)

    def assign(self, window: Window) -> list[tuple[int, T]]:
        """(row index, slot) pairs for every row in window."""
        needed = len(window)
        while len(self._slots) < needed:
            self._slots.append(self._factory())
            self.created += 1
        return [(window.start + i, self._slots[i]) for i in range(needed)]
