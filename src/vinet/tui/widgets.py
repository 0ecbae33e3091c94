"""Textual widgets — thin views over the headless components.

Each widget exposes update_display(state) and paints whatever its
component's render(state) produced. Widgets read the store but never
write it; every mutation goes through the interpreter.

// [LAW:single-enforcer] update_display() is the sole render entry per widget.
"""

from __future__ import annotations

from contextlib import contextmanager

from rich.text import Text
from textual.cache import LRUCache
from textual.geometry import Size
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widgets import Static

from vinet.app.store import Store
from vinet.core.models import AppState, Mode, Panel
from vinet.tui import panel_renderers
from vinet.tui.copy_menu import CopyMenu
from vinet.tui.headers_list import HeadersList
from vinet.tui.json_viewer import JsonViewer
from vinet.tui.request_list import ListFrame, RequestList, RowSlot
from vinet.tui.response_view import ResponseView

# Fixed-width columns after the name column: status, method, type, size, time.
COLUMN_WIDTHS = (7, 7, 10, 9, 9)
MIN_NAME_WIDTH = 12


def render_row(slot: RowSlot, width: int) -> Text:
    """One request row as a single line of Text."""
    name_width = max(MIN_NAME_WIDTH, width - sum(COLUMN_WIDTHS) - len(COLUMN_WIDTHS))
    name, *rest = slot.cells
    text = Text(no_wrap=True, overflow="ellipsis", end="")
    text.append(name[:name_width].ljust(name_width))
    for cell, cell_width in zip(rest, COLUMN_WIDTHS):
        text.append(" ")
        text.append(cell[:cell_width].rjust(cell_width))
    status_len = COLUMN_WIDTHS[0]
    text.stylize(panel_renderers.status_style(slot.status), name_width + 1, name_width + 1 + status_len)
    if slot.selected:
        text.stylize(panel_renderers.SELECTED_STYLE)
    return text


def render_header_row(width: int) -> Text:
    name_width = max(MIN_NAME_WIDTH, width - sum(COLUMN_WIDTHS) - len(COLUMN_WIDTHS))
    text = Text("Name".ljust(name_width), style="bold", no_wrap=True, end="")
    for title, cell_width in zip(("Status", "Method", "Type", "Size", "Time"), COLUMN_WIDTHS):
        text.append(" ")
        text.append(title.rjust(cell_width), style="bold")
    return text


class RequestTable(ScrollView):
    """Virtualized request list using the Line API.

    Only rows inside the component's window are bound to slots; render_line
    paints a slot or a blank strip. Strips are cached per (id, version,
    selected, width) so unchanged rows are never re-rendered.
    """

    can_focus = False

    DEFAULT_CSS = """
    RequestTable {
        height: 1fr;
        overflow-y: auto;
        overflow-x: hidden;
        border: solid $accent;
    }
    RequestTable.-expanded {
        height: 3;
    }
    """

    def __init__(self, store: Store, controller: RequestList, **kwargs):
        super().__init__(**kwargs)
        self._store = store
        self._controller = controller
        self._frame: ListFrame | None = None
        self._rows: dict[int, RowSlot] = {}
        self._line_cache: LRUCache = LRUCache(1024)
        self._scrolling_programmatically = False

    @contextmanager
    def _programmatic_scroll(self):
        self._scrolling_programmatically = True
        try:
            yield
        finally:
            self._scrolling_programmatically = False

    @property
    def _content_width(self) -> int:
        return max(1, self.scrollable_content_region.width)

    @property
    def frame(self) -> ListFrame | None:
        return self._frame

    def update_display(self, state: AppState) -> None:
        self.set_class(state.inspect_expanded and state.mode is Mode.INSPECT, "-expanded")
        height = self.scrollable_content_region.height
        if height > 0:
            self._controller.set_viewport(height)
        frame = self._controller.render(state)
        if not self._controller.window.measured and frame.rows:
            if self._measure_row(frame.rows[0][1]):
                frame = self._controller.render(state)
        self._frame = frame
        self._rows = dict(frame.rows)
        self.virtual_size = Size(self._content_width, int(frame.content_height))
        if int(self.scroll_offset.y) != int(frame.scroll_offset):
            with self._programmatic_scroll():
                self.scroll_to(y=frame.scroll_offset, animate=False)
        self.refresh()

    def _measure_row(self, slot: RowSlot) -> bool:
        """Correct the estimated row height from the first rendered row."""
        console = self.app.console
        width = self._content_width
        lines = console.render_lines(render_row(slot, width), console.options.update_width(width))
        return self._controller.measure(len(lines))

    def render_line(self, y: int) -> Strip:
        width = self._content_width
        row = int(self.scroll_offset.y) + y
        slot = self._rows.get(row)
        if slot is None:
            return Strip.blank(width, self.rich_style)
        key = (slot.request_id, slot.version, slot.selected, width)
        if key in self._line_cache:
            return self._line_cache[key]
        segments = list(render_row(slot, width).render(self.app.console))
        strip = Strip(segments).crop_extend(0, width, self.rich_style)
        self._line_cache[key] = strip
        return strip

    def on_resize(self, event) -> None:
        self.update_display(self._store.get_state())

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        if self._scrolling_programmatically:
            return
        self._controller.scroll_offset = float(new_value)
        self.update_display(self._store.get_state())


class ColumnHeader(Static):
    DEFAULT_CSS = """
    ColumnHeader {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    def on_resize(self, event) -> None:
        self.update(render_header_row(max(1, self.content_size.width)))


class DetailPane(Static):
    """Headers / Response / Preview tabs for the selected request."""

    DEFAULT_CSS = """
    DetailPane {
        height: 1fr;
        padding: 0 1;
        border: solid $primary-muted;
    }
    DetailPane.-focused {
        border: solid $accent;
    }
    """

    def __init__(
        self,
        headers: HeadersList,
        response: ResponseView,
        preview: JsonViewer,
        **kwargs,
    ):
        super().__init__("", **kwargs)
        self._headers = headers
        self._response = response
        self._preview = preview

    def update_display(self, state: AppState) -> None:
        self.set_class(state.mode is Mode.INSPECT, "-focused")
        search = state.panel_search
        show_search = state.mode is Mode.INSPECT and (search.editing or search.active)
        # tabs line and optional search line
        height = max(1, self.content_size.height - 1 - int(show_search))
        tab = state.preview_tab
        if tab is Panel.HEADERS:
            body = panel_renderers.render_headers(self._headers.render(state), height, search)
        elif tab is Panel.RESPONSE:
            body = panel_renderers.render_response(self._response.render(state), height, search)
        else:
            body = panel_renderers.render_preview(self._preview.render(state), height, search)
        parts = [panel_renderers.render_tabs(state), body]
        if show_search:
            parts.append(panel_renderers.render_panel_search(search))
        self.update(Text("\n").join(parts))


class FilterBar(Static):
    DEFAULT_CSS = """
    FilterBar {
        dock: top;
        height: 1;
        padding: 0 1;
    }
    """

    def update_display(self, state: AppState) -> None:
        self.update(panel_renderers.render_filter_bar(state))


class SearchBar(Static):
    """Request search input. Not an Input widget; the app's on_key edits the query."""

    DEFAULT_CSS = """
    SearchBar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        display: none;
        border-top: solid $accent;
    }
    """

    def update_display(self, state: AppState) -> None:
        self.display = state.mode is Mode.SEARCH
        if self.display:
            self.update(panel_renderers.render_search_bar(state))


class CopyBar(Static):
    DEFAULT_CSS = """
    CopyBar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        display: none;
    }
    """

    def __init__(self, menu: CopyMenu, **kwargs):
        super().__init__("", **kwargs)
        self._menu = menu

    def update_display(self, state: AppState) -> None:
        self.display = state.mode is Mode.COPY
        if self.display:
            self.update(panel_renderers.render_copy_bar(state, self._menu.labels))


class StatusBar(Static):
    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $panel;
    }
    """

    def __init__(self, store: Store, **kwargs):
        super().__init__("", **kwargs)
        self._store = store

    def update_display(self, state: AppState) -> None:
        self.update(panel_renderers.render_status_bar(state, self._store.get_filtered_view(state)))


class ModeFooter(Static):
    DEFAULT_CSS = """
    ModeFooter {
        dock: bottom;
        height: 1;
        padding: 0 1;
    }
    """

    def update_display(self, state: AppState) -> None:
        self.update(panel_renderers.render_footer(state))


class KeysPanel(Static):
    """Side panel showing keyboard shortcuts."""

    DEFAULT_CSS = """
    KeysPanel {
        dock: right;
        width: 28%;
        min-width: 24;
        max-width: 40;
        border-left: solid $accent;
        padding: 1;
        height: 1fr;
        overflow-y: auto;
        display: none;
    }
    """

    def __init__(self, **kwargs):
        super().__init__(panel_renderers.render_keys_panel(), **kwargs)

    def update_display(self, state: AppState) -> None:
        self.display = state.show_help
