"""Pure Rich renderers for the chrome around the request list.

Every function here maps plain values (AppState, component frames) to a
rich Text. No widget state, no Textual imports, so they are tested directly.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text

from vinet.app import filters
from vinet.core.formatting import format_size, status_class
from vinet.core.models import AppState, MessageLevel, Mode, Panel, PanelSearch, Request
from vinet.tui import input_modes
from vinet.tui.headers_list import HeadersFrame
from vinet.tui.json_viewer import JsonFrame, node_line
from vinet.tui.response_view import ResponseFrame

# ─── Styles ───────────────────────────────────────────────────────────────────

# [LAW:one-source-of-truth] Status code buckets → row style.
STATUS_STYLES: dict[str, str] = {
    "pending": "dim",
    "1xx": "cyan",
    "2xx": "green",
    "3xx": "yellow",
    "4xx": "bold red",
    "5xx": "bold magenta",
}

MESSAGE_STYLES: dict[MessageLevel, str] = {
    MessageLevel.SUCCESS: "bold green",
    MessageLevel.INFO: "cyan",
    MessageLevel.ERROR: "bold red",
}

SELECTED_STYLE = "reverse"
MATCH_STYLE = "black on yellow"
CURRENT_MATCH_STYLE = "bold black on bright_yellow"
ACCENT = "bold cyan"

TAB_LABELS: dict[Panel, str] = {
    Panel.HEADERS: "Headers",
    Panel.RESPONSE: "Response",
    Panel.PREVIEW: "Preview",
}


def status_style(status: int) -> str:
    return STATUS_STYLES.get(status_class(status), "")


# ─── Status bar ───────────────────────────────────────────────────────────────


def render_status_bar(state: AppState, view: tuple[Request, ...]) -> Text:
    """Counts, transferred bytes, active query and the current message."""
    total = len(state.requests)
    text = Text()
    if len(view) != total:
        text.append(f"{len(view)} / {total} requests", style="bold")
    else:
        text.append(f"{total} requests", style="bold")
    transferred = sum(r.transferred_size for r in state.requests)
    text.append(f"  {format_size(transferred)} transferred", style="dim")
    if state.search_query:
        text.append(f'  Search: "{state.search_query}"', style=ACCENT)
    if state.message is not None:
        text.append("  ")
        text.append(state.message.text, style=MESSAGE_STYLES[state.message.level])
    return text


# ─── Mode bars ────────────────────────────────────────────────────────────────


def render_search_bar(state: AppState) -> Text:
    text = Text()
    text.append("/ ", style=ACCENT)
    text.append(state.search_query, style="bold")
    if state.mode is Mode.SEARCH:
        text.append("█")
    return text


def render_panel_search(search: PanelSearch) -> Text:
    text = Text()
    text.append("/ ", style=ACCENT)
    text.append(search.query, style="bold")
    if search.editing:
        text.append("█")
    if search.matches:
        text.append(f"  [{search.current + 1}/{len(search.matches)}]", style=ACCENT)
    elif search.query:
        text.append("  [no matches]", style="dim")
    return text


def render_filter_bar(state: AppState) -> Text:
    """Chip row; the cursor is shown only while FILTER mode is active."""
    text = Text()
    show_cursor = state.mode is Mode.FILTER
    for i, chip in enumerate(filters.chips(state)):
        active = filters.chip_active(state.filters, chip)
        style = "bold black on cyan" if active else "dim"
        if show_cursor and i == state.filter_cursor:
            style += " underline"
        text.append(f" {filters.chip_label(chip)} ", style=style)
        text.append(" ")
    return text


def render_copy_bar(state: AppState, labels: tuple[str, ...]) -> Text:
    text = Text()
    for i, label in enumerate(labels):
        style = "bold black on cyan" if i == state.copy_index else "dim"
        text.append(f" {label} ", style=style)
        text.append(" ")
    return text


def render_footer(state: AppState) -> Text:
    mode = input_modes.input_mode_for(state)
    text = Text()
    text.append(f" {state.mode.value.upper()} ", style="bold black on cyan")
    for key, description in input_modes.FOOTER_KEYS[mode]:
        text.append("  ")
        text.append(key, style=ACCENT)
        text.append(f" {description}", style="dim")
    return text


def render_keys_panel() -> Text:
    """// [LAW:one-source-of-truth] KEY_GROUPS from input_modes is the sole data source."""
    text = Text()
    text.append("Keys", style=ACCENT)
    text.append("\n")
    for group_title, keys in input_modes.KEY_GROUPS:
        text.append(" ")
        text.append(group_title, style="bold underline")
        text.append("\n")
        for key_display, description in keys:
            text.append("  ")
            text.append("{:>10}".format(key_display), style=ACCENT)
            text.append("  ")
            text.append(description, style="dim")
            text.append("\n")
    return text


# ─── Detail panel ─────────────────────────────────────────────────────────────


def render_tabs(state: AppState) -> Text:
    focused = state.mode is Mode.INSPECT
    text = Text()
    for panel, label in TAB_LABELS.items():
        if panel is state.preview_tab:
            style = "bold black on cyan" if focused else "bold underline"
        else:
            style = "dim"
        text.append(f" {label} ", style=style)
        text.append(" ")
    return text


def visible_slice(count: int, selected: int, height: int) -> range:
    """Line range of at most height lines that keeps selected in view."""
    if height <= 0 or count <= 0:
        return range(0)
    start = min(max(selected - height // 2, 0), max(count - height, 0))
    return range(start, min(count, start + height))


def _append_line(
    text: Text,
    line: str,
    index: int,
    selected: int | None,
    search: PanelSearch,
    style: str = "",
) -> None:
    start = len(text)
    text.append(line, style=style)
    if search.active and index in search.matches:
        lowered = line.lower()
        needle = search.query.lower()
        is_current = search.matches[search.current] == index
        match_style = CURRENT_MATCH_STYLE if is_current else MATCH_STYLE
        pos = lowered.find(needle)
        while pos >= 0:
            text.stylize(match_style, start + pos, start + pos + len(needle))
            pos = lowered.find(needle, pos + len(needle))
    if index == selected:
        text.stylize(SELECTED_STYLE, start, len(text))


def render_lines(
    lines: Sequence[str],
    selected: int | None,
    height: int,
    search: PanelSearch,
    styles: Sequence[str] = (),
) -> Text:
    text = Text(no_wrap=True, overflow="ellipsis")
    anchor = 0 if selected is None else selected
    for n, i in enumerate(visible_slice(len(lines), anchor, height)):
        if n:
            text.append("\n")
        style = styles[i] if i < len(styles) else ""
        _append_line(text, lines[i], i, selected, search, style)
    return text


def render_headers(frame: HeadersFrame, height: int, search: PanelSearch) -> Text:
    lines = [row.text for row in frame.rows]
    styles = [ACCENT if row.is_title else "" for row in frame.rows]
    return render_lines(lines, frame.selected, height, search, styles)


def render_response(frame: ResponseFrame, height: int, search: PanelSearch) -> Text:
    return render_lines(frame.lines, frame.scroll, height, search)


def render_preview(frame: JsonFrame, height: int, search: PanelSearch) -> Text:
    if frame.placeholder is not None:
        return Text(frame.placeholder, style="dim")
    lines = [node_line(n) for n in frame.nodes]
    return render_lines(lines, frame.selected, height, search)
