"""Tests for the pure Rich renderers behind the Textual widgets."""

import pytest

from tests.harness import make_request
from vinet.core.models import (
    AppState,
    MessageLevel,
    Mode,
    Panel,
    PanelSearch,
    ResourceType,
    StatusMessage,
)
from vinet.tui import panel_renderers
from vinet.tui.headers_list import HeaderRow, HeadersFrame
from vinet.tui.json_viewer import LOADING, JsonFrame
from vinet.tui.response_view import ResponseFrame
from vinet.tui.widgets import render_header_row, render_row
from vinet.tui.request_list import RowSlot


def requests(n):
    return tuple(make_request(f"r{i}", transferred_size=1024) for i in range(n))


class TestStatusBar:
    def test_counts_and_transferred(self):
        state = AppState(requests=requests(3))
        text = panel_renderers.render_status_bar(state, state.requests).plain
        assert text.startswith("3 requests")
        assert "3.0 KB transferred" in text

    def test_filtered_count(self):
        state = AppState(requests=requests(3), search_query="r1")
        text = panel_renderers.render_status_bar(state, state.requests[:1]).plain
        assert text.startswith("1 / 3 requests")
        assert 'Search: "r1"' in text

    def test_message_styled_by_level(self):
        state = AppState(message=StatusMessage("Boom", MessageLevel.ERROR))
        text = panel_renderers.render_status_bar(state, ())
        assert text.plain.endswith("Boom")
        assert any(span.style == "bold red" for span in text.spans)


def test_search_bar_cursor_only_while_editing():
    assert panel_renderers.render_search_bar(AppState(mode=Mode.SEARCH, search_query="ab")).plain == "/ ab█"
    assert panel_renderers.render_search_bar(AppState(search_query="ab")).plain == "/ ab"


@pytest.mark.parametrize(
    "search, suffix",
    [
        (PanelSearch("ab", False, (1, 4), 1), "[2/2]"),
        (PanelSearch("zz", False, (), 0), "[no matches]"),
        (PanelSearch("", True), "█"),
    ],
)
def test_panel_search_line(search, suffix):
    assert panel_renderers.render_panel_search(search).plain.endswith(suffix)


def test_filter_bar_labels_and_cursor():
    state = AppState(mode=Mode.FILTER, filter_cursor=1)
    text = panel_renderers.render_filter_bar(state)
    assert text.plain.startswith(" All   Fetch/XHR ")
    underlined = [text.plain[s.start:s.end] for s in text.spans if "underline" in str(s.style)]
    assert underlined == [" Fetch/XHR "]


def test_filter_bar_hides_cursor_outside_filter_mode():
    text = panel_renderers.render_filter_bar(AppState(filter_cursor=1))
    assert not any("underline" in str(s.style) for s in text.spans)


def test_copy_bar_highlights_current():
    text = panel_renderers.render_copy_bar(AppState(copy_index=1), ("A", "B"))
    highlighted = [text.plain[s.start:s.end] for s in text.spans if "on cyan" in str(s.style)]
    assert highlighted == [" B "]


def test_footer_shows_mode_and_keys():
    text = panel_renderers.render_footer(AppState(mode=Mode.COPY)).plain
    assert text.startswith(" COPY ")
    assert "cancel" in text


def test_footer_for_panel_search_editing():
    state = AppState(mode=Mode.INSPECT, panel_search=PanelSearch(editing=True))
    assert "esc done" in panel_renderers.render_footer(state).plain


def test_keys_panel_lists_groups():
    text = panel_renderers.render_keys_panel().plain
    assert "Navigation" in text
    assert "Export HAR" in text


def test_tabs_mark_current():
    text = panel_renderers.render_tabs(AppState(preview_tab=Panel.RESPONSE))
    marked = [text.plain[s.start:s.end] for s in text.spans if "underline" in str(s.style)]
    assert marked == [" Response "]


@pytest.mark.parametrize(
    "count, selected, height, expected",
    [
        (5, 0, 10, range(0, 5)),
        (100, 0, 10, range(0, 10)),
        (100, 50, 10, range(45, 55)),
        (100, 99, 10, range(90, 100)),
        (0, 0, 10, range(0)),
    ],
)
def test_visible_slice(count, selected, height, expected):
    assert panel_renderers.visible_slice(count, selected, height) == expected


def test_render_lines_highlights_matches():
    search = PanelSearch("ph", False, (0, 2), 1)
    text = panel_renderers.render_lines(["alpha", "beta", "phone"], 1, 10, search)
    assert text.plain == "alpha\nbeta\nphone"
    styles = {text.plain[s.start:s.end] + str(s.style) for s in text.spans}
    assert "ph" + panel_renderers.MATCH_STYLE in styles
    assert "ph" + panel_renderers.CURRENT_MATCH_STYLE in styles
    assert "beta" + panel_renderers.SELECTED_STYLE in styles


def test_render_headers_styles_titles():
    rows = (HeaderRow("general"), HeaderRow("general", "Request URL", "https://x"))
    text = panel_renderers.render_headers(HeadersFrame(rows, 1), 10, PanelSearch())
    assert text.plain == "▼ General\nRequest URL: https://x"
    assert any(str(s.style) == panel_renderers.ACCENT for s in text.spans)


def test_render_response_and_preview_placeholder():
    response = panel_renderers.render_response(ResponseFrame(("a", "b"), 0), 10, PanelSearch())
    assert response.plain == "a\nb"
    preview = panel_renderers.render_preview(JsonFrame((), 0, LOADING), 10, PanelSearch())
    assert preview.plain == LOADING


def test_status_styles():
    assert panel_renderers.status_style(0) == "dim"
    assert panel_renderers.status_style(204) == "green"
    assert panel_renderers.status_style(404) == "bold red"


class TestRows:
    def test_row_columns(self):
        slot = RowSlot()
        slot.bind(0, make_request(status=404, resource_type=ResourceType.XHR, transferred_size=2048), False)
        text = render_row(slot, 80)
        assert text.plain.startswith("api/users")
        assert "404" in text.plain
        assert "xhr" in text.plain
        assert "2.0 KB" in text.plain

    def test_selected_row_reversed(self):
        slot = RowSlot()
        slot.bind(0, make_request(), True)
        assert any(str(s.style) == panel_renderers.SELECTED_STYLE for s in render_row(slot, 80).spans)

    def test_header_row(self):
        text = render_header_row(80).plain
        assert text.startswith("Name")
        assert text.rstrip().endswith("Time")
