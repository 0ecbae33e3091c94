"""Tests for the INSPECT panel components: headers, response, copy menu, panel search."""

import pytest

from tests.harness import make_request, make_requests
from vinet.app.reconciler import parse_body
from vinet.core.models import Mode, Panel
from vinet.tui.copy_menu import CopyMenu
from vinet.tui.headers_list import HeadersList, build_rows
from vinet.tui.json_viewer import LOADING, NOT_JSON, JsonViewer, node_line
from vinet.tui.panel_search import compile_search_pattern, find_matches, wrap_index
from vinet.tui.response_view import EMPTY, ResponseView
from vinet.tui.response_view import LOADING as RESPONSE_LOADING


@pytest.fixture
def detailed(load):
    return load(
        make_request(
            "r1",
            status=200,
            status_text="OK",
            request_headers={"user-agent": "test", "Accept": "*/*"},
            response_headers={"Content-Type": "application/json"},
            response_body=parse_body('{"user": {"name": "Ada"}, "tags": ["a", "b"]}'),
        )
    )


class TestHeadersList:
    def test_rows(self, store, detailed):
        lines = HeadersList(store).lines(detailed)
        assert lines == [
            "▼ General",
            "Request URL: https://example.com/api/users",
            "Request Method: GET",
            "Status Code: 200 OK",
            "Resource Type: fetch",
            "▼ Request Headers",
            "Accept: */*",
            "user-agent: test",
            "▼ Response Headers",
            "Content-Type: application/json",
        ]

    def test_collapsed_sections(self, store, detailed):
        rows = build_rows(store.get_selected_request(), frozenset({"general", "request"}))
        assert [r.text for r in rows] == [
            "▶ General",
            "▶ Request Headers",
            "▼ Response Headers",
            "Content-Type: application/json",
        ]

    def test_rows_memoized_per_record_version(self, store, detailed):
        headers = HeadersList(store)
        assert headers.rows(detailed) is headers.rows(detailed)

    def test_no_request(self, store):
        assert HeadersList(store).rows(store.get_state()) == ()

    def test_toggle_section(self, store, scheduler, detailed):
        headers = HeadersList(store)
        headers.toggle_section("request")
        scheduler.run_pending()
        assert store.get_state().collapsed_sections == {"request"}
        headers.toggle_section("request")
        scheduler.run_pending()
        assert store.get_state().collapsed_sections == frozenset()


class TestResponseView:
    def test_lines_from_pretty_json(self, store, detailed):
        lines = ResponseView(store).lines(detailed)
        assert lines[0] == "{"
        assert '"name": "Ada"' in lines[2]

    def test_loading_and_empty(self, store, scheduler, load):
        state = load(make_request("r1"))
        assert ResponseView(store).lines(state) == (RESPONSE_LOADING,)
        store.set_response_body("r1", parse_body(""))
        scheduler.run_pending()
        assert ResponseView(store).lines(store.get_state()) == (EMPTY,)


class TestJsonViewer:
    def test_node_lines(self, store, detailed):
        lines = JsonViewer(store).lines(detailed)
        assert lines[0] == "▼ user:"
        assert lines[1] == '    name: "Ada"'

    def test_collapsed_line_summarizes(self, store, scheduler, detailed):
        store.set_state({"json_expanded": {"tags": False}})
        scheduler.run_pending()
        nodes = store.get_json_nodes()
        assert node_line(nodes[-1]) == "▶ tags: [2 items]"

    def test_placeholders(self, store, scheduler, load):
        viewer = JsonViewer(store)
        state = load(make_request("r1"))
        assert viewer.render(state).placeholder == LOADING
        store.set_response_body("r1", parse_body("<html>"))
        scheduler.run_pending()
        assert viewer.render(store.get_state()).placeholder == NOT_JSON

    def test_toggle_path(self, store, scheduler, detailed):
        viewer = JsonViewer(store)
        viewer.toggle("user")
        scheduler.run_pending()
        assert store.get_state().json_expanded == {"user": False}

    def test_expand_leaf_is_noop(self, store, scheduler, detailed):
        JsonViewer(store).expand_node("user.name")
        scheduler.run_pending()
        assert store.get_state().json_expanded == {}


class TestCopyMenu:
    def test_labels(self, store):
        assert CopyMenu(store).labels[0] == "Copy as cURL"

    def test_execute_selected_item(self, store, scheduler, detailed):
        menu = CopyMenu(store)
        store.set_state({"copy_index": 4})
        scheduler.run_pending()
        result = menu.execute(store.get_state())
        assert result.label == "Copy Response Body"
        assert '"Ada"' in result.text

    def test_render_marks_current(self, store):
        rendered = CopyMenu(store).render(store.get_state())
        assert rendered[0] == ("Copy as cURL", True)
        assert not any(current for _, current in rendered[1:])


class TestPanelSearchHelpers:
    def test_pattern_is_literal_and_case_insensitive(self):
        pattern = compile_search_pattern("a.b")
        assert pattern.search("xA.Bx")
        assert not pattern.search("axb")
        assert compile_search_pattern("") is None

    def test_find_matches(self):
        assert find_matches(["Alpha", "beta", "ALPHABET"], "alp") == (0, 2)
        assert find_matches(["x"], "") == ()

    @pytest.mark.parametrize("current, direction, expected", [(0, 1, 1), (2, 1, 0), (0, -1, 2)])
    def test_wrap_index(self, current, direction, expected):
        assert wrap_index(current, direction, 3) == expected

    def test_search_reveals_in_headers(self, keyboard, detailed):
        keyboard.press("enter", "/")
        keyboard.type("agent")
        assert keyboard.state.inspect_focus is Panel.HEADERS
        assert keyboard.state.panel_search.matches == (7,)
        assert keyboard.state.headers_index == 7


class TestKeysInOneTick:
    """Several keys handled before the store flushes see each other's updates."""

    def feed(self, keyboard, *keys):
        for key in keys:
            keyboard.interpreter.handle_key(key)
        keyboard.scheduler.run_pending()

    def test_collapse_then_last_in_preview(self, keyboard, load, store):
        load(make_request("r1", status=200, response_body=parse_body('{"a": {"b": 1, "c": 2}, "d": 3}')))
        keyboard.set(mode=Mode.INSPECT, inspect_focus=Panel.PREVIEW, preview_tab=Panel.PREVIEW)
        self.feed(keyboard, "h", "G")
        assert [n.path for n in store.get_json_nodes()] == ["a", "d"]
        assert keyboard.state.json_index == 1

    def test_collapse_then_last_in_headers(self, keyboard, detailed):
        keyboard.set(mode=Mode.INSPECT, inspect_focus=Panel.HEADERS)
        self.feed(keyboard, "h", "G")
        assert keyboard.state.collapsed_sections == {"general"}
        assert keyboard.state.headers_index == 5

    def test_move_then_delete(self, keyboard, load):
        load(*make_requests(3))
        self.feed(keyboard, "j", "d", "d")
        assert [r.id for r in keyboard.state.requests] == ["r0", "r2"]
