"""Modal command interpreter — keys in, store mutations and panel calls out.

// [LAW:single-enforcer] The only place keys become intents. The Textual app
//   normalizes a key event to a string and calls handle_key().
// [LAW:dataflow-not-control-flow] Key→action lookups live in input_modes;
//   this module maps action names to bound callables.

All collaborators are injected at construction; nothing is looked up
through globals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from vinet.app.filters import FilterManager
from vinet.app.store import Store
from vinet.core.models import PANEL_CYCLE, AppState, MessageLevel, Panel, PanelSearch, Request
from vinet.core.scheduler import Scheduler
from vinet.tui import input_modes
from vinet.tui.copy_menu import CopyMenu
from vinet.tui.headers_list import HeadersList
from vinet.tui.input_modes import InputMode
from vinet.tui.json_viewer import JsonViewer
from vinet.tui.panel_search import PanelSearchController
from vinet.tui.request_list import RequestList
from vinet.tui.response_view import ResponseView
from vinet.tui.sequences import PENDING, SequenceBuffer

logger = logging.getLogger(__name__)

PAGE_LINES = 10


@dataclass
class Collaborators:
    """Everything the interpreter drives, wired once by the app."""

    store: Store
    scheduler: Scheduler
    request_list: RequestList
    headers: HeadersList
    json_viewer: JsonViewer
    response: ResponseView
    copy_menu: CopyMenu
    filters: FilterManager
    clipboard: Callable[[str], None]
    exporter: Callable[[tuple[Request, ...]], None]


def _is_text(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


class KeyInterpreter:
    def __init__(self, c: Collaborators):
        self._c = c
        self._store = c.store
        self._panels = {
            Panel.HEADERS: c.headers,
            Panel.RESPONSE: c.response,
            Panel.PREVIEW: c.json_viewer,
        }
        self._search = PanelSearchController(c.store, self._panels)
        self._sequences = SequenceBuffer(
            c.scheduler, input_modes.SEQUENCE_TIMEOUTS_MS, self._run
        )
        self._actions: dict[str, Callable[[], None]] = {
            # NORMAL
            "list_down": lambda: c.request_list.move_selection(1),
            "list_up": lambda: c.request_list.move_selection(-1),
            "list_first": lambda: c.request_list.navigate_to("first"),
            "list_last": lambda: c.request_list.navigate_to("last"),
            "delete_selected": c.request_list.delete_selected,
            "clear_all": c.request_list.clear_all,
            "start_search": lambda: self._store.set_state({"search_query": ""}),
            "enter_filter": lambda: None,
            "enter_inspect": self._enter_inspect,
            "enter_copy": lambda: self._store.set_state({"copy_index": 0}),
            "tab_headers": lambda: self._store.set_state({"preview_tab": Panel.HEADERS}),
            "tab_response": lambda: self._store.set_state({"preview_tab": Panel.RESPONSE}),
            "tab_preview": lambda: self._store.set_state({"preview_tab": Panel.PREVIEW}),
            "toggle_help": lambda: self._store.set_state(lambda s: {"show_help": not s.show_help}),
            "export": self._export,
            # FILTER
            "filter_left": lambda: c.filters.move(-1),
            "filter_right": lambda: c.filters.move(1),
            "filter_toggle": c.filters.toggle_selected,
            "filter_shift_left": lambda: c.filters.reorder(-1),
            "filter_shift_right": lambda: c.filters.reorder(1),
            "exit_filter": lambda: None,
            # INSPECT
            "exit_inspect": self._exit_inspect,
            "toggle_expanded": lambda: self._store.set_state(
                lambda s: {"inspect_expanded": not s.inspect_expanded}
            ),
            "focus_headers": lambda: self._focus(Panel.HEADERS),
            "focus_response": lambda: self._focus(Panel.RESPONSE),
            "focus_preview": lambda: self._focus(Panel.PREVIEW),
            "focus_next": lambda: self._cycle_focus(1),
            "focus_prev": lambda: self._cycle_focus(-1),
            "start_panel_search": self._search.start,
            "next_match": lambda: self._search.step(1),
            "prev_match": lambda: self._search.step(-1),
            "page_down": lambda: self._focused().move_selection(PAGE_LINES),
            "page_up": lambda: self._focused().move_selection(-PAGE_LINES),
            "panel_down": lambda: self._focused().move_selection(1),
            "panel_up": lambda: self._focused().move_selection(-1),
            "panel_first": lambda: self._focused().navigate_to("first"),
            "panel_last": lambda: self._focused().navigate_to("last"),
            "collapse": self._collapse,
            "expand": self._expand,
            "yank_header": lambda: self._yank(c.headers.yank_text, "header"),
            "yank_value": lambda: self._yank(c.json_viewer.value_text, "value"),
            "yank_json": lambda: self._yank(c.json_viewer.json_text, "JSON"),
            "yank_path": lambda: self._yank(c.json_viewer.path_text, "path"),
            # COPY
            "copy_next": lambda: c.copy_menu.move(1),
            "copy_prev": lambda: c.copy_menu.move(-1),
            "copy_execute": self._copy_execute,
            "exit_copy": lambda: None,
        }

    @property
    def sequences(self) -> SequenceBuffer:
        return self._sequences

    # ─── Dispatch ─────────────────────────────────────────────────────

    def handle_key(self, key: str) -> bool:
        """Process one normalized key. Returns True if it was consumed."""
        state = self._store.get_state()
        mode = input_modes.input_mode_for(state)

        if mode is InputMode.SEARCH:
            consumed = self._search_key(key)
        elif mode is InputMode.INSPECT_SEARCH:
            consumed = self._panel_search_key(key)
        else:
            consumed = self._command_key(mode, state, key)

        target = input_modes.next_mode(state.mode, mode, key)
        if target is not state.mode:
            self._sequences.reset()
            self._store.set_state({"mode": target})
            consumed = True
        return consumed

    def _command_key(self, mode: InputMode, state: AppState, key: str) -> bool:
        focus = state.inspect_focus
        result = self._sequences.feed(
            key,
            input_modes.sequences_for(mode, focus),
            input_modes.timeout_actions_for(mode, focus),
        )
        if result is PENDING:
            return True
        if isinstance(result, str):
            self._run(result)
            return True
        action = input_modes.keymap_for(mode, focus).get(key)
        if action is None:
            return False
        self._run(action)
        return True

    def _run(self, action: str) -> None:
        handler = self._actions.get(action)
        if handler is None:
            logger.warning("no handler for action %r", action)
            return
        handler()

    # ─── Text editors ─────────────────────────────────────────────────

    def _search_key(self, key: str) -> bool:
        if key == "q":
            self._store.set_state({"search_query": ""})
        elif key in ("enter", "escape"):
            pass
        elif key == "backspace":
            self._store.set_state(lambda s: {"search_query": s.search_query[:-1]})
        elif _is_text(key):
            self._store.set_state(lambda s: {"search_query": s.search_query + key})
        else:
            return False
        return True

    def _panel_search_key(self, key: str) -> bool:
        if key == "q":
            self._search.clear()
        elif key == "enter":
            self._search.commit()
        elif key == "escape":
            self._search.stop_editing()
        elif key == "backspace":
            self._search.backspace()
        elif _is_text(key):
            self._search.type_char(key)
        else:
            return False
        return True

    # ─── Mode entry / exit ────────────────────────────────────────────

    def _enter_inspect(self) -> None:
        self._store.set_state(lambda s: {"inspect_focus": s.preview_tab})

    def _exit_inspect(self) -> None:
        self._store.set_state(
            {
                "inspect_focus": Panel.HEADERS,
                "panel_search": PanelSearch(),
                "headers_index": 0,
                "inspect_expanded": False,
            }
        )

    def _focus(self, panel: Panel) -> None:
        self._store.set_state(
            {
                "inspect_focus": panel,
                "preview_tab": panel,
                self._panels[panel].index_field: 0,
                "panel_search": PanelSearch(),
            }
        )

    def _cycle_focus(self, direction: int) -> None:
        current = self._store.get_state().inspect_focus
        index = PANEL_CYCLE.index(current)
        self._focus(PANEL_CYCLE[(index + direction) % len(PANEL_CYCLE)])

    def _focused(self):
        return self._panels[self._store.get_state().inspect_focus]

    # ─── Focus-specific folding ───────────────────────────────────────

    def _collapse(self) -> None:
        if self._store.get_state().inspect_focus is Panel.HEADERS:
            self._c.headers.collapse()
        else:
            self._c.json_viewer.collapse_node()

    def _expand(self) -> None:
        if self._store.get_state().inspect_focus is Panel.HEADERS:
            self._c.headers.expand()
        else:
            self._c.json_viewer.expand_node()

    # ─── Copy / yank / export ─────────────────────────────────────────

    def _yank(self, source: Callable[[AppState], str | None], what: str) -> None:
        text = source(self._store.get_state())
        if text is None:
            return
        self._c.clipboard(text)
        self._store.show_message(f"Yanked {what}", MessageLevel.SUCCESS)

    def _copy_execute(self) -> None:
        result = self._c.copy_menu.execute(self._store.get_state())
        if result is None:
            self._store.show_message("No request selected", MessageLevel.INFO)
            return
        self._c.clipboard(result.text)
        self._store.show_message(f"Copied: {result.label}", MessageLevel.SUCCESS)

    def _export(self) -> None:
        self._c.exporter(self._store.snapshot())
