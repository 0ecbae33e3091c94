"""Main TUI application using Textual.

// [LAW:locality-or-seam] Thin coordinator. The store, reconciler, panel
//   components and interpreter are plain objects built here and wired
//   together; widgets only paint their frames.
// [LAW:single-enforcer] on_key is the sole key dispatcher. Textual BINDINGS
//   are not used.
"""

from __future__ import annotations

import logging
from pathlib import Path

from textual.app import App, ComposeResult
from textual.containers import Vertical

from vinet.app.filters import FilterManager, Prefs
from vinet.app.reconciler import Reconciler
from vinet.app.store import Store
from vinet.capture.source import CaptureSource
from vinet.core import export
from vinet.core.models import AppState, MessageLevel, Panel, Request
from vinet.core.scheduler import AsyncioScheduler, Scheduler
from vinet.tui.copy_menu import CopyMenu
from vinet.tui.headers_list import HeadersList
from vinet.tui.interpreter import Collaborators, KeyInterpreter
from vinet.tui.json_viewer import JsonViewer
from vinet.tui.request_list import RequestList
from vinet.tui.response_view import ResponseView
from vinet.tui.widgets import (
    ColumnHeader,
    CopyBar,
    DetailPane,
    FilterBar,
    KeysPanel,
    ModeFooter,
    RequestTable,
    SearchBar,
    StatusBar,
)

logger = logging.getLogger(__name__)

# Tabs whose content needs the response body.
_BODY_TABS = frozenset({Panel.RESPONSE, Panel.PREVIEW})


def normalize_key(key: str, character: str | None) -> str:
    """Printable characters stand for themselves; everything else uses Textual's key name."""
    if character is not None and len(character) == 1 and character.isprintable():
        return character
    return key


class VinetApp(App):
    """Vim-style network request inspector."""

    TITLE = "vinet"

    DEFAULT_CSS = """
    #main {
        height: 1fr;
    }
    """

    def __init__(
        self,
        source: CaptureSource,
        prefs: Prefs,
        export_dir: Path | None = None,
        export_format: str = "har",
        scheduler: Scheduler | None = None,
    ):
        super().__init__()
        self._export_dir = export_dir or Path.cwd()
        self._export_format = export_format

        self.scheduler = scheduler or AsyncioScheduler()
        self.store = Store(self.scheduler)
        self.reconciler = Reconciler(self.store, source, self.scheduler)
        self.filters = FilterManager(self.store, prefs)

        self.request_list = RequestList(self.store)
        self.headers = HeadersList(self.store)
        self.json_viewer = JsonViewer(self.store)
        self.response = ResponseView(self.store)
        self.copy_menu = CopyMenu(self.store)

        self.interpreter = KeyInterpreter(
            Collaborators(
                store=self.store,
                scheduler=self.scheduler,
                request_list=self.request_list,
                headers=self.headers,
                json_viewer=self.json_viewer,
                response=self.response,
                copy_menu=self.copy_menu,
                filters=self.filters,
                clipboard=self.copy_to_clipboard,
                exporter=self._export,
            )
        )
        self._unsubscribe = None
        self._body_requested: set[tuple[str, int]] = set()
        self._body_requests_seen: tuple[Request, ...] = ()

    def compose(self) -> ComposeResult:
        yield FilterBar(id="filter-bar")
        with Vertical(id="main"):
            yield ColumnHeader(id="column-header")
            yield RequestTable(self.store, self.request_list, id="request-table")
            yield DetailPane(self.headers, self.response, self.json_viewer, id="detail")
        yield KeysPanel(id="keys")
        yield ModeFooter(id="footer")
        yield StatusBar(self.store, id="status")
        yield CopyBar(self.copy_menu, id="copy-bar")
        yield SearchBar(id="search-bar")

    def on_mount(self) -> None:
        self._unsubscribe = self.store.subscribe(self._on_state)
        self.filters.load()
        self._on_state(self.store.get_state())
        self.run_worker(self._start_capture(), exclusive=False)

    async def _start_capture(self) -> None:
        try:
            await self.reconciler.ensure_capture_active()
        except Exception:
            logger.exception("capture task failed")

    async def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        await self.reconciler.stop()

    # ─── Rendering ────────────────────────────────────────────────────

    def _on_state(self, state: AppState) -> None:
        for widget_type in (FilterBar, RequestTable, DetailPane, KeysPanel, ModeFooter, StatusBar, CopyBar, SearchBar):
            for widget in self.query(widget_type):
                widget.update_display(state)
        self._ensure_body(state)

    def _ensure_body(self, state: AppState) -> None:
        """Fetch the selected body once it is shown on a tab that needs it."""
        if state.requests is not self._body_requests_seen:
            # Forget attempts for records that were evicted, deleted or superseded.
            live = {(r.id, r.version) for r in state.requests}
            self._body_requested &= live
            self._body_requests_seen = state.requests
        if state.preview_tab not in _BODY_TABS:
            return
        request = self.store.get_selected_request(state)
        if request is None or request.response_body is not None or request.status == 0:
            return
        # One attempt per record version; a failed fetch retries once the record changes.
        key = (request.id, request.version)
        if key in self._body_requested:
            return
        self._body_requested.add(key)
        self.reconciler.request_body_load(request.id)

    # ─── Input ────────────────────────────────────────────────────────

    async def on_key(self, event) -> None:
        key = normalize_key(event.key, event.character)
        if self.interpreter.handle_key(key):
            event.prevent_default()
            event.stop()

    # ─── Export ───────────────────────────────────────────────────────

    def _export(self, requests: tuple[Request, ...]) -> None:
        if not requests:
            self.store.show_message("Nothing to export", MessageLevel.INFO)
            return
        try:
            path = export.export_requests(requests, self._export_dir, self._export_format)
        except OSError as exc:
            logger.error("export failed: %s", exc)
            self.store.show_message(f"Export failed: {exc}", MessageLevel.ERROR)
            return
        self.store.show_message(f"Exported {len(requests)} requests to {path.name}", MessageLevel.SUCCESS)
