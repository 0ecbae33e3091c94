"""Headers panel: General / Request / Response sections as a navigable list.

Rows are section titles followed by that section's items; a collapsed
section contributes only its title. headers_index indexes these rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from vinet.app.store import Store
from vinet.core.formatting import status_text
from vinet.core.models import AppState, Request

SECTIONS: tuple[tuple[str, str], ...] = (
    ("general", "General"),
    ("request", "Request Headers"),
    ("response", "Response Headers"),
)

INDEX_FIELD = "headers_index"


@dataclass(frozen=True)
class HeaderRow:
    section: str
    key: str | None = None
    value: str = ""
    collapsed: bool = False

    @property
    def is_title(self) -> bool:
        return self.key is None

    @property
    def text(self) -> str:
        if self.is_title:
            icon = "▶" if self.collapsed else "▼"
            return f"{icon} {dict(SECTIONS)[self.section]}"
        return f"{self.key}: {self.value}"


def general_items(request: Request) -> list[tuple[str, str]]:
    return [
        ("Request URL", request.url),
        ("Request Method", request.method),
        ("Status Code", f"{request.status} {status_text(request)}".strip()),
        ("Resource Type", request.resource_type.value),
    ]


def section_items(request: Request, section: str) -> list[tuple[str, str]]:
    if section == "general":
        return general_items(request)
    headers = request.request_headers if section == "request" else request.response_headers
    return sorted(headers.items(), key=lambda kv: kv[0].lower())


def build_rows(request: Request | None, collapsed: frozenset[str]) -> tuple[HeaderRow, ...]:
    if request is None:
        return ()
    rows: list[HeaderRow] = []
    for section, _ in SECTIONS:
        is_collapsed = section in collapsed
        rows.append(HeaderRow(section, collapsed=is_collapsed))
        if not is_collapsed:
            rows.extend(HeaderRow(section, k, v) for k, v in section_items(request, section))
    return tuple(rows)


@dataclass(frozen=True)
class HeadersFrame:
    rows: tuple[HeaderRow, ...]
    selected: int


class HeadersList:
    index_field = INDEX_FIELD

    def __init__(self, store: Store):
        self._store = store
        self._memo: tuple | None = None
        self._rows: tuple[HeaderRow, ...] = ()

    def rows(self, state: AppState) -> tuple[HeaderRow, ...]:
        request = self._store.get_selected_request(state)
        key = (
            None if request is None else (request.id, request.version),
            state.collapsed_sections,
        )
        if key != self._memo:
            self._rows = build_rows(request, state.collapsed_sections)
            self._memo = key
        return self._rows

    def lines(self, state: AppState) -> list[str]:
        return [row.text for row in self.rows(state)]

    def render(self, state: AppState) -> HeadersFrame:
        rows = self.rows(state)
        return HeadersFrame(rows, min(state.headers_index, max(len(rows) - 1, 0)))

    def selected_row(self, state: AppState) -> HeaderRow | None:
        rows = self.rows(state)
        if not rows:
            return None
        return rows[min(state.headers_index, len(rows) - 1)]

    # ─── Navigation API ───────────────────────────────────────────────

    def move_selection(self, delta: int) -> None:
        def apply(state: AppState):
            rows = self.rows(state)
            if not rows:
                return None
            return {INDEX_FIELD: min(max(state.headers_index + delta, 0), len(rows) - 1)}

        self._store.set_state(apply)

    def navigate_to(self, position: Literal["first", "last"]) -> None:
        def apply(state: AppState):
            rows = self.rows(state)
            if not rows:
                return None
            return {INDEX_FIELD: 0 if position == "first" else len(rows) - 1}

        self._store.set_state(apply)

    def reveal(self, index: int) -> dict:
        return {INDEX_FIELD: index}

    def toggle_section(self, section: str) -> None:
        def apply(state: AppState):
            collapsed = state.collapsed_sections ^ {section}
            return {"collapsed_sections": frozenset(collapsed)}

        self._store.set_state(apply)

    def collapse(self) -> None:
        """Collapse the selected row's section and select its title."""

        def apply(state: AppState):
            row = self.selected_row(state)
            if row is None or row.section in state.collapsed_sections:
                return None
            collapsed = state.collapsed_sections | {row.section}
            new_rows = build_rows(self._store.get_selected_request(state), collapsed)
            title = next(i for i, r in enumerate(new_rows) if r.is_title and r.section == row.section)
            return {"collapsed_sections": collapsed, INDEX_FIELD: title}

        self._store.set_state(apply)

    def expand(self) -> None:
        """Expand the selected row's section if it is collapsed."""

        def apply(state: AppState):
            row = self.selected_row(state)
            if row is None or row.section not in state.collapsed_sections:
                return None
            return {"collapsed_sections": state.collapsed_sections - {row.section}}

        self._store.set_state(apply)

    def yank_text(self, state: AppState) -> str | None:
        row = self.selected_row(state)
        if row is None or row.is_title:
            return None
        return f"{row.key}: {row.value}"
