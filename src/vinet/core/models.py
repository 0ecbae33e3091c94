"""Value types shared by the store, reconciler, interpreter and views.

// [LAW:one-source-of-truth] Every record here is frozen. Updates go through
//   dataclasses.replace() so identity changes exactly when content changes.

This module is STABLE. Safe for `from` imports everywhere.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


# ─── Type alias for JSON-parsed dicts ─────────────────────────────────────────

JsonDict = dict[str, object]

MAX_REQUESTS = 1000


def _empty_map() -> Mapping[str, Any]:
    return MappingProxyType({})


# ─── Enums ────────────────────────────────────────────────────────────────────


class ResourceType(Enum):
    """Closed set of request resource types."""

    XHR = "xhr"
    FETCH = "fetch"
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    IMAGE = "image"
    FONT = "font"
    MEDIA = "media"
    MANIFEST = "manifest"
    WEBSOCKET = "websocket"
    WASM = "wasm"
    OTHER = "other"

    @classmethod
    def from_capture(cls, raw: str | None) -> "ResourceType":
        """Map a capture-source type name (e.g. "XHR", "WebAssembly") to a ResourceType."""
        return _CAPTURE_TYPE_MAP.get(raw or "", cls.OTHER)


_CAPTURE_TYPE_MAP: dict[str, ResourceType] = {
    "XHR": ResourceType.XHR,
    "Fetch": ResourceType.FETCH,
    "Document": ResourceType.DOCUMENT,
    "Stylesheet": ResourceType.STYLESHEET,
    "Script": ResourceType.SCRIPT,
    "Image": ResourceType.IMAGE,
    "Font": ResourceType.FONT,
    "Media": ResourceType.MEDIA,
    "Manifest": ResourceType.MANIFEST,
    "WebSocket": ResourceType.WEBSOCKET,
    "WebAssembly": ResourceType.WASM,
}


class Mode(Enum):
    """Top-level interaction mode. Exactly one is active."""

    NORMAL = "normal"
    SEARCH = "search"
    FILTER = "filter"
    INSPECT = "inspect"
    COPY = "copy"


class Panel(Enum):
    """Preview tab and INSPECT sub-focus share one vocabulary."""

    HEADERS = "headers"
    RESPONSE = "response"
    PREVIEW = "preview"


PANEL_CYCLE: tuple[Panel, ...] = (Panel.HEADERS, Panel.RESPONSE, Panel.PREVIEW)


class ValueKind(Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


class MessageLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


# ─── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ResponseBody:
    """A fetched response body.

    value is the parsed JSON document when is_json, otherwise the raw text.
    """

    text: str
    value: Any
    is_json: bool


@dataclass(frozen=True)
class Request:
    """One captured network exchange.

    version increases by one on every copy-on-write update so views can
    detect a changed record by comparing (id, version).
    """

    id: str
    url: str
    name: str
    method: str
    resource_type: ResourceType
    status: int = 0
    status_text: str = "Pending"
    timestamp_start: float = 0.0
    duration: float = 0.0
    transferred_size: int = 0
    request_headers: Mapping[str, str] = field(default_factory=_empty_map)
    response_headers: Mapping[str, str] = field(default_factory=_empty_map)
    request_body: str | None = None
    response_body: ResponseBody | None = None
    initiator: str | None = None
    frame_id: str | None = None
    wall_time: float | None = None
    version: int = 0

    @property
    def is_pending(self) -> bool:
        return self.status == 0 and self.status_text == "Pending"

    @property
    def mime_type(self) -> str:
        for key, value in self.response_headers.items():
            if key.lower() == "content-type":
                return value.split(";", 1)[0].strip()
        return ""


@dataclass(frozen=True)
class FilterState:
    """Selected resource types (empty = show all) plus the chip display order."""

    types: frozenset[ResourceType] = frozenset()
    order: tuple[str, ...] = ()


@dataclass(frozen=True)
class JsonNode:
    """One flattened row of a JSON tree."""

    key: str
    value: Any
    kind: ValueKind
    path: str
    expanded: bool
    depth: int

    @property
    def is_container(self) -> bool:
        return self.kind in (ValueKind.OBJECT, ValueKind.ARRAY)


@dataclass(frozen=True)
class StatusMessage:
    """A user-visible status line. seq identifies it for auto-clear."""

    text: str
    level: MessageLevel
    seq: int = 0


@dataclass(frozen=True)
class PanelSearch:
    """In-panel search inside INSPECT.

    matches are line indices into the focused panel's rendered lines.
    """

    query: str = ""
    editing: bool = False
    matches: tuple[int, ...] = ()
    current: int = 0

    @property
    def active(self) -> bool:
        return bool(self.query)


@dataclass(frozen=True)
class AppState:
    """The single authoritative application state, owned by the Store."""

    mode: Mode = Mode.NORMAL
    requests: tuple[Request, ...] = ()
    selected_index: int = 0
    search_query: str = ""
    filters: FilterState = field(default_factory=FilterState)
    # path -> expanded; missing paths default to expanded
    json_expanded: Mapping[str, bool] = field(default_factory=_empty_map)
    preview_tab: Panel = Panel.HEADERS
    inspect_focus: Panel = Panel.HEADERS
    inspect_expanded: bool = False
    headers_index: int = 0
    collapsed_sections: frozenset[str] = frozenset()
    json_index: int = 0
    response_scroll: int = 0
    panel_search: PanelSearch = field(default_factory=PanelSearch)
    filter_cursor: int = 0
    copy_index: int = 0
    show_help: bool = False
    message: StatusMessage | None = None
    version: int = 0
