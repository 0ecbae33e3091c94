"""Pure mode system for key dispatch.

All keyboard input routes through the KeyInterpreter based on the current
input mode. Textual BINDINGS are not used - on_key is the sole dispatcher.

Key names: a printable single character stands for itself ("j", "G", "/");
everything else uses Textual key names ("enter", "escape", "tab",
"shift+tab", "backspace", "ctrl+d", "left", ...).
"""

from enum import Enum

from vinet.core.models import AppState, Mode, Panel


class InputMode(Enum):
    """Input modes derived from AppState.

    INSPECT_SEARCH is INSPECT while the in-panel search editor owns the
    keyboard; it never appears as AppState.mode.
    """

    NORMAL = "normal"
    SEARCH = "search"
    FILTER = "filter"
    INSPECT = "inspect"
    INSPECT_SEARCH = "inspect_search"
    COPY = "copy"


_MODE_TO_INPUT: dict[Mode, InputMode] = {
    Mode.NORMAL: InputMode.NORMAL,
    Mode.SEARCH: InputMode.SEARCH,
    Mode.FILTER: InputMode.FILTER,
    Mode.INSPECT: InputMode.INSPECT,
    Mode.COPY: InputMode.COPY,
}


def input_mode_for(state: AppState) -> InputMode:
    """// [LAW:one-source-of-truth] InputMode derived from store state only."""
    if state.mode is Mode.INSPECT and state.panel_search.editing:
        return InputMode.INSPECT_SEARCH
    return _MODE_TO_INPUT[state.mode]


# ─── Mode transitions ─────────────────────────────────────────────────────────

# [LAW:dataflow-not-control-flow] Transitions as data, not branches.
# Any (input mode, key) pair absent here leaves the mode unchanged.
MODE_TRANSITIONS: dict[InputMode, dict[str, Mode]] = {
    InputMode.NORMAL: {
        "/": Mode.SEARCH,
        "f": Mode.FILTER,
        "enter": Mode.INSPECT,
        "c": Mode.COPY,
    },
    InputMode.SEARCH: {
        "q": Mode.NORMAL,
        "enter": Mode.NORMAL,
        "escape": Mode.NORMAL,
    },
    InputMode.FILTER: {
        "q": Mode.NORMAL,
    },
    InputMode.INSPECT: {
        "q": Mode.NORMAL,
    },
    InputMode.INSPECT_SEARCH: {},
    InputMode.COPY: {
        "q": Mode.NORMAL,
        "escape": Mode.NORMAL,
        "enter": Mode.NORMAL,
    },
}


def next_mode(current: Mode, input_mode: InputMode, key: str) -> Mode:
    """Total transition function over (mode, key)."""
    return MODE_TRANSITIONS[input_mode].get(key, current)


# ─── Single-key actions ───────────────────────────────────────────────────────

# [LAW:one-source-of-truth] Key→action mapping per mode.
# SEARCH and INSPECT_SEARCH are text editors and have no action keymap.
MODE_KEYMAP: dict[InputMode, dict[str, str]] = {
    InputMode.NORMAL: {
        "j": "list_down",
        "down": "list_down",
        "k": "list_up",
        "up": "list_up",
        "G": "list_last",
        "/": "start_search",
        "f": "enter_filter",
        "enter": "enter_inspect",
        "c": "enter_copy",
        "H": "tab_headers",
        "L": "tab_response",
        "P": "tab_preview",
        "?": "toggle_help",
        "ctrl+s": "export",
    },
    InputMode.SEARCH: {},
    InputMode.FILTER: {
        "h": "filter_left",
        "left": "filter_left",
        "l": "filter_right",
        "right": "filter_right",
        "enter": "filter_toggle",
        "H": "filter_shift_left",
        "L": "filter_shift_right",
        "q": "exit_filter",
    },
    InputMode.INSPECT: {
        "q": "exit_inspect",
        "z": "toggle_expanded",
        "H": "focus_headers",
        "L": "focus_response",
        "P": "focus_preview",
        "tab": "focus_next",
        "shift+tab": "focus_prev",
        "/": "start_panel_search",
        "n": "next_match",
        "N": "prev_match",
        "ctrl+d": "page_down",
        "ctrl+u": "page_up",
    },
    InputMode.INSPECT_SEARCH: {},
    InputMode.COPY: {
        "l": "copy_next",
        "right": "copy_next",
        "h": "copy_prev",
        "left": "copy_prev",
        "enter": "copy_execute",
        "q": "exit_copy",
        "escape": "exit_copy",
    },
}

# INSPECT keys that depend on which panel has focus.
FOCUS_KEYMAP: dict[Panel, dict[str, str]] = {
    Panel.HEADERS: {
        "j": "panel_down",
        "down": "panel_down",
        "k": "panel_up",
        "up": "panel_up",
        "h": "collapse",
        "l": "expand",
        "y": "yank_header",
        "G": "panel_last",
    },
    Panel.PREVIEW: {
        "j": "panel_down",
        "down": "panel_down",
        "k": "panel_up",
        "up": "panel_up",
        "h": "collapse",
        "l": "expand",
        "G": "panel_last",
    },
    Panel.RESPONSE: {
        "j": "panel_down",
        "down": "panel_down",
        "k": "panel_up",
        "up": "panel_up",
        "G": "panel_last",
    },
}


def keymap_for(input_mode: InputMode, focus: Panel) -> dict[str, str]:
    if input_mode is InputMode.INSPECT:
        return {**MODE_KEYMAP[input_mode], **FOCUS_KEYMAP[focus]}
    return MODE_KEYMAP[input_mode]


# ─── Multi-key sequences ──────────────────────────────────────────────────────

# Quiet period (ms) before a pending prefix expires.
SEQUENCE_TIMEOUTS_MS: dict[str, float] = {
    "g": 1000,
    "d": 1000,
    "y": 300,
}

_NORMAL_SEQUENCES = {"gg": "list_first", "dd": "delete_selected", "dr": "clear_all"}
_PANEL_SEQUENCES = {"gg": "panel_first"}
_PREVIEW_SEQUENCES = {"gg": "panel_first", "yy": "yank_json", "yp": "yank_path"}


def sequences_for(input_mode: InputMode, focus: Panel) -> dict[str, str]:
    """Complete multi-key sequences available in this context."""
    if input_mode is InputMode.NORMAL:
        return _NORMAL_SEQUENCES
    if input_mode is InputMode.INSPECT:
        return _PREVIEW_SEQUENCES if focus is Panel.PREVIEW else _PANEL_SEQUENCES
    return {}


def timeout_actions_for(input_mode: InputMode, focus: Panel) -> dict[str, str]:
    """Prefixes that are also complete commands, committed when they time out."""
    if input_mode is InputMode.INSPECT and focus is Panel.PREVIEW:
        return {"y": "yank_value"}
    return {}


# ─── Footer / help ────────────────────────────────────────────────────────────

# [LAW:one-source-of-truth] Footer hints per mode: (key label, description).
FOOTER_KEYS: dict[InputMode, list[tuple[str, str]]] = {
    InputMode.NORMAL: [
        ("j/k", "move"),
        ("gg/G", "top/bottom"),
        ("/", "search"),
        ("f", "filter"),
        ("⏎", "inspect"),
        ("c", "copy"),
        ("dd", "delete"),
        ("?", "help"),
    ],
    InputMode.SEARCH: [
        ("type", "query"),
        ("⏎", "apply"),
        ("q", "clear"),
    ],
    InputMode.FILTER: [
        ("h/l", "move"),
        ("⏎", "toggle"),
        ("H/L", "reorder"),
        ("q", "done"),
    ],
    InputMode.INSPECT: [
        ("j/k", "move"),
        ("h/l", "fold"),
        ("H/L/P", "panel"),
        ("⇥", "cycle"),
        ("y", "yank"),
        ("/", "find"),
        ("z", "zoom"),
        ("q", "back"),
    ],
    InputMode.INSPECT_SEARCH: [
        ("type", "query"),
        ("⏎", "next"),
        ("esc", "done"),
        ("q", "clear"),
    ],
    InputMode.COPY: [
        ("h/l", "choose"),
        ("⏎", "copy"),
        ("q", "cancel"),
    ],
}

KEY_GROUPS: list[tuple[str, list[tuple[str, str]]]] = [
    ("Navigation", [
        ("j / k", "Move down / up"),
        ("gg / G", "First / last"),
        ("H / L / P", "Headers / Response / Preview"),
    ]),
    ("Modes", [
        ("/", "Search requests"),
        ("f", "Filter by type"),
        ("Enter", "Inspect request"),
        ("c", "Copy menu"),
        ("q / Esc", "Back to normal"),
    ]),
    ("Requests", [
        ("dd", "Delete selected"),
        ("dr", "Clear all"),
        ("Ctrl+S", "Export HAR"),
    ]),
    ("Inspect", [
        ("Tab / S-Tab", "Cycle panels"),
        ("h / l", "Collapse / expand"),
        ("y", "Yank value / header"),
        ("yy / yp", "Yank JSON / path"),
        ("/ n N", "Find in panel"),
        ("Ctrl+D / U", "Scroll 10 lines"),
        ("z", "Full-width view"),
    ]),
    ("Filter", [
        ("h / l", "Move chip cursor"),
        ("Enter", "Toggle chip"),
        ("H / L", "Reorder chip"),
    ]),
    ("Misc", [
        ("?", "Toggle this help"),
    ]),
]
