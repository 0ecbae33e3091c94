"""Resource-type filter chips: cursor, toggling, reordering, persistence.

// [LAW:one-source-of-truth] The selected type set and chip order live in
//   AppState.filters; this module only computes the next FilterState.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from vinet.app.store import Store
from vinet.core.models import AppState, FilterState, ResourceType

logger = logging.getLogger(__name__)

ALL = "all"

PREF_FILTERS = "filters"
PREF_FILTER_ORDER = "filter_order"


@dataclass(frozen=True)
class FilterOption:
    id: str
    label: str
    types: frozenset[ResourceType]


# [LAW:one-source-of-truth] Chip catalog. "fetch/xhr" toggles both types at once.
FILTER_OPTIONS: dict[str, FilterOption] = {
    o.id: o
    for o in (
        FilterOption("fetch/xhr", "Fetch/XHR", frozenset({ResourceType.FETCH, ResourceType.XHR})),
        FilterOption("document", "Doc", frozenset({ResourceType.DOCUMENT})),
        FilterOption("stylesheet", "CSS", frozenset({ResourceType.STYLESHEET})),
        FilterOption("script", "JS", frozenset({ResourceType.SCRIPT})),
        FilterOption("font", "Font", frozenset({ResourceType.FONT})),
        FilterOption("image", "Img", frozenset({ResourceType.IMAGE})),
        FilterOption("media", "Media", frozenset({ResourceType.MEDIA})),
        FilterOption("manifest", "Manifest", frozenset({ResourceType.MANIFEST})),
        FilterOption("websocket", "Socket", frozenset({ResourceType.WEBSOCKET})),
        FilterOption("wasm", "Wasm", frozenset({ResourceType.WASM})),
        FilterOption("other", "Other", frozenset({ResourceType.OTHER})),
    )
}

DEFAULT_ORDER: tuple[str, ...] = tuple(FILTER_OPTIONS)


class Prefs(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


def chips(state: AppState) -> tuple[str, ...]:
    """Display order of chips; "all" is pinned first."""
    return (ALL,) + (state.filters.order or DEFAULT_ORDER)


def chip_label(chip: str) -> str:
    return "All" if chip == ALL else FILTER_OPTIONS[chip].label


def chip_active(filters: FilterState, chip: str) -> bool:
    if chip == ALL:
        return not filters.types
    return FILTER_OPTIONS[chip].types <= filters.types


def toggle_chip(filters: FilterState, chip: str) -> FilterState:
    """Next FilterState after toggling chip."""
    if chip == ALL:
        # Turning "All" on clears the set; it cannot be turned off directly.
        return FilterState(frozenset(), filters.order)
    option_types = FILTER_OPTIONS[chip].types
    if chip_active(filters, chip):
        types = filters.types - option_types
    else:
        types = filters.types | option_types
    return FilterState(frozenset(types), filters.order)


def normalize_order(raw: Any) -> tuple[str, ...]:
    """Validate a stored chip order; unknown ids dropped, missing ids appended."""
    if not isinstance(raw, (list, tuple)):
        return DEFAULT_ORDER
    seen: list[str] = []
    for item in raw:
        if item in FILTER_OPTIONS and item not in seen:
            seen.append(item)
    seen.extend(chip for chip in DEFAULT_ORDER if chip not in seen)
    return tuple(seen)


def normalize_types(raw: Any) -> frozenset[ResourceType]:
    if not isinstance(raw, (list, tuple)):
        return frozenset()
    valid = {t.value: t for t in ResourceType}
    return frozenset(valid[item] for item in raw if item in valid)


class FilterManager:
    """FILTER-mode operations over the store's FilterState."""

    def __init__(self, store: Store, prefs: Prefs):
        self._store = store
        self._prefs = prefs

    def load(self) -> None:
        """Restore persisted filters; absent or invalid data falls back to defaults."""
        types = normalize_types(self._prefs.get(PREF_FILTERS, []))
        order = normalize_order(self._prefs.get(PREF_FILTER_ORDER, list(DEFAULT_ORDER)))
        logger.debug("restored filters %s order %s", sorted(t.value for t in types), order)
        self._store.set_state({"filters": FilterState(types, order)})

    def _save(self, filters: FilterState) -> None:
        self._prefs.set(PREF_FILTERS, sorted(t.value for t in filters.types))
        self._prefs.set(PREF_FILTER_ORDER, list(filters.order or DEFAULT_ORDER))

    def move(self, delta: int) -> None:
        def apply(state: AppState):
            last = len(chips(state)) - 1
            return {"filter_cursor": min(max(state.filter_cursor + delta, 0), last)}

        self._store.set_state(apply)

    def toggle_selected(self) -> None:
        def apply(state: AppState):
            chip = chips(state)[state.filter_cursor]
            filters = toggle_chip(state.filters, chip)
            self._save(filters)
            return {"filters": filters}

        self._store.set_state(apply)

    def reorder(self, delta: int) -> None:
        """Swap the chip under the cursor with its neighbour; "all" never moves."""

        def apply(state: AppState):
            order = list(state.filters.order or DEFAULT_ORDER)
            # cursor 0 is "all"; order index is cursor - 1
            src = state.filter_cursor - 1
            dst = src + delta
            if src < 0 or dst < 0 or dst >= len(order):
                return None
            order[src], order[dst] = order[dst], order[src]
            filters = FilterState(state.filters.types, tuple(order))
            self._save(filters)
            return {"filters": filters, "filter_cursor": dst + 1}

        self._store.set_state(apply)
