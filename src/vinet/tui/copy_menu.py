"""COPY mode menu: pick a payload for the selected request."""

from __future__ import annotations

from dataclasses import dataclass

from vinet.app.store import Store
from vinet.core.formatting import COPY_ITEMS
from vinet.core.models import AppState


@dataclass(frozen=True)
class CopyResult:
    label: str
    text: str


class CopyMenu:
    def __init__(self, store: Store):
        self._store = store

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(label for _, label, _ in COPY_ITEMS)

    def render(self, state: AppState) -> list[tuple[str, bool]]:
        return [(label, i == state.copy_index) for i, label in enumerate(self.labels)]

    def move(self, delta: int) -> None:
        count = len(COPY_ITEMS)
        self._store.set_state(lambda s: {"copy_index": (s.copy_index + delta) % count})

    def execute(self, state: AppState) -> CopyResult | None:
        """Payload of the highlighted item for the selected request, or None if nothing is selected."""
        request = self._store.get_selected_request(state)
        if request is None:
            return None
        _, label, formatter = COPY_ITEMS[state.copy_index % len(COPY_ITEMS)]
        return CopyResult(label, formatter(request))
