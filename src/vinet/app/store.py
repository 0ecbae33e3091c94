"""Central store — the single authoritative AppState.

// [LAW:one-source-of-truth] All request records, the expansion map and the
//   filter set live here. Collaborators read snapshots and write through
//   set_state() or the request methods below.
// [LAW:single-enforcer] _flush() is the only place state is replaced and the
//   only place selected_index is clamped.

Writes are queued and applied once per scheduler tick: every update queued
in the same tick is applied in order (last write wins per field), then
subscribers are notified exactly once.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any, Union

from vinet.core import json_tree
from vinet.core.fuzzy import FuzzyIndex
from vinet.core.models import (
    MAX_REQUESTS,
    AppState,
    JsonNode,
    MessageLevel,
    Request,
    ResponseBody,
    StatusMessage,
)
from vinet.core.scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

Partial = Mapping[str, Any]
Update = Union[Partial, Callable[[AppState], Union[Partial, None]]]
Listener = Callable[[AppState], None]

# [LAW:one-source-of-truth] Auto-clear delays per message level. Errors persist.
MESSAGE_TTL_MS: dict[MessageLevel, float] = {
    MessageLevel.SUCCESS: 3000,
    MessageLevel.INFO: 2000,
}


class Store:
    """Owner of AppState with batched, tick-coalesced notification."""

    def __init__(self, scheduler: Scheduler, initial: AppState | None = None):
        self._scheduler = scheduler
        self._state = initial or AppState()
        self._pending: list[Update] = []
        self._flush_handle: Handle | None = None
        self._listeners: list[Listener] = []
        self._message_seq = itertools.count(1)

        # Derived caches
        self._view_key: tuple | None = None
        self._view: tuple[Request, ...] = ()
        self._index_key: tuple | None = None
        self._index: FuzzyIndex | None = None
        self._index_requests: tuple[Request, ...] | None = None
        self._nodes_key: tuple | None = None
        self._nodes: tuple[JsonNode, ...] = ()

    # ─── Core contract ────────────────────────────────────────────────

    def get_state(self) -> AppState:
        return self._state

    def set_state(self, update: Update) -> None:
        """Queue a partial update (mapping) or an updater fn(state) -> partial."""
        self._pending.append(update)
        if self._flush_handle is None:
            self._flush_handle = self._scheduler.call_soon(self._flush)

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def unsubscribe() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return unsubscribe

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def _flush(self) -> None:
        self._flush_handle = None
        pending, self._pending = self._pending, []
        if not pending:
            return

        previous = self._state
        state = previous
        selection_given = False
        for update in pending:
            partial = update(state) if callable(update) else update
            if not partial:
                continue
            selection_given = selection_given or "selected_index" in partial
            state = replace(state, **partial)

        # A new query starts at the top unless the batch chose a row.
        if state.search_query != previous.search_query and not selection_given:
            state = replace(state, selected_index=0)

        self._state = replace(state, version=previous.version + 1)
        view = self.get_filtered_view()
        clamped = min(max(self._state.selected_index, 0), max(len(view) - 1, 0))
        if clamped != self._state.selected_index:
            self._state = replace(self._state, selected_index=clamped)

        snapshot = self._state
        for fn in list(self._listeners):
            fn(snapshot)

    # ─── Derived views ────────────────────────────────────────────────

    def _fuzzy_index(self, requests: tuple[Request, ...]) -> FuzzyIndex:
        # Rebuilt only when an indexed url or name changes, not per keystroke.
        if self._index is not None and self._index_requests is requests:
            return self._index
        key = tuple((r.url, r.name) for r in requests)
        if self._index is None or key != self._index_key:
            self._index = FuzzyIndex(key)
            self._index_key = key
        self._index_requests = requests
        return self._index

    def get_filtered_view(self, state: AppState | None = None) -> tuple[Request, ...]:
        """Requests after fuzzy search (ranked) then type filtering.

        Returns the same tuple object while requests, query and filter set
        are unchanged. Updaters pass the in-batch state they were given.
        """
        state = self._state if state is None else state
        requests = state.requests
        query = state.search_query
        types = state.filters.types
        key = self._view_key
        if key is not None and key[0] is requests and key[1] == query and key[2] == types:
            return self._view

        if query:
            hits = self._fuzzy_index(requests).search(query)
            view = tuple(requests[hit.position] for hit in hits)
        else:
            view = requests
        if types:
            view = tuple(r for r in view if r.resource_type in types)

        self._view_key = (requests, query, types)
        self._view = view
        return view

    def get_selected_request(self, state: AppState | None = None) -> Request | None:
        state = self._state if state is None else state
        view = self.get_filtered_view(state)
        if not view:
            return None
        return view[min(max(state.selected_index, 0), len(view) - 1)]

    def get_json_nodes(self, state: AppState | None = None) -> tuple[JsonNode, ...]:
        """Flattened JSON rows for the selected request's body, cached per (body, expansion map)."""
        state = self._state if state is None else state
        request = self.get_selected_request(state)
        body = request.response_body if request is not None else None
        expanded = state.json_expanded
        key = self._nodes_key
        if key is not None and key[0] is body and key[1] is expanded:
            return self._nodes
        if body is None or not body.is_json:
            nodes: tuple[JsonNode, ...] = ()
        else:
            nodes = tuple(json_tree.FlatTree(body.value, expanded))
        self._nodes_key = (body, expanded)
        self._nodes = nodes
        return nodes

    def snapshot(self) -> tuple[Request, ...]:
        """Read-only request collection for exporters."""
        return self._state.requests

    # ─── Request mutations ────────────────────────────────────────────

    def add_request(self, request: Request) -> None:
        """Append request, evicting the oldest beyond MAX_REQUESTS.

        A duplicate id replaces the live record in place (redirects reuse ids).
        """

        def apply(state: AppState) -> Partial:
            for i, existing in enumerate(state.requests):
                if existing.id == request.id:
                    updated = replace(request, version=existing.version + 1)
                    return {"requests": state.requests[:i] + (updated,) + state.requests[i + 1:]}
            requests = state.requests + (request,)
            overflow = len(requests) - MAX_REQUESTS
            if overflow <= 0:
                return {"requests": requests}
            logger.debug("evicting %d oldest requests", overflow)
            return {
                "requests": requests[overflow:],
                "selected_index": max(0, state.selected_index - overflow),
            }

        self.set_state(apply)

    def update_request(
        self,
        request_id: str,
        changes: Partial | Callable[[Request], Partial],
    ) -> None:
        """Copy-on-write update of one record; unknown ids are ignored.

        changes may be a function of the current record, evaluated at flush time.
        """

        def apply(state: AppState) -> Partial | None:
            for i, existing in enumerate(state.requests):
                if existing.id == request_id:
                    fields = changes(existing) if callable(changes) else changes
                    updated = replace(existing, version=existing.version + 1, **fields)
                    return {"requests": state.requests[:i] + (updated,) + state.requests[i + 1:]}
            return None

        self.set_state(apply)

    def set_response_body(self, request_id: str, body: ResponseBody) -> None:
        self.update_request(request_id, {"response_body": body})

    def delete_request(self, request_id: str) -> None:
        def apply(state: AppState) -> Partial | None:
            kept = tuple(r for r in state.requests if r.id != request_id)
            if len(kept) == len(state.requests):
                return None
            return {"requests": kept}

        self.set_state(apply)

    def clear_requests(self) -> None:
        self.set_state({"requests": (), "selected_index": 0})

    # ─── Status messages ──────────────────────────────────────────────

    def show_message(self, text: str, level: MessageLevel, *, only_if_empty: bool = False) -> None:
        """Post a status message.

        A visible error is only replaced by another error. Success and info
        messages clear themselves after MESSAGE_TTL_MS.
        """
        message = StatusMessage(text, level, next(self._message_seq))

        def apply(state: AppState) -> Partial | None:
            current = state.message
            if current is not None and only_if_empty:
                return None
            if current is not None and current.level is MessageLevel.ERROR and level is not MessageLevel.ERROR:
                return None
            return {"message": message}

        self.set_state(apply)
        ttl = MESSAGE_TTL_MS.get(level)
        if ttl is not None:
            self._scheduler.call_later(ttl, lambda: self._expire_message(message.seq))

    def _expire_message(self, seq: int) -> None:
        self.set_state(
            lambda s: {"message": None} if s.message is not None and s.message.seq == seq else None
        )

    def clear_messages(self, *levels: MessageLevel) -> None:
        """Clear the visible message if its level is one of levels."""
        wanted = frozenset(levels)
        self.set_state(
            lambda s: {"message": None} if s.message is not None and s.message.level in wanted else None
        )
