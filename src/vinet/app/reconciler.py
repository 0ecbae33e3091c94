"""Request reconciler — capture events in, consistent Request records out.

// [LAW:single-enforcer] This is the only writer of request records derived
//   from the capture source, and the only owner of the attach/retry policy.
// [LAW:one-way-deps] Depends on Store and CaptureSource; nothing depends back.

Failures never propagate to callers: attach failures become status
messages and body-fetch failures return None.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from vinet.app.store import Store
from vinet.capture.events import (
    CaptureEvent,
    LoadingFailedEvent,
    LoadingFinishedEvent,
    RequestInitiatedEvent,
    ResponseHeadersEvent,
)
from vinet.capture.source import CaptureError, CaptureErrorKind, CaptureSource
from vinet.core.formatting import extract_name
from vinet.core.models import MessageLevel, Request, ResponseBody
from vinet.core.scheduler import Scheduler

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BASE_DELAY_MS = 1000
RETRY_MAX_DELAY_MS = 5000
REATTACH_DELAY_MS = 250

MSG_STARTED = "Network capture started. Navigate to any page to see requests."
MSG_RECONNECTING = "Reconnecting network capture..."
MSG_FAILED_PREFIX = "Failed to start network capture: "

_GUIDANCE: dict[CaptureErrorKind, str] = {
    CaptureErrorKind.EXCLUSIVE_CONFLICT: (
        "Another debugger is already attached to this tab. "
        "Close other DevTools or debugging clients."
    ),
    CaptureErrorKind.UNSUPPORTED_TARGET: (
        "Cannot attach to this type of page.\n\n"
        "Navigate to a regular website (e.g., github.com).\n"
        "Browser-internal pages (chrome://, edge://, about:) cannot be debugged.\n\n"
        "Once on a regular page, reload it to see network requests."
    ),
}


def retry_delay_ms(attempt: int) -> float:
    """Backoff before retry number attempt (1-based): 1s, 2s, 4s, capped at 5s."""
    return min(RETRY_BASE_DELAY_MS * 2 ** (attempt - 1), RETRY_MAX_DELAY_MS)


def retry_message(attempt: int) -> str:
    return f"Retrying network capture ({attempt}/{MAX_RETRIES})..."


def failure_message(exc: CaptureError) -> str:
    return MSG_FAILED_PREFIX + _GUIDANCE.get(exc.kind, exc.message or "Unknown error.")


def parse_body(raw: str | bytes) -> ResponseBody:
    """Decode a fetched body; JSON when it parses, raw text otherwise."""
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    if text.strip():
        try:
            return ResponseBody(text=text, value=json.loads(text), is_json=True)
        except ValueError:
            pass
    return ResponseBody(text=text, value=text, is_json=False)


class Reconciler:
    """Turns a possibly out-of-order, duplicated event stream into Request records."""

    def __init__(self, store: Store, source: CaptureSource, scheduler: Scheduler):
        self._store = store
        self._source = source
        self._scheduler = scheduler

        self._active = False
        self._attach_task: asyncio.Future | None = None
        self._retry_count = 0
        self._main_frame_id: str | None = None

        self._body_cache: dict[str, ResponseBody] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        # Bumped on every reset so fetches started before it do not repopulate the cache.
        self._generation = 0
        self._tasks: set[asyncio.Future] = set()

        # [LAW:dataflow-not-control-flow] Event dispatch as data.
        self._handlers: dict[type, Callable[[Any], None]] = {
            RequestInitiatedEvent: self._on_initiated,
            ResponseHeadersEvent: self._on_response_headers,
            LoadingFinishedEvent: self._on_finished,
            LoadingFailedEvent: self._on_failed,
        }

        source.on_event(self.handle_event)
        source.on_detach(self.handle_detach)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def main_frame_id(self) -> str | None:
        return self._main_frame_id

    # ─── Attachment ───────────────────────────────────────────────────

    async def ensure_capture_active(self) -> bool:
        """Attach if not attached. Concurrent callers share one attempt.

        Returns True once capture is live, False when attachment was given up.
        """
        if self._active:
            return True
        if self._attach_task is None or self._attach_task.done():
            self._attach_task = asyncio.ensure_future(self._attach_with_retry())
        return await asyncio.shield(self._attach_task)

    async def _attach_with_retry(self) -> bool:
        while True:
            try:
                await self._source.attach()
            except CaptureError as exc:
                if exc.kind is not CaptureErrorKind.ALREADY_ATTACHED:
                    if exc.kind is CaptureErrorKind.TRANSIENT and self._retry_count < MAX_RETRIES:
                        self._retry_count += 1
                        delay = retry_delay_ms(self._retry_count)
                        logger.warning(
                            "attach failed (%s); retry %d/%d in %.0f ms",
                            exc.message, self._retry_count, MAX_RETRIES, delay,
                        )
                        self._store.show_message(retry_message(self._retry_count), MessageLevel.INFO)
                        await self._sleep(delay)
                        continue
                    logger.error("attach failed after %d retries: %s", self._retry_count, exc.message)
                    self._store.show_message(failure_message(exc), MessageLevel.ERROR)
                    return False
            self._on_attached()
            return True

    def _on_attached(self) -> None:
        logger.info("network capture attached")
        self._active = True
        self._retry_count = 0
        self._store.clear_messages(MessageLevel.INFO, MessageLevel.ERROR)
        if not self._store.get_state().requests:
            self._store.show_message(MSG_STARTED, MessageLevel.SUCCESS)

    async def _sleep(self, delay_ms: float) -> None:
        fut = asyncio.get_running_loop().create_future()

        def wake() -> None:
            if not fut.done():
                fut.set_result(None)

        self._scheduler.call_later(delay_ms, wake)
        await fut

    def handle_detach(self, reason: str) -> None:
        """Connection lost: reset everything and reattach shortly."""
        logger.info("capture detached: %s", reason)
        self._active = False
        self._reset_caches()
        self._main_frame_id = None
        self._store.clear_requests()
        self._retry_count = 0
        self._store.show_message(MSG_RECONNECTING, MessageLevel.INFO, only_if_empty=True)
        self._scheduler.call_later(REATTACH_DELAY_MS, self._reattach)

    def _reattach(self) -> None:
        self._spawn(self.ensure_capture_active())

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Future:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def stop(self) -> None:
        self._active = False
        await self._source.detach()

    # ─── Events ───────────────────────────────────────────────────────

    def handle_event(self, event: CaptureEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug("ignoring unknown capture event %r", event)
            return
        handler(event)

    def _on_initiated(self, event: RequestInitiatedEvent) -> None:
        # Only a main-frame navigation clears state; subframe documents do not.
        if event.is_navigation and (
            self._main_frame_id is None or event.frame_id == self._main_frame_id
        ):
            self._main_frame_id = event.frame_id
            self._reset_caches()
            self._store.clear_requests()

        self._store.clear_messages(MessageLevel.SUCCESS, MessageLevel.INFO)
        self._store.add_request(
            Request(
                id=event.request_id,
                url=event.url,
                name=extract_name(event.url),
                method=event.method,
                resource_type=event.resource_type,
                timestamp_start=event.timestamp,
                request_headers=dict(event.headers),
                request_body=event.post_data,
                initiator=event.initiator,
                frame_id=event.frame_id,
                wall_time=event.wall_time,
            )
        )

    def _on_response_headers(self, event: ResponseHeadersEvent) -> None:
        self._store.update_request(
            event.request_id,
            {
                "status": event.status,
                "status_text": event.status_text,
                "response_headers": dict(event.headers),
            },
        )

    def _on_finished(self, event: LoadingFinishedEvent) -> None:
        self._store.update_request(
            event.request_id,
            lambda r: {
                "transferred_size": event.encoded_data_length,
                "duration": max(0.0, event.timestamp - r.timestamp_start),
            },
        )

    def _on_failed(self, event: LoadingFailedEvent) -> None:
        self._store.update_request(
            event.request_id,
            lambda r: {
                "status_text": event.error_text,
                "duration": max(0.0, event.timestamp - r.timestamp_start),
            },
        )

    # ─── Bodies ───────────────────────────────────────────────────────

    def _reset_caches(self) -> None:
        self._generation += 1
        self._body_cache.clear()
        self._inflight.clear()

    def cached_body(self, request_id: str) -> ResponseBody | None:
        return self._body_cache.get(request_id)

    async def fetch_body(self, request_id: str) -> ResponseBody | None:
        """Body for request_id, fetched at most once concurrently; None on failure."""
        cached = self._body_cache.get(request_id)
        if cached is not None:
            return cached
        task = self._inflight.get(request_id)
        if task is None:
            task = asyncio.ensure_future(self._load_body(request_id, self._generation))
            self._inflight[request_id] = task

            def forget(done: asyncio.Future, rid: str = request_id) -> None:
                if self._inflight.get(rid) is done:
                    del self._inflight[rid]

            task.add_done_callback(forget)
        return await asyncio.shield(task)

    async def _load_body(self, request_id: str, generation: int) -> ResponseBody | None:
        try:
            raw = await self._source.fetch_body(request_id)
        except CaptureError as exc:
            logger.warning("body fetch failed for %s: %s", request_id, exc.message)
            return None
        except Exception:
            logger.exception("unexpected body fetch error for %s", request_id)
            return None
        body = parse_body(raw)
        if generation == self._generation:
            self._body_cache[request_id] = body
        self._store.set_response_body(request_id, body)
        return body

    def request_body_load(self, request_id: str) -> None:
        """Fire-and-forget fetch used by views; the store update re-renders them."""
        self._spawn(self.fetch_body(request_id))
