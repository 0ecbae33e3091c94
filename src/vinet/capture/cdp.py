"""Chrome DevTools Protocol capture source over a websocket.

Talks to a browser started with --remote-debugging-port. Target discovery
uses the HTTP /json endpoint; events arrive on the target's websocket.

// [LAW:single-enforcer] parse_cdp_event is the sole CDP event validation boundary.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from vinet.capture.events import (
    CaptureEvent,
    LoadingFailedEvent,
    LoadingFinishedEvent,
    RequestInitiatedEvent,
    ResponseHeadersEvent,
)
from vinet.capture.source import (
    CaptureError,
    CaptureErrorKind,
    DetachListener,
    EventListener,
    classify_error_text,
)
from vinet.core.models import ResourceType

logger = logging.getLogger(__name__)

DEFAULT_CDP_URL = "http://127.0.0.1:9222"

_UNSUPPORTED_SCHEMES = ("chrome://", "chrome-extension://", "edge://", "about:", "devtools://")


# ─── Event parsing ────────────────────────────────────────────────────────────


def _headers(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {str(k): str(v) for k, v in raw.items()}


def _ms(params: dict) -> float:
    # CDP MonotonicTime is in seconds
    return float(params.get("timestamp", 0.0)) * 1000.0


def _request_will_be_sent(params: dict) -> RequestInitiatedEvent:
    request = params.get("request") or {}
    initiator = params.get("initiator") or {}
    return RequestInitiatedEvent(
        request_id=str(params["requestId"]),
        timestamp=_ms(params),
        url=str(request.get("url", "")),
        method=str(request.get("method", "GET")),
        resource_type=ResourceType.from_capture(params.get("type")),
        frame_id=params.get("frameId"),
        headers=_headers(request.get("headers")),
        post_data=request.get("postData"),
        initiator=initiator.get("url"),
        wall_time=params.get("wallTime"),
    )


def _response_received(params: dict) -> ResponseHeadersEvent:
    response = params.get("response") or {}
    return ResponseHeadersEvent(
        request_id=str(params["requestId"]),
        timestamp=_ms(params),
        status=int(response.get("status", 0)),
        status_text=str(response.get("statusText", "")),
        headers=_headers(response.get("headers")),
    )


def _loading_finished(params: dict) -> LoadingFinishedEvent:
    return LoadingFinishedEvent(
        request_id=str(params["requestId"]),
        timestamp=_ms(params),
        encoded_data_length=int(params.get("encodedDataLength", 0)),
    )


def _loading_failed(params: dict) -> LoadingFailedEvent:
    return LoadingFailedEvent(
        request_id=str(params["requestId"]),
        timestamp=_ms(params),
        error_text=str(params.get("errorText", "")),
    )


# [LAW:dataflow-not-control-flow] CDP method → parser.
_EVENT_PARSERS: dict[str, Callable[[dict], CaptureEvent]] = {
    "Network.requestWillBeSent": _request_will_be_sent,
    "Network.responseReceived": _response_received,
    "Network.loadingFinished": _loading_finished,
    "Network.loadingFailed": _loading_failed,
}


def parse_cdp_event(message: dict) -> CaptureEvent | None:
    """Convert one CDP event message to a CaptureEvent, or None if not a network lifecycle event."""
    parser = _EVENT_PARSERS.get(message.get("method", ""))
    if parser is None:
        return None
    params = message.get("params") or {}
    if "requestId" not in params:
        logger.debug("dropping %s without requestId", message.get("method"))
        return None
    return parser(params)


def select_target(targets: list[dict], wanted: str | None) -> dict:
    """Pick the page target to attach to.

    wanted matches a target id exactly or a substring of its URL; None picks
    the first page.
    """
    pages = [t for t in targets if t.get("type") == "page"]
    if wanted:
        pages = [t for t in pages if t.get("id") == wanted or wanted in str(t.get("url", ""))]
    if not pages:
        raise CaptureError(CaptureErrorKind.TRANSIENT, "No matching page target found")
    target = pages[0]
    url = str(target.get("url", ""))
    if url.startswith(_UNSUPPORTED_SCHEMES):
        raise CaptureError(CaptureErrorKind.UNSUPPORTED_TARGET, f"Cannot attach to {url}")
    if not target.get("webSocketDebuggerUrl"):
        # Chrome omits the websocket URL while another client holds the target.
        raise CaptureError(
            CaptureErrorKind.EXCLUSIVE_CONFLICT,
            "Another debugger is already attached to the target",
        )
    return target


# ─── Websocket client ─────────────────────────────────────────────────────────


class CdpClient:
    """Small CDP websocket client to send commands and receive events."""

    def __init__(self, session: aiohttp.ClientSession):
        self._session = session
        self.ws: aiohttp.ClientWebSocketResponse | None = None
        self._id = 0
        self._pending: dict[int, asyncio.Future] = {}
        self._reader_task: asyncio.Task | None = None
        self.on_message: Callable[[dict], None] | None = None
        self.on_close: Callable[[str], None] | None = None

    @property
    def connected(self) -> bool:
        return self.ws is not None and not self.ws.closed

    async def connect(self, ws_url: str) -> None:
        self.ws = await self._session.ws_connect(ws_url, heartbeat=30, max_msg_size=0)
        self._reader_task = asyncio.create_task(self._reader())

    async def _reader(self) -> None:
        assert self.ws is not None
        reason = "connection closed"
        try:
            async for msg in self.ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(json.loads(msg.data))
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    reason = f"websocket error: {self.ws.exception()}"
                    break
        finally:
            for fut in self._pending.values():
                if not fut.done():
                    fut.set_exception(CaptureError(CaptureErrorKind.TRANSIENT, reason))
            self._pending.clear()
            if self.on_close is not None:
                self.on_close(reason)

    def _dispatch(self, data: dict) -> None:
        msg_id = data.get("id")
        if msg_id is not None and msg_id in self._pending:
            fut = self._pending.pop(msg_id)
            if not fut.done():
                fut.set_result(data)
            return
        if "method" in data and self.on_message is not None:
            self.on_message(data)

    async def send(self, method: str, params: dict | None = None) -> dict:
        """Send a command and return its result; CDP errors raise CaptureError."""
        if not self.connected:
            raise CaptureError(CaptureErrorKind.TRANSIENT, "CDP websocket not connected")
        self._id += 1
        payload: dict[str, Any] = {"id": self._id, "method": method}
        if params:
            payload["params"] = params
        fut = asyncio.get_running_loop().create_future()
        self._pending[self._id] = fut
        try:
            await self.ws.send_str(json.dumps(payload))
        except (aiohttp.ClientError, ConnectionError) as exc:
            self._pending.pop(self._id, None)
            raise CaptureError(CaptureErrorKind.TRANSIENT, f"CDP send failed: {exc}") from exc
        reply = await fut
        if "error" in reply:
            text = str(reply["error"].get("message", "CDP error"))
            raise CaptureError(classify_error_text(text), text)
        return reply.get("result") or {}

    async def close(self) -> None:
        self.on_close = None
        if self.ws is not None and not self.ws.closed:
            await self.ws.close()
        if self._reader_task is not None:
            await asyncio.gather(self._reader_task, return_exceptions=True)


# ─── Capture source ───────────────────────────────────────────────────────────


class CdpCaptureSource:
    """CaptureSource backed by a Chrome DevTools endpoint."""

    def __init__(self, cdp_url: str = DEFAULT_CDP_URL, target: str | None = None):
        self._cdp_url = cdp_url.rstrip("/")
        self._target = target
        self._session: aiohttp.ClientSession | None = None
        self._client: CdpClient | None = None
        self._event_listeners: list[EventListener] = []
        self._detach_listeners: list[DetachListener] = []

    def on_event(self, fn: EventListener) -> None:
        self._event_listeners.append(fn)

    def on_detach(self, fn: DetachListener) -> None:
        self._detach_listeners.append(fn)

    async def _list_targets(self, session: aiohttp.ClientSession) -> list[dict]:
        try:
            async with session.get(f"{self._cdp_url}/json", timeout=aiohttp.ClientTimeout(total=5)) as r:
                r.raise_for_status()
                return await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise CaptureError(
                CaptureErrorKind.TRANSIENT, f"DevTools endpoint {self._cdp_url} unreachable: {exc}"
            ) from exc

    async def attach(self) -> None:
        if self._client is not None and self._client.connected:
            raise CaptureError(CaptureErrorKind.ALREADY_ATTACHED, "already attached")
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        target = select_target(await self._list_targets(self._session), self._target)
        logger.info("attaching to %s (%s)", target.get("url"), target.get("id"))

        client = CdpClient(self._session)
        try:
            await client.connect(target["webSocketDebuggerUrl"])
        except aiohttp.ClientError as exc:
            raise CaptureError(CaptureErrorKind.TRANSIENT, f"Cannot connect: {exc}") from exc
        client.on_message = self._on_message
        client.on_close = self._on_close
        self._client = client
        try:
            await client.send("Network.enable")
        except CaptureError:
            self._client = None
            await client.close()
            raise

    async def detach(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.close()
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch_body(self, request_id: str) -> str | bytes:
        if self._client is None:
            raise CaptureError(CaptureErrorKind.TRANSIENT, "not attached")
        result = await self._client.send("Network.getResponseBody", {"requestId": request_id})
        body = result.get("body", "")
        if result.get("base64Encoded"):
            try:
                return base64.b64decode(body)
            except binascii.Error as exc:
                raise CaptureError(CaptureErrorKind.PERMANENT, f"undecodable body: {exc}") from exc
        return body

    def _on_message(self, message: dict) -> None:
        if message.get("method") == "Inspector.detached":
            reason = (message.get("params") or {}).get("reason", "detached")
            self._notify_detach(str(reason))
            return
        event = parse_cdp_event(message)
        if event is None:
            return
        for fn in list(self._event_listeners):
            fn(event)

    def _on_close(self, reason: str) -> None:
        self._notify_detach(reason)

    def _notify_detach(self, reason: str) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        # One notification per connection, whichever of detached/close comes first.
        client.on_close = None
        if client.connected:
            asyncio.ensure_future(client.close())
        logger.info("CDP target detached: %s", reason)
        for fn in list(self._detach_listeners):
            fn(reason)
