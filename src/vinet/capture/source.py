"""Boundary between the reconciler and whatever produces network events.

// [LAW:single-enforcer] Adapters translate their transport failures into
//   CaptureError here; nothing above this boundary sees transport exceptions.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Protocol

from vinet.capture.events import CaptureEvent


class CaptureErrorKind(Enum):
    ALREADY_ATTACHED = "already_attached"
    TRANSIENT = "transient"
    EXCLUSIVE_CONFLICT = "exclusive_conflict"
    UNSUPPORTED_TARGET = "unsupported_target"
    PERMANENT = "permanent"


class CaptureError(Exception):
    """A capture-source failure, classified for the retry policy."""

    def __init__(self, kind: CaptureErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value


def classify_error_text(text: str) -> CaptureErrorKind:
    """Classify a free-text failure reported by a debugging host."""
    if "already attached" in text and "Another debugger" not in text:
        return CaptureErrorKind.ALREADY_ATTACHED
    if "Another debugger" in text:
        return CaptureErrorKind.EXCLUSIVE_CONFLICT
    if "Cannot access" in text or "Cannot attach" in text:
        return CaptureErrorKind.UNSUPPORTED_TARGET
    return CaptureErrorKind.TRANSIENT


EventListener = Callable[[CaptureEvent], None]
DetachListener = Callable[[str], None]


class CaptureSource(Protocol):
    """What the reconciler needs from a capture provider."""

    async def attach(self) -> None:
        """Attach and enable network events.

        Raises CaptureError; ALREADY_ATTACHED means capture is already live.
        """

    async def detach(self) -> None: ...

    async def fetch_body(self, request_id: str) -> str | bytes:
        """Response body for request_id. Raises CaptureError on failure."""

    def on_event(self, fn: EventListener) -> None: ...

    def on_detach(self, fn: DetachListener) -> None: ...
