"""Test harness for vinet.

Re-exports all public API for convenient imports:
    from tests.harness import FakeCaptureSource, make_request, settle, ...
"""

from tests.harness.fakes import FakeCaptureSource, transient
from tests.harness.builders import (
    make_request,
    make_requests,
    initiated,
    navigation,
    response_headers,
    finished,
    failed,
)
from tests.harness.clock import settle, advance
from tests.harness.keyboard import Keyboard
from tests.harness.app_runner import run_app
from tests.harness.interactions import (
    press_and_settle,
    press_sequence,
    emit_and_settle,
)
from tests.harness.content import widget_text

__all__ = [
    "FakeCaptureSource",
    "transient",
    "make_request",
    "make_requests",
    "initiated",
    "navigation",
    "response_headers",
    "finished",
    "failed",
    "settle",
    "advance",
    "Keyboard",
    "run_app",
    "press_and_settle",
    "press_sequence",
    "emit_and_settle",
    "widget_text",
]
