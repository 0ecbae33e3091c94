"""Lifecycle events pushed by a capture source.

// [LAW:one-source-of-truth] The class IS the kind; there is no event_type string field.

Every event carries the producing request's id and a monotonic timestamp in
milliseconds on the capture source's clock.

This module is STABLE. Safe for `from` imports everywhere.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

from vinet.core.models import ResourceType


@dataclass(frozen=True)
class RequestInitiatedEvent:
    request_id: str
    timestamp: float
    url: str
    method: str
    resource_type: ResourceType
    frame_id: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    post_data: str | None = None
    initiator: str | None = None
    wall_time: float | None = None

    @property
    def is_navigation(self) -> bool:
        return self.resource_type is ResourceType.DOCUMENT


@dataclass(frozen=True)
class ResponseHeadersEvent:
    request_id: str
    timestamp: float
    status: int
    status_text: str
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadingFinishedEvent:
    request_id: str
    timestamp: float
    encoded_data_length: int = 0


@dataclass(frozen=True)
class LoadingFailedEvent:
    request_id: str
    timestamp: float
    error_text: str = ""


CaptureEvent = Union[
    RequestInitiatedEvent,
    ResponseHeadersEvent,
    LoadingFinishedEvent,
    LoadingFailedEvent,
]
