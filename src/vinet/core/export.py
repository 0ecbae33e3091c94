"""Export of a request snapshot as JSON or HAR 1.2.

The store hands out a read-only tuple of Request records; this module only
converts and writes. Files are written atomically (temp file + rename).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from vinet.core.formatting import status_text
from vinet.core.models import Request

logger = logging.getLogger(__name__)

CREATOR_NAME = "vinet"
CREATOR_VERSION = "0.1.0"


# ─── Converters ───────────────────────────────────────────────────────────────


def request_to_dict(request: Request) -> dict:
    body = request.response_body
    return {
        "id": request.id,
        "url": request.url,
        "name": request.name,
        "method": request.method,
        "type": request.resource_type.value,
        "status": request.status,
        "statusText": request.status_text,
        "timestamp": request.timestamp_start,
        "duration": request.duration,
        "size": request.transferred_size,
        "requestHeaders": dict(request.request_headers),
        "responseHeaders": dict(request.response_headers),
        "requestBody": request.request_body,
        "responseBody": None if body is None else body.value,
        "initiator": request.initiator,
    }


def to_json(requests: Sequence[Request]) -> str:
    return json.dumps([request_to_dict(r) for r in requests], indent=2, ensure_ascii=False)


def _har_headers(headers) -> list[dict]:
    return [{"name": k, "value": v} for k, v in headers.items()]


def build_har_request(request: Request) -> dict:
    """HAR request entry: method, url, headers, postData when a body was sent."""
    entry = {
        "method": request.method,
        "url": request.url,
        "httpVersion": "HTTP/1.1",
        "headers": _har_headers(request.request_headers),
        "queryString": [],
        "cookies": [],
        "headersSize": -1,
        "bodySize": len(request.request_body.encode("utf-8")) if request.request_body else 0,
    }
    if request.request_body:
        mime = next(
            (v for k, v in request.request_headers.items() if k.lower() == "content-type"),
            "text/plain",
        )
        entry["postData"] = {"mimeType": mime, "text": request.request_body}
    return entry


def build_har_response(request: Request) -> dict:
    body = request.response_body
    text = "" if body is None else body.text
    return {
        "status": request.status,
        "statusText": status_text(request),
        "httpVersion": "HTTP/1.1",
        "headers": _har_headers(request.response_headers),
        "cookies": [],
        "content": {
            "size": request.transferred_size,
            "mimeType": request.mime_type or "text/plain",
            "text": text,
        },
        "redirectURL": "",
        "headersSize": -1,
        "bodySize": request.transferred_size,
    }


def _started(request: Request) -> str:
    seconds = request.wall_time if request.wall_time is not None else request.timestamp_start / 1000.0
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def build_har_entry(request: Request) -> dict:
    return {
        "startedDateTime": _started(request),
        "time": request.duration,
        "request": build_har_request(request),
        "response": build_har_response(request),
        "cache": {},
        "timings": {"send": 0, "wait": request.duration, "receive": 0},
    }


def to_har(requests: Sequence[Request]) -> dict:
    return {
        "log": {
            "version": "1.2",
            "creator": {"name": CREATOR_NAME, "version": CREATOR_VERSION},
            "entries": [build_har_entry(r) for r in requests],
        }
    }


# ─── Writer ───────────────────────────────────────────────────────────────────


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def export_requests(requests: Sequence[Request], directory: Path, fmt: str = "har") -> Path:
    """Write requests to directory as network-requests-<epoch-ms>.<fmt>; return the path."""
    stamp = int(time.time() * 1000)
    path = Path(directory) / f"network-requests-{stamp}.{fmt}"
    text = json.dumps(to_har(requests), indent=2, ensure_ascii=False) if fmt == "har" else to_json(requests)
    _atomic_write(path, text + "\n")
    logger.info("exported %d requests to %s", len(requests), path)
    return path
