"""Text formatting for requests: display names, sizes, status text, copy payloads.

Pure functions. No state, no I/O.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from urllib.parse import urlsplit

from vinet.core.models import Request

# ─── Names and sizes ──────────────────────────────────────────────────────────


def extract_name(url: str) -> str:
    """Short display name for a URL.

    Last path segment (+ query) when it looks like a file or a query is present,
    otherwise the last two segments, otherwise the hostname.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    segments = [s for s in parts.path.split("/") if s]
    query = f"?{parts.query}" if parts.query else ""
    if segments:
        last = segments[-1]
        if "." in last or query:
            return last + query
        if len(segments) > 1:
            return "/".join(segments[-2:])
        return last
    return parts.hostname or url


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def format_duration(ms: float) -> str:
    if ms <= 0:
        return "-"
    if ms < 1000:
        return f"{ms:.0f} ms"
    return f"{ms / 1000:.2f} s"


# [LAW:one-source-of-truth] Reason phrases used when the source omits statusText.
STATUS_TEXTS: dict[int, str] = {
    200: "OK",
    201: "Created",
    204: "No Content",
    301: "Moved Permanently",
    302: "Found",
    304: "Not Modified",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def status_text(request: Request) -> str:
    return request.status_text or STATUS_TEXTS.get(request.status, "")


def status_label(request: Request) -> str:
    return str(request.status) if request.status > 0 else "Pending"


def status_class(status: int) -> str:
    """Style bucket for a status code: "2xx", "4xx", ... or "pending"."""
    return f"{status // 100}xx" if status > 0 else "pending"


# ─── Copy payloads ────────────────────────────────────────────────────────────


def _shell_quote(text: str) -> str:
    return text.replace("'", "\\'")


def as_curl(request: Request) -> str:
    curl = f"curl '{request.url}'"
    if request.method != "GET":
        curl += f" -X {request.method}"
    for key, value in request.request_headers.items():
        curl += f" \\\n  -H '{key}: {value}'"
    if request.request_body:
        curl += f" \\\n  --data-raw '{_shell_quote(request.request_body)}'"
    curl += " \\\n  --compressed"
    return curl


def _headers_json(headers: Mapping[str, str]) -> str:
    return json.dumps(dict(headers), indent=2, ensure_ascii=False)


def response_text(request: Request) -> str:
    """Body text for copy/display: pretty JSON when parsed, else raw text."""
    body = request.response_body
    if body is None:
        return ""
    if body.is_json:
        return json.dumps(body.value, indent=2, ensure_ascii=False)
    return body.text


# [LAW:dataflow-not-control-flow] Copy menu items as data: (id, label, formatter).
COPY_ITEMS: tuple[tuple[str, str, Callable[[Request], str]], ...] = (
    ("curl", "Copy as cURL", as_curl),
    ("url", "Copy URL", lambda r: r.url),
    ("request-headers", "Copy Request Headers", lambda r: _headers_json(r.request_headers)),
    ("response-headers", "Copy Response Headers", lambda r: _headers_json(r.response_headers)),
    ("response", "Copy Response Body", response_text),
)
