"""Tests for request formatting: names, sizes, durations, copy payloads."""

import json

import pytest

from tests.harness import make_request
from vinet.app.reconciler import parse_body
from vinet.core import formatting
from vinet.core.formatting import (
    as_curl,
    extract_name,
    format_duration,
    format_size,
    response_text,
    status_class,
    status_label,
    status_text,
)


@pytest.mark.parametrize(
    "url, name",
    [
        ("https://example.com/static/app.js", "app.js"),
        ("https://example.com/api/users?page=2", "users?page=2"),
        ("https://example.com/api/v1/users", "v1/users"),
        ("https://example.com/users", "users"),
        ("https://example.com/", "example.com"),
        ("https://example.com", "example.com"),
        ("not a url", "not a url"),
        ("data:image/png;base64,AAAA", "data:image/png;base64,AAAA"),
    ],
)
def test_extract_name(url, name):
    assert extract_name(url) == name


@pytest.mark.parametrize(
    "size, text",
    [(0, "0 B"), (512, "512 B"), (2048, "2.0 KB"), (1536, "1.5 KB"), (3 * 1024 * 1024, "3.0 MB")],
)
def test_format_size(size, text):
    assert format_size(size) == text


@pytest.mark.parametrize("ms, text", [(0, "-"), (-5, "-"), (250.4, "250 ms"), (1500, "1.50 s")])
def test_format_duration(ms, text):
    assert format_duration(ms) == text


def test_status_helpers():
    pending = make_request()
    assert status_label(pending) == "Pending"
    ok = make_request(status=200, status_text="")
    assert status_label(ok) == "200"
    assert status_text(ok) == "OK"
    assert status_text(make_request(status=418, status_text="")) == ""
    assert status_class(0) == "pending"
    assert status_class(503) == "5xx"


def test_curl_get():
    request = make_request(request_headers={"Accept": "application/json"})
    assert as_curl(request) == (
        "curl 'https://example.com/api/users' \\\n"
        "  -H 'Accept: application/json' \\\n"
        "  --compressed"
    )


def test_curl_post_escapes_body_quotes():
    request = make_request(method="POST", request_body="it's")
    curl = as_curl(request)
    assert curl.startswith("curl 'https://example.com/api/users' -X POST")
    assert "--data-raw 'it\\'s'" in curl


def test_response_text_pretty_prints_json():
    request = make_request(response_body=parse_body('{"a":1}'))
    assert response_text(request) == json.dumps({"a": 1}, indent=2)


def test_response_text_raw_and_missing():
    assert response_text(make_request(response_body=parse_body("<p>hi</p>"))) == "<p>hi</p>"
    assert response_text(make_request()) == ""


def test_copy_items_order():
    assert [item_id for item_id, _, _ in formatting.COPY_ITEMS] == [
        "curl", "url", "request-headers", "response-headers", "response",
    ]


def test_copy_headers_as_json():
    request = make_request(response_headers={"Content-Type": "text/plain"})
    by_id = {item_id: fn for item_id, _, fn in formatting.COPY_ITEMS}
    assert json.loads(by_id["response-headers"](request)) == {"Content-Type": "text/plain"}
    assert json.loads(by_id["request-headers"](request)) == {}
