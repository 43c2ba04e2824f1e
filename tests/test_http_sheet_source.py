from __future__ import annotations

import json

import httpx
import pytest

from storebot.application.exceptions import InvalidDataError, SourceUnavailableError, TabNotFoundError
from storebot.infrastructure.sheets.http_sheet_source import HttpSheetSource


def _source(handler) -> HttpSheetSource:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpSheetSource(base_url="https://sheets.test/api", api_key="secret", timeout_seconds=1.0, client=client)


def test_read_posts_operation_and_normalizes_rows():
    """Test that reads send the read operation and normalize values to strings."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": [{"day": "Monday", "closed": True}, {"day": "Tuesday"}]})

    headers, rows = _source(handler).fetch_tab("s1", "Hours")

    assert seen["body"] == {"operation": "read", "storeId": "s1", "tabName": "Hours"}
    assert seen["auth"] == "Bearer secret"
    assert headers == ["day", "closed"]
    assert rows == [{"day": "Monday", "closed": "TRUE"}, {"day": "Tuesday", "closed": ""}]


def test_append_sends_row_data():
    """Test that appends send the row under data."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    _source(handler).append_row("s1", "Bookings", {"service": "Haircut"})

    assert seen["body"]["operation"] == "append"
    assert seen["body"]["data"] == {"service": "Haircut"}


@pytest.mark.parametrize(
    "status, body, error",
    [
        (404, {"error": "Tab not found"}, TabNotFoundError),
        (422, {"error": "bad row"}, InvalidDataError),
        (503, {}, SourceUnavailableError),
        (200, {"error": "quota exceeded"}, SourceUnavailableError),
    ],
)
def test_http_failures_map_to_error_kinds(status, body, error):
    """Test that HTTP failures map to sheet error kinds."""
    source = _source(lambda request: httpx.Response(status, json=body))
    with pytest.raises(error):
        source.fetch_tab("s1", "Hours")


def test_timeout_is_source_unavailable():
    """Test that a timeout is SourceUnavailable."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(SourceUnavailableError):
        _source(handler).fetch_tab("s1", "Hours")
