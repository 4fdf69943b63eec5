"""
Tests for the Google Sheets client.
"""

import json

import httpx
import pytest

from adpulse.connectors.sheets.client import SheetsAPIError, SheetsClient, parse_csv

BASE = "https://docs.google.com/spreadsheets/d/abc"


def _client(handler) -> SheetsClient:
    return SheetsClient(transport=httpx.MockTransport(handler))


# ── URLs ──


def test_export_url_prefers_gid():
    client = SheetsClient()
    assert client.export_url("abc", "Ads", "42") == f"{BASE}/export?format=csv&gid=42"


def test_export_url_by_tab_name():
    client = SheetsClient()
    assert client.export_url("abc", "Swiggy Ads") == f"{BASE}/gviz/tq?tqx=out:csv&sheet=Swiggy%20Ads"


def test_export_url_first_tab():
    client = SheetsClient()
    assert client.export_url("abc") == f"{BASE}/export?format=csv"
    assert client.export_url("abc", "Sheet1") == f"{BASE}/export?format=csv"


# ── CSV ──


def test_parse_csv_skips_blank_lines():
    text = "Date,Spend\n2024-11-01,10\n,\n2024-11-02,\n"
    assert parse_csv(text) == [
        {"Date": "2024-11-01", "Spend": "10"},
        {"Date": "2024-11-02", "Spend": ""},
    ]


def test_parse_csv_short_and_long_rows():
    rows = parse_csv("Date,Spend\n2024-11-01\n2024-11-02,5,extra\n")
    assert rows == [
        {"Date": "2024-11-01", "Spend": ""},
        {"Date": "2024-11-02", "Spend": "5"},
    ]


def test_parse_csv_quoted_values():
    rows = parse_csv('Date,Spend\n2024-11-01,"₹1,200"\n')
    assert rows[0]["Spend"] == "₹1,200"


@pytest.mark.anyio
async def test_fetch_rows():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="Date,Spend\n2024-11-01,10\n")

    async with _client(handler) as client:
        rows = await client.fetch_rows("abc", gid="0")

    assert rows == [{"Date": "2024-11-01", "Spend": "10"}]
    assert seen == [f"{BASE}/export?format=csv&gid=0"]


@pytest.mark.anyio
async def test_fetch_falls_back_to_alternate_url():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        if request.url.path.endswith("/export"):
            return httpx.Response(400)
        return httpx.Response(200, text="Date\n2024-11-01\n")

    async with _client(handler) as client:
        text = await client.fetch_csv("abc", gid="3")

    assert text.startswith("Date")
    assert seen == ["/spreadsheets/d/abc/export", "/spreadsheets/d/abc/gviz/tq"]


@pytest.mark.anyio
async def test_fetch_not_accessible():
    async with _client(lambda request: httpx.Response(401)) as client:
        with pytest.raises(SheetsAPIError) as exc:
            await client.fetch_csv("abc")

    assert exc.value.status_code == 401
    assert "Sheet not accessible (401)" in str(exc.value)
    assert "Anyone with link" in str(exc.value)


@pytest.mark.anyio
async def test_network_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    async with _client(handler) as client:
        with pytest.raises(SheetsAPIError, match="Failed to fetch sheet"):
            await client.fetch_csv("abc")


# ── Visualization API ──


@pytest.mark.anyio
async def test_gviz_unwraps_envelope():
    payload = {"status": "ok", "table": {"cols": [{"label": "Date"}], "rows": []}}

    def handler(request):
        assert request.url.params["tq"] == "SELECT * LIMIT 0"
        assert request.url.params["gid"] == "0"
        assert request.url.params["headers"] == "1"
        body = f"/*O_o*/\ngoogle.visualization.Query.setResponse({json.dumps(payload)});"
        return httpx.Response(200, text=body)

    async with _client(handler) as client:
        assert await client.gviz("abc", "SELECT * LIMIT 0") == payload


@pytest.mark.anyio
async def test_gviz_rejects_unexpected_body():
    async with _client(lambda request: httpx.Response(200, text="<html>login</html>")) as client:
        with pytest.raises(SheetsAPIError, match="Invalid response format"):
            await client.gviz("abc", "SELECT A")


@pytest.mark.anyio
async def test_close_is_idempotent():
    client = _client(lambda request: httpx.Response(200, text="Date\n"))
    await client.fetch_csv("abc")
    await client.close()
    await client.close()
