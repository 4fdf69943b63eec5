"""AdPulse — Google Sheets Client.

Fetches published sheet tabs as CSV and runs Visualization API (gviz)
queries. There are no retries: a failed fetch fails that source's sync and
the user re-syncs by hand.
"""

import csv
import io
import json
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from adpulse.config import settings
from adpulse.core.logging import get_logger

logger = get_logger("sheets.client")

RawRow = Dict[str, str]

_GVIZ_ENVELOPE = re.compile(
    r"google\.visualization\.Query\.setResponse\(([\s\S]*)\);?\s*$"
)


class SheetsAPIError(Exception):
    """Raised when a sheet can't be fetched or read."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


def parse_csv(text: str) -> List[RawRow]:
    """Parse CSV text into header-keyed rows. Blank lines are skipped."""
    reader = csv.DictReader(io.StringIO(text))
    rows: List[RawRow] = []
    for record in reader:
        # Cells beyond the header row land under the None key
        record.pop(None, None)  # type: ignore[arg-type]
        if not any((v or "").strip() for v in record.values()):
            continue
        rows.append({k: (v if v is not None else "") for k, v in record.items()})
    return rows


class SheetsClient:
    """Async HTTP client for published Google Sheets."""

    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = (base_url or settings.sheets_base_url).rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.sheets_timeout,
                headers={"User-Agent": settings.sheets_user_agent},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "SheetsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── URLs ──

    def _sheet_url(self, sheet_id: str) -> str:
        return f"{self.base_url}/spreadsheets/d/{sheet_id}"

    def export_url(
        self, sheet_id: str, tab_name: str | None = None, gid: str | None = None
    ) -> str:
        """CSV export URL: by grid id, else by tab name, else the first tab."""
        if gid:
            return f"{self._sheet_url(sheet_id)}/export?format=csv&gid={gid}"
        if tab_name and tab_name != "Sheet1":
            return f"{self._sheet_url(sheet_id)}/gviz/tq?tqx=out:csv&sheet={quote(tab_name)}"
        return f"{self._sheet_url(sheet_id)}/export?format=csv"

    def alternate_export_url(self, sheet_id: str, gid: str | None = None) -> str:
        url = f"{self._sheet_url(sheet_id)}/gviz/tq?tqx=out:csv"
        return f"{url}&gid={gid}" if gid else url

    # ── CSV ──

    async def fetch_csv(
        self, sheet_id: str, tab_name: str | None = None, gid: str | None = None
    ) -> str:
        """Download a tab as CSV text, trying the gviz CSV URL once on failure."""
        client = await self._get_client()
        url = self.export_url(sheet_id, tab_name, gid)
        logger.info(f"Fetching sheet CSV: {url}", extra={"endpoint": url})

        try:
            resp = await client.get(url)
            if resp.is_success:
                logger.info(
                    f"Fetched {len(resp.text)} bytes",
                    extra={"endpoint": url, "status_code": resp.status_code},
                )
                return resp.text

            logger.warning(
                f"Sheet export failed ({resp.status_code}), trying alternate URL",
                extra={"endpoint": url, "status_code": resp.status_code},
            )
            alt_url = self.alternate_export_url(sheet_id, gid)
            alt_resp = await client.get(alt_url)
            if alt_resp.is_success:
                return alt_resp.text
        except httpx.RequestError as e:
            raise SheetsAPIError(f"Failed to fetch sheet: {e}") from e

        raise SheetsAPIError(
            f"Sheet not accessible ({resp.status_code}). Make sure it's published "
            'to web or shared with "Anyone with link".',
            resp.status_code,
        )

    async def fetch_rows(
        self, sheet_id: str, tab_name: str | None = None, gid: str | None = None
    ) -> List[RawRow]:
        """Fetch a tab and parse it into header-keyed rows."""
        text = await self.fetch_csv(sheet_id, tab_name, gid)
        rows = parse_csv(text)
        logger.info(f"Parsed {len(rows)} rows from sheet {sheet_id}", extra={"rows": len(rows)})
        return rows

    # ── Visualization API ──

    async def gviz(self, sheet_id: str, query: str, gid: str | None = None) -> Dict[str, Any]:
        """Run a gviz query and return the unwrapped response payload."""
        client = await self._get_client()
        url = f"{self._sheet_url(sheet_id)}/gviz/tq"
        params = {"tq": query, "gid": gid or "0", "headers": "1"}

        try:
            resp = await client.get(url, params=params)
        except httpx.RequestError as e:
            raise SheetsAPIError(f"Failed to query sheet: {e}") from e

        if not resp.is_success:
            raise SheetsAPIError(
                f"Sheet query failed ({resp.status_code})", resp.status_code
            )

        match = _GVIZ_ENVELOPE.search(resp.text.strip())
        if not match:
            logger.error(f"Invalid gviz response: {resp.text[:300]}")
            raise SheetsAPIError("Invalid response format from Google Sheets")

        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError as e:
            raise SheetsAPIError(f"Invalid response format from Google Sheets: {e}") from e
