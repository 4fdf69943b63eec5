"""AdPulse — Sync Routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from adpulse.connectors.sheets.client import SheetsClient
from adpulse.database import get_session
from adpulse.models.normalized_models import BatchSyncSummary, SyncResult
from adpulse.sync.orchestrator import SyncMode, sync_all_sources, sync_source_by_id
from adpulse.core.logging import get_logger

logger = get_logger("api.sync")

router = APIRouter(prefix="/sync", tags=["Sync"])


async def get_sheets_client():
    """Dependency — yields a Sheets client closed after the request."""
    client = SheetsClient()
    try:
        yield client
    finally:
        await client.close()


@router.post("", response_model=BatchSyncSummary)
async def sync_all(
    mode: SyncMode = Query(SyncMode.CSV, description="csv | query"),
    session: Session = Depends(get_session),
    client: SheetsClient = Depends(get_sheets_client),
):
    """Sync every active data source.

    Always returns 200 with per-source results; check ``failed``.
    """
    try:
        results = await sync_all_sources(session, mode, client)
    except Exception as e:
        logger.error(f"Batch sync failed: {e}")
        raise HTTPException(status_code=500, detail=f"Sync failed: {str(e)}")

    summary = BatchSyncSummary.from_results(results)
    if summary.failed:
        logger.warning(f"{summary.failed} source(s) failed to sync")
    return summary


@router.post("/{source_id}", response_model=SyncResult)
async def sync_one(
    source_id: str,
    mode: SyncMode = Query(SyncMode.CSV, description="csv | query"),
    session: Session = Depends(get_session),
    client: SheetsClient = Depends(get_sheets_client),
):
    """Sync a single active data source."""
    return await sync_source_by_id(session, source_id, mode, client)
