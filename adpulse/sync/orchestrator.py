"""AdPulse — Sync Orchestrator.

Runs the per-source flow:
  fetch → normalize → drop invalid dates → aggregate by day → upsert → mark synced

A second entry point skips normalize/aggregate and takes daily sums
straight from a sheet query. Either way every failure is caught here and
returned as a ``SyncResult``; batch syncs always finish and report mixed
results.

Sources run one after another. Two sources can feed the same
(platform, data_type), so the write phase is also guarded by a per-pair
lock for syncs triggered concurrently over HTTP.
"""

import asyncio
import time
from collections import defaultdict
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session

from adpulse.connectors.sheets.client import SheetsClient
from adpulse.connectors.sheets.query import SheetsQuery
from adpulse.core.logging import get_logger
from adpulse.models.normalized_models import AggregatedDay, SyncResult
from adpulse.models.source_models import DataSource
from adpulse.normalizer.column_mapper import build_mapper, normalize_row
from adpulse.normalizer.dates import is_iso_date
from adpulse.storage.repository import (
    get_active_data_sources,
    get_data_source,
    mark_synced,
    upsert_daily_metrics_batch,
)
from adpulse.sync.aggregator import aggregate_by_date, from_daily_aggregates

logger = get_logger("sync.orchestrator")


class SyncMode(str, Enum):
    CSV = "csv"
    QUERY = "query"


class SyncStage(str, Enum):
    FETCH = "fetch"
    NORMALIZE = "normalize"
    FILTER_VALID_DATES = "filter_valid_dates"
    AGGREGATE = "aggregate"
    UPSERT = "upsert"
    MARK_SYNCED = "mark_synced"
    SYNCED = "synced"


class SyncFailed(Exception):
    """A sync stage produced nothing usable."""


_pair_locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)


def _log_extra(source: DataSource, **kwargs) -> dict:
    return {
        "source_id": source.id,
        "platform": source.platform,
        "data_type": source.data_type,
        **kwargs,
    }


async def _write_days(
    session: Session, source: DataSource, days: List[AggregatedDay]
) -> None:
    async with _pair_locks[(source.platform, source.data_type)]:
        upsert_daily_metrics_batch(session, days)
        mark_synced(session, source.id)


def _fail(result: SyncResult, source: DataSource, stage: SyncStage, error: Exception, started: float) -> SyncResult:
    result.success = False
    result.error = str(error) or error.__class__.__name__
    logger.error(
        f"❌ Sync failed for '{source.name}' at {stage.value}: {result.error}",
        extra=_log_extra(source, duration_ms=round((time.monotonic() - started) * 1000)),
    )
    return result


async def sync_data_source(
    session: Session, source: DataSource, client: Optional[SheetsClient] = None
) -> SyncResult:
    """Sync one source through the CSV path."""
    result = SyncResult(source_id=source.id, source_name=source.name)
    stage = SyncStage.FETCH
    started = time.monotonic()
    owns_client = client is None
    client = client or SheetsClient()

    logger.info(
        f"Starting sync for '{source.name}' ({source.platform}/{source.data_type})",
        extra=_log_extra(source),
    )
    try:
        raw_rows = await client.fetch_rows(source.sheet_id, source.tab_name, source.tab_gid)
        result.rows_fetched = len(raw_rows)
        if not raw_rows:
            raise SyncFailed("No data found in sheet")
        logger.debug(f"Sample raw row columns: {list(raw_rows[0].keys())}")

        stage = SyncStage.NORMALIZE
        mapper = build_mapper(session, source.platform, source.data_type)
        normalized = [normalize_row(row, mapper) for row in raw_rows]

        stage = SyncStage.FILTER_VALID_DATES
        valid_rows = [row for row in normalized if is_iso_date(row.date)]
        logger.info(
            f"{len(valid_rows)} rows have valid dates (out of {len(normalized)})",
            extra=_log_extra(source, rows=len(valid_rows)),
        )
        if len(valid_rows) < len(normalized):
            rejected = [row.date for row in normalized if not is_iso_date(row.date)][:5]
            logger.debug(f"Sample invalid dates: {rejected}")

        stage = SyncStage.AGGREGATE
        days = aggregate_by_date(valid_rows, source.platform, source.data_type)
        result.days_aggregated = len(days)
        if not days:
            raise SyncFailed(
                f"No valid data to sync ({len(raw_rows)} rows fetched but 0 had valid dates)"
            )

        stage = SyncStage.UPSERT
        await _write_days(session, source, days)

        result.success = True
        logger.info(
            f"✅ Sync complete for '{source.name}' - {len(days)} days synced",
            extra=_log_extra(
                source,
                rows=result.rows_fetched,
                days=len(days),
                duration_ms=round((time.monotonic() - started) * 1000),
            ),
        )
        return result
    except Exception as e:
        return _fail(result, source, stage, e, started)
    finally:
        if owns_client:
            await client.close()


async def sync_data_source_with_query(
    session: Session, source: DataSource, client: Optional[SheetsClient] = None
) -> SyncResult:
    """Sync one source from server-side daily sums (no row download)."""
    result = SyncResult(source_id=source.id, source_name=source.name)
    stage = SyncStage.FETCH
    started = time.monotonic()
    owns_client = client is None
    client = client or SheetsClient()

    logger.info(
        f"Starting query sync for '{source.name}' ({source.platform}/{source.data_type})",
        extra=_log_extra(source),
    )
    try:
        aggregates = await SheetsQuery(client).fetch_daily_aggregates(
            source.sheet_id, source.data_type, source.tab_gid or "0"
        )
        result.days_aggregated = len(aggregates)
        if not aggregates:
            raise SyncFailed("No data returned from query")

        stage = SyncStage.UPSERT
        days = from_daily_aggregates(aggregates, source.platform, source.data_type)
        await _write_days(session, source, days)

        result.success = True
        logger.info(
            f"✅ Query sync complete for '{source.name}' - {len(days)} days synced",
            extra=_log_extra(
                source,
                days=len(days),
                duration_ms=round((time.monotonic() - started) * 1000),
            ),
        )
        return result
    except Exception as e:
        return _fail(result, source, stage, e, started)
    finally:
        if owns_client:
            await client.close()


async def sync_source(
    session: Session,
    source: DataSource,
    mode: SyncMode = SyncMode.CSV,
    client: Optional[SheetsClient] = None,
) -> SyncResult:
    if mode == SyncMode.QUERY:
        return await sync_data_source_with_query(session, source, client)
    return await sync_data_source(session, source, client)


async def sync_source_by_id(
    session: Session,
    source_id: str,
    mode: SyncMode = SyncMode.CSV,
    client: Optional[SheetsClient] = None,
) -> SyncResult:
    """Sync one active source by id."""
    source = get_data_source(session, source_id)
    if source is None or not source.is_active:
        logger.warning(f"Sync requested for unknown source {source_id}", extra={"source_id": source_id})
        return SyncResult(
            success=False,
            source_id=source_id,
            source_name="Unknown",
            error="Source not found",
        )
    return await sync_source(session, source, mode, client)


async def sync_all_sources(
    session: Session,
    mode: SyncMode = SyncMode.CSV,
    client: Optional[SheetsClient] = None,
) -> List[SyncResult]:
    """Sync every active source in turn; one result per source."""
    sources = get_active_data_sources(session)
    logger.info(f"Starting {mode.value} sync for {len(sources)} active sources")

    owns_client = client is None
    client = client or SheetsClient()
    results: List[SyncResult] = []
    try:
        for source in sources:
            results.append(await sync_source(session, source, mode, client))
    finally:
        if owns_client:
            await client.close()

    succeeded = sum(1 for r in results if r.success)
    logger.info(
        f"Sync complete: {succeeded} successful, {len(results) - succeeded} failed"
    )
    return results


async def sync_all_sources_with_query(
    session: Session, client: Optional[SheetsClient] = None
) -> List[SyncResult]:
    return await sync_all_sources(session, SyncMode.QUERY, client)
