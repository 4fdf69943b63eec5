"""AdPulse — Storage Repository.

CRUD for data sources and column mappings, and the idempotent daily-metric
upsert. All functions take an open SQLModel ``Session``; write helpers
commit before returning.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from adpulse.models.metric_models import DailyMetric
from adpulse.models.normalized_models import AggregatedDay
from adpulse.models.source_models import ColumnMapping, DataSource
from adpulse.core.logging import get_logger

logger = get_logger("storage")


class StorageError(Exception):
    """Raised when a write to the metrics store fails."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    return numerator / denominator * scale if denominator > 0 else 0.0


# ─────────────────────────────────────────────
# DATA SOURCES
# ─────────────────────────────────────────────


def list_data_sources(session: Session, active_only: bool = False) -> List[DataSource]:
    """All data sources, newest first."""
    query = select(DataSource)
    if active_only:
        query = query.where(DataSource.is_active == True)  # noqa: E712
    query = query.order_by(DataSource.created_at.desc())  # type: ignore
    return list(session.exec(query).all())


def get_active_data_sources(session: Session) -> List[DataSource]:
    return list_data_sources(session, active_only=True)


def get_data_source(session: Session, source_id: str) -> Optional[DataSource]:
    return session.get(DataSource, source_id)


def add_data_source(session: Session, source: DataSource) -> DataSource:
    session.add(source)
    session.commit()
    session.refresh(source)
    logger.info(
        f"Added data source '{source.name}' ({source.platform}/{source.data_type})",
        extra={"source_id": source.id},
    )
    return source


def update_data_source(
    session: Session, source_id: str, updates: Dict[str, Any]
) -> Optional[DataSource]:
    """Apply field updates and bump ``updated_at``. None if the id is unknown."""
    source = session.get(DataSource, source_id)
    if source is None:
        return None
    for key, value in updates.items():
        if key in ("id", "created_at"):
            continue
        setattr(source, key, value)
    source.updated_at = _utcnow()
    session.add(source)
    session.commit()
    session.refresh(source)
    return source


def mark_synced(session: Session, source_id: str) -> Optional[DataSource]:
    return update_data_source(session, source_id, {"last_synced_at": _utcnow()})


def delete_data_source(session: Session, source_id: str) -> bool:
    """Delete a source.

    Its (platform, data_type) daily metrics go with it only when no other
    source feeds the same pair.
    """
    source = session.get(DataSource, source_id)
    if source is None:
        return False

    others = session.exec(
        select(DataSource.id).where(
            DataSource.platform == source.platform,
            DataSource.data_type == source.data_type,
            DataSource.id != source_id,
        )
    ).first()

    if others is None:
        metrics = session.exec(
            select(DailyMetric).where(
                DailyMetric.platform == source.platform,
                DailyMetric.data_type == source.data_type,
            )
        ).all()
        for m in metrics:
            session.delete(m)
        logger.info(
            f"Deleting {len(metrics)} daily metrics for "
            f"{source.platform}/{source.data_type}",
            extra={"source_id": source_id},
        )

    session.delete(source)
    session.commit()
    logger.info(f"Deleted data source {source_id}", extra={"source_id": source_id})
    return True


# ─────────────────────────────────────────────
# COLUMN MAPPINGS
# ─────────────────────────────────────────────


def get_column_mappings(
    session: Session, platform: Optional[str] = None, data_type: Optional[str] = None
) -> List[ColumnMapping]:
    """Active overrides, optionally filtered by platform and data type."""
    query = select(ColumnMapping).where(ColumnMapping.is_active == True)  # noqa: E712
    if platform:
        query = query.where(ColumnMapping.platform == platform)
    if data_type:
        query = query.where(ColumnMapping.data_type == data_type)
    query = query.order_by(ColumnMapping.created_at)  # type: ignore
    return list(session.exec(query).all())


def upsert_column_mapping(session: Session, mapping: ColumnMapping) -> ColumnMapping:
    """Insert, or replace the target of an existing (platform, data_type, source_column)."""
    existing = session.exec(
        select(ColumnMapping).where(
            ColumnMapping.platform == mapping.platform,
            ColumnMapping.data_type == mapping.data_type,
            ColumnMapping.source_column == mapping.source_column,
        )
    ).first()

    if existing:
        existing.target_column = mapping.target_column
        existing.is_active = mapping.is_active
        session.add(existing)
        mapping = existing
    else:
        session.add(mapping)
    session.commit()
    session.refresh(mapping)
    return mapping


def delete_column_mapping(session: Session, mapping_id: str) -> bool:
    mapping = session.get(ColumnMapping, mapping_id)
    if mapping is None:
        return False
    session.delete(mapping)
    session.commit()
    return True


# ─────────────────────────────────────────────
# DAILY METRICS
# ─────────────────────────────────────────────


def get_daily_metrics(
    session: Session,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    platform: Optional[str] = None,
    data_type: Optional[str] = None,
) -> List[DailyMetric]:
    """Stored daily metrics in a date range, newest first."""
    query = select(DailyMetric)
    if start_date:
        query = query.where(DailyMetric.date >= start_date)
    if end_date:
        query = query.where(DailyMetric.date <= end_date)
    if platform:
        query = query.where(DailyMetric.platform == platform)
    if data_type:
        query = query.where(DailyMetric.data_type == data_type)
    query = query.order_by(DailyMetric.date.desc())  # type: ignore
    return list(session.exec(query).all())


def _apply_totals(metric: DailyMetric, day: AggregatedDay) -> None:
    metric.total_spend = day.total_spend
    metric.total_impressions = day.total_impressions
    metric.total_clicks = day.total_clicks
    metric.total_sales = day.total_sales
    metric.total_orders = day.total_orders
    metric.cpi = _ratio(day.total_spend, day.total_impressions)
    metric.ctr = _ratio(day.total_clicks, day.total_impressions, 100)
    metric.cpc = _ratio(day.total_spend, day.total_clicks)
    metric.roas = _ratio(day.total_sales, day.total_spend)
    metric.synced_at = _utcnow()


def upsert_daily_metrics_batch(session: Session, days: Iterable[AggregatedDay]) -> int:
    """Write daily aggregates, replacing any row with the same key.

    Key is (date, platform, data_type). Records missing any key part are
    skipped. Returns the number of rows written; raises ``StorageError`` if
    nothing valid was given or the commit fails.
    """
    days = list(days)
    if not days:
        logger.info("No metrics to upsert")
        return 0

    valid: List[AggregatedDay] = []
    for day in days:
        if not day.date or not day.platform or not day.data_type:
            logger.warning(f"Skipping record with missing key fields: {day.model_dump()}")
            continue
        valid.append(day)

    if not valid:
        raise StorageError("No valid records after filtering")

    created = 0
    try:
        for day in valid:
            existing = session.exec(
                select(DailyMetric).where(
                    DailyMetric.date == day.date,
                    DailyMetric.platform == day.platform,
                    DailyMetric.data_type == day.data_type,
                )
            ).first()

            if existing is None:
                existing = DailyMetric(
                    date=day.date, platform=day.platform, data_type=day.data_type
                )
                created += 1
            _apply_totals(existing, day)
            session.add(existing)

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Daily metric upsert failed: {e}")
        raise StorageError(str(e)) from e

    logger.info(
        f"Upserted {len(valid)} daily metrics ({created} new)",
        extra={"days": len(valid)},
    )
    return len(valid)
