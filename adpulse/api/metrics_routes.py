"""AdPulse — Metrics Routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from adpulse.analyzer import summary_engine
from adpulse.database import get_session
from adpulse.models.analysis_models import (
    MetricsSummary,
    MonthlySummary,
    PlatformMetrics,
    TrendPoint,
)
from adpulse.models.metric_models import DailyMetric
from adpulse.storage.repository import get_daily_metrics

router = APIRouter(prefix="/metrics", tags=["Metrics"])


def _validate(value: Optional[str], fmt: str, name: str) -> Optional[str]:
    if not value:
        return None
    try:
        datetime.strptime(value, fmt)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: {value}")
    return value


class DateRange:
    """Query dependency — optional YYYY-MM-DD bounds."""

    def __init__(
        self,
        start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
        end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    ):
        self.start_date = _validate(start_date, "%Y-%m-%d", "start_date")
        self.end_date = _validate(end_date, "%Y-%m-%d", "end_date")


@router.get("/daily", response_model=List[DailyMetric])
async def daily_metrics(
    dates: DateRange = Depends(),
    platform: Optional[str] = Query(None),
    data_type: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    return get_daily_metrics(
        session, dates.start_date, dates.end_date, platform, data_type
    )


@router.get("/ads", response_model=List[DailyMetric])
async def ads_metrics(
    dates: DateRange = Depends(),
    platform: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    return summary_engine.get_ads_metrics(
        session, dates.start_date, dates.end_date, platform
    )


@router.get("/summary", response_model=MetricsSummary)
async def metrics_summary(
    dates: DateRange = Depends(), session: Session = Depends(get_session)
):
    return summary_engine.get_metrics_summary(session, dates.start_date, dates.end_date)


@router.get("/platforms", response_model=List[PlatformMetrics])
async def metrics_by_platform(
    dates: DateRange = Depends(), session: Session = Depends(get_session)
):
    return summary_engine.get_metrics_by_platform(
        session, dates.start_date, dates.end_date
    )


@router.get("/trend", response_model=List[TrendPoint])
async def metrics_trend(
    dates: DateRange = Depends(), session: Session = Depends(get_session)
):
    return summary_engine.get_daily_trend(session, dates.start_date, dates.end_date)


@router.get("/monthly", response_model=List[MonthlySummary])
async def metrics_monthly(
    start_month: Optional[str] = Query(None, description="YYYY-MM"),
    end_month: Optional[str] = Query(None, description="YYYY-MM"),
    platform: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    return summary_engine.get_monthly_summary(
        session,
        _validate(start_month, "%Y-%m", "start_month"),
        _validate(end_month, "%Y-%m", "end_month"),
        platform,
    )
