"""Shared fixtures: in-memory database and a fake Sheets client."""

from typing import Dict, List, Optional

import pytest
from sqlmodel import Session

from adpulse.connectors.sheets.client import SheetsAPIError
from adpulse.database import build_engine, init_db
from adpulse.models.source_models import DataSource


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


class FakeSheetsClient:
    """Stands in for SheetsClient; rows are keyed by sheet id."""

    def __init__(
        self,
        tabs: Optional[Dict[str, List[dict]]] = None,
        failing: Optional[Dict[str, str]] = None,
    ):
        self.tabs = tabs or {}
        self.failing = failing or {}
        self.calls: List[str] = []
        self.closed = False

    async def fetch_rows(self, sheet_id, tab_name=None, gid=None):
        self.calls.append(sheet_id)
        if sheet_id in self.failing:
            raise SheetsAPIError(self.failing[sheet_id], 404)
        return [dict(r) for r in self.tabs.get(sheet_id, [])]

    async def close(self):
        self.closed = True


@pytest.fixture
def make_source(session):
    def _make(name="Swiggy Ads", sheet_id="sheet-1", platform="swiggy", data_type="ads", **kwargs):
        source = DataSource(
            name=name, sheet_id=sheet_id, platform=platform, data_type=data_type, **kwargs
        )
        session.add(source)
        session.commit()
        session.refresh(source)
        return source

    return _make
