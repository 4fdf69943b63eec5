"""
Tests for engine construction and URL masking.
"""

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, select

from adpulse.database import _mask_url, build_engine, init_db
from adpulse.models.source_models import DataSource


def test_mask_url_hides_password():
    assert _mask_url("postgresql://adpulse:s3cret@db:5432/adpulse") == (
        "postgresql://adpulse:****@db:5432/adpulse"
    )


def test_mask_url_leaves_urls_without_password():
    assert _mask_url("sqlite:///./adpulse.db") == "sqlite:///./adpulse.db"
    assert _mask_url("postgresql://adpulse@db/adpulse") == "postgresql://adpulse@db/adpulse"


def test_in_memory_engine_shares_one_database():
    engine = build_engine("sqlite://")
    assert isinstance(engine.pool, StaticPool)
    init_db(engine)

    with Session(engine) as session:
        session.add(DataSource(name="a", sheet_id="s", platform="swiggy", data_type="ads"))
        session.commit()
    with Session(engine) as session:
        assert len(session.exec(select(DataSource)).all()) == 1
    engine.dispose()


def test_file_engine_uses_default_pool(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'adpulse.db'}")
    assert not isinstance(engine.pool, StaticPool)
    engine.dispose()
