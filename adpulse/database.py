"""AdPulse — Database Engine & Session Factory."""

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from adpulse.config import settings
from adpulse.core.logging import get_logger

logger = get_logger("database")


def _mask_url(url: str) -> str:
    """Hide the password in a DB URL before it is logged."""
    scheme, sep, rest = url.partition("://")
    credentials, at, host = rest.rpartition("@")
    if not at or ":" not in credentials:
        return url
    user = credentials.split(":", 1)[0]
    return f"{scheme}{sep}{user}:****@{host}"


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def build_engine(url: str) -> Engine:
    """Engine for a SQLite file, in-memory SQLite or PostgreSQL URL.

    In-memory SQLite keeps one shared connection so every session sees
    the same tables.
    """
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
        logger.info(f"📦 Database backend: SQLite ({url})")
    else:
        kwargs = {
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 300,
        }
        logger.info(f"🐘 Database backend: PostgreSQL ({_mask_url(url)})")
    return create_engine(url, echo=False, **kwargs)


engine = build_engine(settings.effective_database_url)


def check_connection() -> bool:
    """Run SELECT 1 against the configured database."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection check: OK")
        return True
    except Exception as e:
        logger.error(f"❌ Database connection check failed: {e}")
        return False


def init_db(target: Engine = engine) -> None:
    """Create the data source, column mapping and daily metric tables."""
    # Table classes register themselves on SQLModel.metadata at import time
    from adpulse.models import metric_models, source_models  # noqa: F401

    logger.info("🔨 Creating database tables...")
    SQLModel.metadata.create_all(target)
    logger.info("✅ Database tables ready")


def get_session():
    """Dependency — yields a DB session."""
    with Session(engine) as session:
        yield session
