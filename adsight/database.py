"""AdSight — Database Engine & Session Factory.

SQLite for local runs and tests, PostgreSQL (or any SQLAlchemy URL) in
deployment. Route handlers get a session per request via ``get_session``;
background jobs open their own with ``session_scope``.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from adsight.config import settings
from adsight.core.logging import get_logger

logger = get_logger("database")


def build_engine(url: str) -> Engine:
    """Engine with pool settings suited to the backend."""
    parsed = make_url(url)
    kwargs: dict = {"echo": False}

    if parsed.get_backend_name() == "sqlite":
        # Request handlers and the scheduler share the file across threads
        kwargs["connect_args"] = {"check_same_thread": False}
        logger.info(f"📦 Database backend: SQLite ({parsed.database or 'memory'})")
    else:
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10, pool_recycle=300)
        logger.info(
            f"🐘 Database backend: {parsed.get_backend_name()} "
            f"({parsed.render_as_string(hide_password=True)})"
        )

    return create_engine(url, **kwargs)


engine = build_engine(settings.effective_database_url)


def test_connection() -> bool:
    """SELECT 1 against the engine; False (and logged) when unreachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"❌ Database connection test failed: {e}")
        return False
    logger.info("✅ Database connection OK")
    return True


def init_db() -> None:
    """Create the metric_records and alert_rules tables if missing."""
    import adsight.models.alert_models  # noqa: F401
    import adsight.models.metric_models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("✅ Database tables ready")


def get_session() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request, rolled back on error."""
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
