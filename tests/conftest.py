"""Shared test fixtures."""
import os

# Must be set before adsight.config is imported anywhere.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import datetime, timedelta

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from adsight.alerts.rule_engine import AlertRuleEngine
from adsight.analyzer.aggregator import Aggregator
from adsight.core.tenant_scope import Role, TenantPrincipal
from adsight.models.alert_models import AlertRule  # noqa: F401
from adsight.models.metric_models import MetricRecord
from adsight.stores.alert_store import SQLAlertRuleStore
from adsight.stores.metric_store import SQLMetricStore

# Monday 19 October 2026, mid-afternoon UTC
FIXED_NOW = datetime(2026, 10, 19, 15, 30)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session bound to in-memory SQLite. Rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def metric_store(db_session):
    return SQLMetricStore(db_session)


@pytest.fixture
def alert_store(db_session):
    return SQLAlertRuleStore(db_session)


@pytest.fixture
def aggregator(metric_store):
    """Aggregator with a frozen clock at FIXED_NOW."""
    return Aggregator(metric_store, clock=lambda: FIXED_NOW)


@pytest.fixture
def rule_engine(alert_store):
    return AlertRuleEngine(alert_store)


@pytest.fixture
def add_record(db_session):
    """Factory fixture: insert one MetricRecord ``days_ago`` days before FIXED_NOW.

    Inserts directly (no additive upsert) so several records may share a
    day; pass a distinct campaign_id or hour to keep keys unique.
    """
    def _add(client_id=1, days_ago=0, hour=10, provider="google_ads",
             campaign_id=None, impressions=1000, clicks=10, cost=10.0,
             conversions=1, revenue=0.0):
        day = FIXED_NOW.replace(hour=0, minute=0, second=0, microsecond=0)
        record = MetricRecord(
            client_id=client_id,
            campaign_id=campaign_id,
            provider=provider,
            timestamp=day - timedelta(days=days_ago) + timedelta(hours=hour),
            impressions=impressions,
            clicks=clicks,
            cost=cost,
            conversions=conversions,
            revenue=revenue,
        )
        db_session.add(record)
        db_session.commit()
        return record
    return _add


def _principal(role, client_id, user_id=1):
    return TenantPrincipal(id=user_id, client_id=client_id, role=role)


@pytest.fixture
def viewer():
    return _principal(Role.VIEWER, 1, user_id=10)


@pytest.fixture
def manager():
    return _principal(Role.MANAGER, 3, user_id=20)


@pytest.fixture
def admin():
    return _principal(Role.ADMIN, 3, user_id=30)


@pytest.fixture
def superadmin():
    return _principal(Role.SUPERADMIN, None, user_id=40)


@pytest.fixture
def make_principal():
    """Factory fixture for arbitrary principals."""
    def _make(role, client_id, user_id=99):
        return _principal(Role(role), client_id, user_id)
    return _make
