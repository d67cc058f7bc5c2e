"""AdSight — API Dependencies.

The auth gateway in front of this service verifies the token and forwards
the caller's claims as headers; this module turns them into a principal
and wires stores and engines per request.
"""

from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from adsight.alerts.rule_engine import AlertRuleEngine
from adsight.analyzer.aggregator import Aggregator
from adsight.core.errors import ValidationError
from adsight.core.tenant_scope import TenantPrincipal
from adsight.database import get_session
from adsight.stores.alert_store import SQLAlertRuleStore
from adsight.stores.metric_store import SQLMetricStore


def get_principal(
    x_user_id: Optional[str] = Header(None),
    x_client_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> TenantPrincipal:
    """Principal from gateway headers. Unknown roles are rejected (400)."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    return TenantPrincipal.from_claims(x_user_id, x_client_id, x_user_role)


def get_metric_store(session: Session = Depends(get_session)) -> SQLMetricStore:
    return SQLMetricStore(session)


def get_aggregator(store: SQLMetricStore = Depends(get_metric_store)) -> Aggregator:
    return Aggregator(store)


def get_alert_engine(session: Session = Depends(get_session)) -> AlertRuleEngine:
    return AlertRuleEngine(SQLAlertRuleStore(session))


def parse_date(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse YYYY-MM-DD, rejecting anything else."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD, got {value!r}")
