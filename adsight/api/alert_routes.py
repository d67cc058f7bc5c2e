"""AdSight — Alert Rule API Routes."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from adsight.alerts.evaluator import evaluate_rules
from adsight.alerts.rule_engine import AlertRuleEngine
from adsight.analyzer.aggregator import Aggregator
from adsight.api.deps import get_aggregator, get_alert_engine, get_principal
from adsight.core.errors import AuthorizationDenied
from adsight.core.logging import get_logger
from adsight.core.tenant_scope import Role, TenantPrincipal

logger = get_logger("api.alerts")

router = APIRouter(prefix="/alerts", tags=["Alerts"])


# ── Request Models ──


class CreateAlertRequest(BaseModel):
    """Request body for POST /alerts. client_id is taken from the caller."""

    rule_name: Optional[str] = None
    dimension: str = "global"
    condition: Optional[Dict[str, Any]] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "rule_name": "CPA above 150",
                    "dimension": "channel",
                    "condition": {"metric": "cpa", "operator": "gt", "threshold": 150},
                }
            ]
        }
    }


class UpdateStatusRequest(BaseModel):
    status: str


# ── Endpoints ──


@router.get("")
def list_alerts(
    principal: TenantPrincipal = Depends(get_principal),
    engine: AlertRuleEngine = Depends(get_alert_engine),
):
    """Alert rules visible to the caller, newest first."""
    rules = engine.list(principal)
    return {"status": "success", "data": [r.to_dict() for r in rules]}


@router.post("", status_code=201)
def create_alert(
    request: CreateAlertRequest,
    principal: TenantPrincipal = Depends(get_principal),
    engine: AlertRuleEngine = Depends(get_alert_engine),
):
    """Create an alert rule for the caller's tenant."""
    rule = engine.create(
        principal, request.rule_name, request.condition, request.dimension
    )
    return {"status": "success", "id": rule.id, "data": rule.to_dict()}


@router.put("/{rule_id}")
def update_alert_status(
    rule_id: int,
    request: UpdateStatusRequest,
    principal: TenantPrincipal = Depends(get_principal),
    engine: AlertRuleEngine = Depends(get_alert_engine),
):
    """Manually mark a rule active or resolved."""
    rule = engine.update_status(principal, rule_id, request.status)
    return {"status": "success", "data": rule.to_dict()}


@router.post("/evaluate")
def evaluate_alerts(
    principal: TenantPrincipal = Depends(get_principal),
    engine: AlertRuleEngine = Depends(get_alert_engine),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """On-demand evaluation of every active rule (superadmin only)."""
    if principal.role is not Role.SUPERADMIN:
        raise AuthorizationDenied("Only superadmin may run alert evaluation")
    logger.info(f"On-demand alert evaluation requested by user {principal.id}")
    triggered = evaluate_rules(engine, aggregator)
    return {"status": "success", "triggered": triggered}
