"""AdSight — Alert Rule Engine.

CRUD and status state machine for tenant-scoped alert rules.

    active ⇄ resolved      manual transition only (update_status)
    triggered_at           latched by the evaluator (mark_triggered),
                           cleared only by a manual status update
"""

import json
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from adsight.core.clock import naive_utc
from adsight.core.errors import AuthorizationDenied, NotFound, ValidationError
from adsight.core.logging import get_logger
from adsight.core.tenant_scope import ALERT_SCOPE, RULE_AUTHOR_ROLES, TenantPrincipal
from adsight.models.alert_models import AlertCondition, AlertRule, Dimension, RuleStatus
from adsight.stores.alert_store import AlertRuleStore

logger = get_logger("alerts.rules")

ConditionInput = Union[AlertCondition, Mapping[str, Any], None]


def parse_condition(condition: ConditionInput) -> AlertCondition:
    """Validate a condition payload into the tagged AlertCondition variant."""
    if condition is None or condition == {}:
        raise ValidationError("Missing condition")
    if isinstance(condition, AlertCondition):
        return condition
    try:
        return AlertCondition.model_validate(dict(condition))
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid condition: {e}") from e


class AlertRuleEngine:
    """Tenant-scoped alert rule operations over an AlertRuleStore."""

    def __init__(self, store: AlertRuleStore):
        self.store = store

    def create(
        self,
        principal: TenantPrincipal,
        rule_name: Optional[str],
        condition: ConditionInput,
        dimension: str = Dimension.GLOBAL.value,
    ) -> AlertRule:
        """Create an active rule owned by the principal's own tenant."""
        if principal.role not in RULE_AUTHOR_ROLES:
            raise AuthorizationDenied(
                f"{principal.role.value} may not create alert rules"
            )
        if not rule_name or not rule_name.strip():
            raise ValidationError("Missing rule_name")
        parsed = parse_condition(condition)
        try:
            dim = Dimension(dimension or Dimension.GLOBAL.value)
        except ValueError:
            raise ValidationError(f"Unknown dimension: {dimension!r}")
        if principal.client_id is None:
            raise ValidationError("Principal has no tenant to own the rule")

        rule = self.store.add(
            AlertRule(
                client_id=principal.client_id,
                rule_name=rule_name.strip(),
                dimension=dim.value,
                condition_json=json.dumps(parsed.model_dump(mode="json")),
                status=RuleStatus.ACTIVE.value,
            )
        )
        logger.info(
            f"Alert rule created: {rule.rule_name}",
            extra={"client_id": rule.client_id, "rule_id": rule.id},
        )
        return rule

    def list(self, principal: TenantPrincipal) -> List[AlertRule]:
        """Rules visible to the principal, newest first."""
        return self.store.list(ALERT_SCOPE.client_constraint(principal))

    def update_status(
        self, principal: TenantPrincipal, rule_id: int, status: str
    ) -> AlertRule:
        """Manually move a rule between active and resolved.

        The tenant constraint is part of the UPDATE itself, so a rule owned
        by another tenant is indistinguishable from a missing one.
        """
        try:
            new_status = RuleStatus(status)
        except ValueError:
            raise ValidationError(
                f"Invalid status {status!r}, expected 'active' or 'resolved'"
            )

        client_id = ALERT_SCOPE.client_constraint(principal)
        rule = self.store.update_status(rule_id, client_id, new_status.value)
        if rule is None:
            raise NotFound(f"Alert rule {rule_id} not found")

        logger.info(
            f"Alert rule status → {new_status.value}",
            extra={"client_id": rule.client_id, "rule_id": rule.id},
        )
        return rule

    def mark_triggered(self, rule_id: int, at: datetime) -> bool:
        """Latch triggered_at for the external evaluator. Never clears it."""
        latched = self.store.set_triggered(rule_id, naive_utc(at))
        if latched:
            logger.warning(
                f"Alert rule {rule_id} triggered", extra={"rule_id": rule_id}
            )
        return latched
