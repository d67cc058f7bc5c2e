"""AdSight — Alert Rule Models."""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from adsight.core.clock import utcnow
from adsight.core.metric_registry import get_metric


class Dimension(str, Enum):
    """Granularity a rule is evaluated against."""

    GLOBAL = "global"
    CHANNEL = "channel"
    CAMPAIGN = "campaign"


class Operator(str, Enum):
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    EQ = "eq"

    def compare(self, value: float, threshold: float) -> bool:
        if self is Operator.GT:
            return value > threshold
        if self is Operator.LT:
            return value < threshold
        if self is Operator.GTE:
            return value >= threshold
        if self is Operator.LTE:
            return value <= threshold
        return value == threshold


class RuleStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class AlertCondition(BaseModel):
    """Tagged condition variant: ``<metric> <operator> <threshold>``."""

    metric: str
    operator: Operator
    threshold: float

    model_config = {"frozen": True}

    @field_validator("metric")
    @classmethod
    def _known_metric(cls, v: str) -> str:
        name = v.strip().lower()
        if get_metric(name) is None:
            raise ValueError(f"unknown metric '{v}'")
        return name

    def holds(self, value: float) -> bool:
        return self.operator.compare(value, self.threshold)


# ─────────────────────────────────────────────
# DATABASE MODEL: Persisted, tenant-scoped rules
# ─────────────────────────────────────────────


class AlertRule(SQLModel, table=True):
    """Alert rule owned by one tenant.

    ``triggered_at`` is a latch set by the evaluator and cleared only by a
    manual status update.
    """

    __tablename__ = "alert_rules"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(index=True)
    rule_name: str
    dimension: str = Field(default=Dimension.GLOBAL.value)
    condition_json: str = Field(description="AlertCondition as JSON")
    status: str = Field(default=RuleStatus.ACTIVE.value, index=True)
    triggered_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=False)
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=False)
    )

    @property
    def condition(self) -> AlertCondition:
        return AlertCondition.model_validate(json.loads(self.condition_json))

    def to_dict(self) -> dict[str, Any]:
        """Flat, serializable view of the rule."""
        return {
            "id": self.id,
            "client_id": self.client_id,
            "rule_name": self.rule_name,
            "dimension": self.dimension,
            "condition": self.condition.model_dump(mode="json"),
            "status": self.status,
            "triggered_at": (
                self.triggered_at.isoformat() if self.triggered_at else None
            ),
            "created_at": self.created_at.isoformat(),
        }
