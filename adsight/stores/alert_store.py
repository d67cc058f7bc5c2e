"""AdSight — Alert Rule Store.

Persistence capability for AlertRule rows. Mutations are single-statement
and therefore atomic per row; concurrent updates resolve last-write-wins.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from adsight.core.errors import StoreUnavailable
from adsight.core.logging import get_logger
from adsight.models.alert_models import AlertRule, RuleStatus

logger = get_logger("stores.alerts")


class AlertRuleStore(Protocol):
    def add(self, rule: AlertRule) -> AlertRule: ...

    def list(self, client_id: Optional[int]) -> List[AlertRule]: ...

    def list_active(self) -> List[AlertRule]: ...

    def update_status(
        self, rule_id: int, client_id: Optional[int], status: str
    ) -> Optional[AlertRule]: ...

    def set_triggered(self, rule_id: int, at: datetime) -> bool: ...


class SQLAlertRuleStore:
    """AlertRuleStore backed by the SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def _fail(self, action: str, e: Exception) -> StoreUnavailable:
        self.session.rollback()
        logger.error(f"Alert rule {action} failed: {e}")
        return StoreUnavailable(f"Alert rule store {action} failed")

    def add(self, rule: AlertRule) -> AlertRule:
        try:
            self.session.add(rule)
            self.session.commit()
            self.session.refresh(rule)
        except SQLAlchemyError as e:
            raise self._fail("insert", e) from e
        return rule

    def get(self, rule_id: int) -> Optional[AlertRule]:
        try:
            return self.session.get(AlertRule, rule_id)
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e

    def list(self, client_id: Optional[int]) -> List[AlertRule]:
        stmt = select(AlertRule)
        if client_id is not None:
            stmt = stmt.where(AlertRule.client_id == client_id)
        stmt = stmt.order_by(AlertRule.created_at.desc(), AlertRule.id.desc())  # type: ignore
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e

    def list_active(self) -> List[AlertRule]:
        stmt = (
            select(AlertRule)
            .where(AlertRule.status == RuleStatus.ACTIVE.value)
            .order_by(AlertRule.id)
        )
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as e:
            raise self._fail("read", e) from e

    def update_status(
        self, rule_id: int, client_id: Optional[int], status: str
    ) -> Optional[AlertRule]:
        """Set status and clear the trigger latch in one scoped UPDATE.

        Returns None when no row matches both id and tenant.
        """
        stmt = (
            update(AlertRule)
            .where(AlertRule.id == rule_id)
            .values(status=status, triggered_at=None)
        )
        if client_id is not None:
            stmt = stmt.where(AlertRule.client_id == client_id)

        try:
            result = self.session.exec(stmt)  # type: ignore[call-overload]
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("update", e) from e

        if result.rowcount == 0:
            return None
        return self.get(rule_id)

    def set_triggered(self, rule_id: int, at: datetime) -> bool:
        """Latch triggered_at if it is still empty. Returns True if latched."""
        stmt = (
            update(AlertRule)
            .where(AlertRule.id == rule_id, AlertRule.triggered_at.is_(None))  # type: ignore
            .values(triggered_at=at)
        )
        try:
            result = self.session.exec(stmt)  # type: ignore[call-overload]
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("update", e) from e
        return result.rowcount > 0
