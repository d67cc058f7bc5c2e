"""AdSight — Metric Store.

Read/write capability over MetricRecord rows. The analyzer only ever sees
the MetricStore protocol, so tests and alternative backends can plug in
their own implementation.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from adsight.core.clock import naive_utc, utcnow
from adsight.core.errors import StoreUnavailable, ValidationError
from adsight.core.logging import get_logger
from adsight.core.metric_registry import BASE_METRICS, Provider
from adsight.models.analysis_models import ChannelSyncStatus, MetricFilter
from adsight.models.metric_models import MetricRecord

logger = get_logger("stores.metrics")

COUNTER_FIELDS = tuple(BASE_METRICS)  # impressions, clicks, cost, conversions, revenue
INTEGER_FIELDS = {"impressions", "clicks", "conversions"}


class MetricStore(Protocol):
    """Capability the analyzer reads metric records through."""

    def query(self, query: MetricFilter) -> List[MetricRecord]: ...

    def upsert(self, rows: Iterable[Dict[str, Any]]) -> int: ...

    def sync_status(self, client_id: Optional[int]) -> List[ChannelSyncStatus]: ...


def _coerce_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            pass
    raise ValidationError(f"Invalid metric timestamp: {value!r}")


def validate_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize one incoming row and enforce the record invariants.

    impressions >= clicks >= 0, and no counter may be negative.
    """
    try:
        client_id = int(row["client_id"])
    except (KeyError, TypeError, ValueError):
        raise ValidationError("Metric row requires an integer client_id")

    provider = str(row.get("provider") or "")
    try:
        Provider(provider)
    except ValueError:
        raise ValidationError(f"Unknown provider: {provider!r}")

    clean: Dict[str, Any] = {
        "client_id": client_id,
        "provider": provider,
        "campaign_id": (
            str(row["campaign_id"]) if row.get("campaign_id") is not None else None
        ),
        "timestamp": _coerce_timestamp(row.get("timestamp")),
    }
    for name in COUNTER_FIELDS:
        raw = row.get(name) or 0
        try:
            value = int(raw) if name in INTEGER_FIELDS else float(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"Metric '{name}' must be numeric, got {raw!r}")
        if value < 0:
            raise ValidationError(f"Metric '{name}' must be >= 0, got {value}")
        clean[name] = value

    if clean["clicks"] > clean["impressions"]:
        raise ValidationError(
            f"clicks ({clean['clicks']}) exceed impressions ({clean['impressions']})"
        )
    return clean


class SQLMetricStore:
    """MetricStore backed by the SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def query(self, query: MetricFilter) -> List[MetricRecord]:
        stmt = select(MetricRecord)
        if query.client_id is not None:
            stmt = stmt.where(MetricRecord.client_id == query.client_id)
        if query.start is not None:
            stmt = stmt.where(MetricRecord.timestamp >= query.start)
        if query.end is not None:
            stmt = stmt.where(MetricRecord.timestamp < query.end)
        if query.provider:
            stmt = stmt.where(MetricRecord.provider == query.provider)
        if query.campaign_id:
            stmt = stmt.where(MetricRecord.campaign_id == query.campaign_id)
        stmt = stmt.order_by(MetricRecord.timestamp, MetricRecord.id)

        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Metric query failed: {e}")
            raise StoreUnavailable("Metric store query failed") from e

    def upsert(self, rows: Iterable[Dict[str, Any]]) -> int:
        """Insert rows, adding counters onto any row with the same key.

        The whole batch commits or rolls back together.
        """
        clean_rows = [validate_row(r) for r in rows]
        if not clean_rows:
            return 0

        try:
            for row in clean_rows:
                existing = self.session.exec(
                    select(MetricRecord).where(
                        MetricRecord.client_id == row["client_id"],
                        MetricRecord.provider == row["provider"],
                        MetricRecord.campaign_id == row["campaign_id"],
                        MetricRecord.timestamp == row["timestamp"],
                    )
                ).first()
                if existing is None:
                    self.session.add(MetricRecord(**row))
                    self.session.flush()
                    continue
                for name in COUNTER_FIELDS:
                    setattr(existing, name, getattr(existing, name) + row[name])
                existing.updated_at = utcnow()
                self.session.add(existing)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Metric upsert failed: {e}")
            raise StoreUnavailable("Metric store write failed") from e

        logger.info(f"Upserted {len(clean_rows)} metric rows")
        return len(clean_rows)

    def sync_status(self, client_id: Optional[int]) -> List[ChannelSyncStatus]:
        stmt = select(
            MetricRecord.provider,
            func.max(MetricRecord.timestamp),
            func.count(MetricRecord.id),
        )
        if client_id is not None:
            stmt = stmt.where(MetricRecord.client_id == client_id)
        stmt = stmt.group_by(MetricRecord.provider).order_by(MetricRecord.provider)

        try:
            rows = self.session.exec(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Sync status query failed: {e}")
            raise StoreUnavailable("Metric store query failed") from e

        return [
            ChannelSyncStatus(
                provider=provider,
                last_sync=last.isoformat() if last else None,
                total_records=count,
            )
            for provider, last, count in rows
        ]
