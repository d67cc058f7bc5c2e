"""AdSight — Platform Sync.

Pulls rows from every connector concurrently, normalizes them into the
MetricRecord schema and upserts them additively into the metric store.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from adsight.connectors.base import PlatformConnector
from adsight.connectors.stubs import default_connectors
from adsight.core.clock import naive_utc, utcnow
from adsight.core.errors import ValidationError
from adsight.core.logging import get_logger
from adsight.core.tenant_scope import ANALYTICS_SCOPE, TenantPrincipal
from adsight.models.analysis_models import (
    ChannelSyncStatus,
    PlatformSyncResult,
    SyncReport,
)
from adsight.stores.metric_store import MetricStore

logger = get_logger("connectors.sync")

DEFAULT_SYNC_DAYS = 30


def _first(row: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return default


def transform_rows(
    rows: List[Dict[str, Any]], provider: str, client_id: int
) -> List[Dict[str, Any]]:
    """Map platform rows onto MetricRecord fields."""
    return [
        {
            "client_id": client_id,
            "provider": provider,
            "campaign_id": _first(row, "campaign_id", "campaign", "campaign_name"),
            "timestamp": _first(row, "timestamp", "date", "date_start"),
            "impressions": _first(row, "impressions", default=0),
            "clicks": _first(row, "clicks", default=0),
            "cost": _first(row, "cost", "spend", default=0),
            "conversions": _first(row, "conversions", default=0),
            "revenue": _first(row, "revenue", "purchase_value", default=0),
        }
        for row in rows
    ]


async def sync_all_platforms(
    principal: TenantPrincipal,
    store: MetricStore,
    target_client_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    connectors: Optional[Sequence[PlatformConnector]] = None,
) -> SyncReport:
    """Fetch every platform for one tenant and store the rows additively.

    Privileged principals may sync another tenant; everyone else syncs
    their own. A failing platform is reported, not raised, so the others
    still land.
    """
    client_id = ANALYTICS_SCOPE.client_constraint(principal, target_client_id)
    if client_id is None:
        client_id = principal.client_id
    if client_id is None:
        raise ValidationError("A target client_id is required to sync")

    end = naive_utc(end) if end else utcnow()
    start = naive_utc(start) if start else end - timedelta(days=DEFAULT_SYNC_DAYS)
    connectors = list(connectors if connectors is not None else default_connectors())

    available = [c for c in connectors if c.is_available()]
    fetched = await asyncio.gather(
        *(c.fetch(client_id, start, end) for c in available), return_exceptions=True
    )

    report = SyncReport(client_id=client_id, start=start.isoformat(), end=end.isoformat())
    for connector, result in zip(available, fetched):
        provider = connector.provider.value
        if isinstance(result, BaseException):
            logger.error(
                f"{provider} fetch failed: {result}", extra={"client_id": client_id}
            )
            report.platforms.append(
                PlatformSyncResult(provider=provider, success=False, error=str(result))
            )
            continue

        try:
            written = store.upsert(transform_rows(result, provider, client_id))
        except ValidationError as e:
            logger.error(
                f"{provider} rows rejected: {e}", extra={"client_id": client_id}
            )
            report.platforms.append(
                PlatformSyncResult(provider=provider, success=False, error=str(e))
            )
            continue
        report.rows_written += written
        report.platforms.append(
            PlatformSyncResult(provider=provider, success=True, rows=written)
        )

    logger.info(
        f"Sync completed: {report.rows_written} rows from {len(available)} platforms",
        extra={"client_id": client_id},
    )
    return report


def sync_status(
    principal: TenantPrincipal, store: MetricStore
) -> List[ChannelSyncStatus]:
    """Last record time and record count per provider, tenant-scoped."""
    return store.sync_status(ANALYTICS_SCOPE.client_constraint(principal))
