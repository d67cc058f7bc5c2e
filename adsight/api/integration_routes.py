"""AdSight — Platform Integration Routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from adsight.api.deps import get_metric_store, get_principal, parse_date
from adsight.connectors.sync import sync_all_platforms, sync_status
from adsight.core.logging import get_logger
from adsight.core.tenant_scope import TenantPrincipal
from adsight.models.analysis_models import SyncReport
from adsight.stores.metric_store import SQLMetricStore

logger = get_logger("api.integrations")

router = APIRouter(prefix="/integrations", tags=["Integrations"])


class SyncRequest(BaseModel):
    """Request body for POST /integrations/sync."""

    client_id: Optional[int] = None
    """Target tenant; honoured for privileged roles only."""
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@router.post("/sync", response_model=SyncReport)
async def trigger_sync(
    request: SyncRequest,
    principal: TenantPrincipal = Depends(get_principal),
    store: SQLMetricStore = Depends(get_metric_store),
):
    """Pull every connected platform and upsert the rows additively."""
    logger.info(
        f"Sync requested by user {principal.id}",
        extra={"client_id": request.client_id or principal.client_id},
    )
    return await sync_all_platforms(
        principal,
        store,
        target_client_id=request.client_id,
        start=parse_date(request.start_date, "start_date"),
        end=parse_date(request.end_date, "end_date"),
    )


@router.get("/status")
def get_sync_status(
    principal: TenantPrincipal = Depends(get_principal),
    store: SQLMetricStore = Depends(get_metric_store),
):
    """Last synced record and record count per provider."""
    rows = sync_status(principal, store)
    return {"status": "success", "data": [r.model_dump() for r in rows]}
