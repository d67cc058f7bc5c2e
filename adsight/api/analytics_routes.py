"""AdSight — Analytics API Routes."""

from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from adsight.analyzer.aggregator import DAILY, Aggregator
from adsight.analyzer.anomaly_engine import detect_anomalies
from adsight.analyzer.insight_engine import generate_insights
from adsight.analyzer.query_router import QueryIntentRouter
from adsight.analyzer.recommendation_engine import recommend
from adsight.api.deps import get_aggregator, get_principal, parse_date
from adsight.config import settings
from adsight.core.tenant_scope import ANALYTICS_SCOPE, TenantPrincipal
from adsight.models.analysis_models import (
    AggregateResult,
    AnomalyReport,
    InsightReport,
    MetricFilter,
    QueryAnswer,
    Recommendation,
    TrendPoint,
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


# ── Request Models ──


class QueryRequest(BaseModel):
    """Request body for POST /analytics/query."""

    query: str

    model_config = {
        "json_schema_extra": {
            "examples": [{"query": "What is our CTR?"}, {"query": "ยอดขายเดือนนี้เท่าไร"}]
        }
    }


# ── Helpers ──


def scoped_filter(
    principal: TenantPrincipal = Depends(get_principal),
    client_id: Optional[int] = Query(None, description="Target tenant (privileged roles)"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    provider: Optional[str] = Query(None),
    campaign_id: Optional[str] = Query(None),
) -> MetricFilter:
    """Build the request's MetricFilter with the tenant constraint applied."""
    start = parse_date(start_date, "start_date")
    end = parse_date(end_date, "end_date")
    query = MetricFilter(
        client_id=client_id,
        start=start,
        end=end + timedelta(days=1) if end else None,
        provider=provider,
        campaign_id=campaign_id,
    )
    return ANALYTICS_SCOPE.apply(principal, query)


# ── Endpoints ──


@router.get("/summary", response_model=AggregateResult)
def get_summary(
    query: MetricFilter = Depends(scoped_filter),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """Totals and ratio-of-sums KPIs (default: last 7 days)."""
    return aggregator.summarize(query)


@router.get("/trend", response_model=List[TrendPoint])
def get_trend(
    interval: str = Query(DAILY, description="daily | hourly"),
    query: MetricFilter = Depends(scoped_filter),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """Bucketed totals, ascending (daily: last 7 days, hourly: last 24 hours)."""
    return aggregator.trend(query, interval)


@router.get("/anomalies", response_model=AnomalyReport)
def get_anomalies(
    threshold: float = Query(settings.anomaly_threshold_pct, ge=0),
    query: MetricFilter = Depends(scoped_filter),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """Days deviating from the 7-day mean beyond ``threshold`` percent."""
    return detect_anomalies(aggregator, query, threshold)


@router.get("/insights", response_model=InsightReport)
def get_insights(
    period: int = Query(settings.insight_period_days, ge=1, le=365),
    query: MetricFilter = Depends(scoped_filter),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """Current vs previous period change notices."""
    return generate_insights(aggregator, query, period)


@router.get("/recommendations", response_model=List[Recommendation])
def get_recommendations(
    query: MetricFilter = Depends(scoped_filter),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """Per-channel advisory recommendations over the last 7 days."""
    return recommend(aggregator, query, settings.currency)


@router.post("/query", response_model=QueryAnswer)
def ask(
    request: QueryRequest,
    principal: TenantPrincipal = Depends(get_principal),
    aggregator: Aggregator = Depends(get_aggregator),
):
    """Answer a natural-language question from the fixed intent set."""
    router_ = QueryIntentRouter(aggregator, settings.locale, settings.currency)
    return router_.answer(principal, request.query)
