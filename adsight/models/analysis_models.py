"""AdSight — Analysis Output Models.

Everything here is computed per request and never persisted. Models stay
flat (primitives, lists and maps) so they serialize straight to JSON.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from adsight.core.errors import Outcome


# ─────────────────────────────────────────────
# QUERY FILTER
# ─────────────────────────────────────────────


class MetricFilter(BaseModel):
    """Which metric records an aggregate covers.

    ``start`` is inclusive and ``end`` exclusive; both naive UTC. A missing
    bound means "use the operation's default lookback". ``client_id=None``
    means all tenants and is only produced by TenantScope for privileged
    principals.
    """

    client_id: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    provider: Optional[str] = None
    campaign_id: Optional[str] = None

    model_config = {"frozen": True}


# ─────────────────────────────────────────────
# AGGREGATES
# ─────────────────────────────────────────────


class AggregateResult(BaseModel):
    """Totals plus ratio-of-sums derived KPIs."""

    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    conversions: int = 0
    revenue: float = 0.0
    ctr: float = 0.0  # %
    cpm: float = 0.0
    cpc: float = 0.0
    cpa: float = 0.0
    roas: float = 0.0
    record_count: int = 0


class TrendPoint(AggregateResult):
    """Totals for one daily or hourly bucket."""

    bucket: str  # "YYYY-MM-DD" or "YYYY-MM-DDTHH:00"


# ─────────────────────────────────────────────
# ANOMALIES
# ─────────────────────────────────────────────


class Anomaly(BaseModel):
    """A day whose metric deviates from the rolling window mean."""

    date: str
    metric: str  # "clicks" | "cost" | "conversions"
    direction: str  # "high" | "low"
    value: float
    average: float
    deviation_pct: float
    message: str


class AnomalyReport(BaseModel):
    outcome: Outcome = Outcome.OK
    threshold_pct: float
    days_analyzed: int = 0
    anomalies: List[Anomaly] = []
    message: str = ""


# ─────────────────────────────────────────────
# INSIGHTS
# ─────────────────────────────────────────────


class Insight(BaseModel):
    """Qualitative period-over-period change notice."""

    type: str  # "positive" | "warning" | "info"
    title: str
    message: str
    metric: str
    value: float | str


class InsightReport(BaseModel):
    period_days: int
    current: AggregateResult
    previous: AggregateResult
    changes: Dict[str, float] = {}
    insights: List[Insight] = []


# ─────────────────────────────────────────────
# RECOMMENDATIONS
# ─────────────────────────────────────────────


class Recommendation(BaseModel):
    """Advisory text only; nothing is acted on automatically."""

    type: str  # "optimization" | "cost" | "strategy"
    priority: str  # "low" | "medium" | "high"
    title: str
    message: str
    action: str
    channel: str
    value: float


# ─────────────────────────────────────────────
# NATURAL LANGUAGE QUERY
# ─────────────────────────────────────────────


class QueryAnswer(BaseModel):
    matched: bool
    intent: Optional[str] = None
    outcome: Outcome = Outcome.OK
    query: str
    answer_text: str
    supporting_data: Dict[str, Any] = {}
    suggestions: List[str] = []


# ─────────────────────────────────────────────
# SYNC
# ─────────────────────────────────────────────


class ChannelSyncStatus(BaseModel):
    provider: str
    last_sync: Optional[str] = None
    total_records: int = 0


class PlatformSyncResult(BaseModel):
    provider: str
    success: bool
    rows: int = 0
    error: Optional[str] = None


class SyncReport(BaseModel):
    client_id: int
    start: str
    end: str
    platforms: List[PlatformSyncResult] = []
    rows_written: int = 0
