"""AdSight — Metric Registry.

Base metrics are stored on every MetricRecord and summed across records.
Derived metrics are defined by a (numerator, denominator, scale) formula
over base totals and computed ratio-of-sums, never averaged per record.
Alert conditions may reference any metric listed here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class MetricType(str, Enum):
    VOLUME = "volume"
    COST = "cost"
    REVENUE = "revenue"
    DERIVED = "derived"


class Provider(str, Enum):
    """Platform a metric record was synced from. Doubles as the channel."""

    GOOGLE_ADS = "google_ads"
    META_ADS = "meta_ads"
    TIKTOK_ADS = "tiktok_ads"
    GA4 = "ga4"
    MANUAL = "manual"


@dataclass(frozen=True)
class Ratio:
    numerator: str
    denominator: str
    scale: float = 1.0

    def compute(self, totals: Dict[str, float]) -> float:
        """numerator * scale / denominator, 0 when the denominator is 0."""
        denominator = totals.get(self.denominator, 0)
        if not denominator:
            return 0.0
        return totals.get(self.numerator, 0) * self.scale / denominator


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    metric_type: MetricType
    unit: str
    formula: Optional[Ratio] = None


BASE_METRICS: Dict[str, MetricDefinition] = {
    "impressions": MetricDefinition("impressions", MetricType.VOLUME, "count"),
    "clicks": MetricDefinition("clicks", MetricType.VOLUME, "count"),
    "cost": MetricDefinition("cost", MetricType.COST, "currency"),
    "conversions": MetricDefinition("conversions", MetricType.VOLUME, "count"),
    "revenue": MetricDefinition("revenue", MetricType.REVENUE, "currency"),
}

# Order is the field order of AggregateResult
DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "ctr": MetricDefinition("ctr", MetricType.DERIVED, "%", Ratio("clicks", "impressions", 100)),
    "cpm": MetricDefinition("cpm", MetricType.DERIVED, "currency", Ratio("cost", "impressions", 1000)),
    "cpc": MetricDefinition("cpc", MetricType.DERIVED, "currency", Ratio("cost", "clicks")),
    "cpa": MetricDefinition("cpa", MetricType.DERIVED, "currency", Ratio("cost", "conversions")),
    "roas": MetricDefinition("roas", MetricType.DERIVED, "ratio", Ratio("revenue", "cost")),
}

ALL_METRICS: Dict[str, MetricDefinition] = {**BASE_METRICS, **DERIVED_METRICS}


def get_metric(name: str) -> Optional[MetricDefinition]:
    return ALL_METRICS.get(name)
