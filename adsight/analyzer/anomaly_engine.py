"""AdSight — Anomaly Engine.

Flags days whose clicks, cost or conversions deviate from the rolling
7-day mean by more than a percentage threshold.
"""

from typing import List

from adsight.analyzer.aggregator import DAILY, Aggregator
from adsight.core.errors import Outcome, ValidationError
from adsight.core.logging import get_logger
from adsight.models.analysis_models import (
    Anomaly,
    AnomalyReport,
    MetricFilter,
    TrendPoint,
)

logger = get_logger("analyzer.anomaly")

DEFAULT_THRESHOLD_PCT = 20.0
WINDOW_DAYS = 7
MIN_BUCKETS = 2

# Metrics checked per day, in output order. The flag says whether a spike
# (positive deviation) is reported; drops are always reported.
CHECKED_METRICS = (
    ("clicks", True),
    ("cost", True),
    ("conversions", False),  # a conversion spike is not actionable
)

LABELS = {"clicks": "Clicks", "cost": "Cost", "conversions": "Conversions"}


def _mean(points: List[TrendPoint], metric: str) -> float:
    return sum(getattr(p, metric) for p in points) / len(points)


def detect_anomalies(
    aggregator: Aggregator,
    query: MetricFilter,
    threshold_pct: float = DEFAULT_THRESHOLD_PCT,
) -> AnomalyReport:
    """Detect daily anomalies over the trailing 7 days.

    Only the filter's tenant, provider and campaign apply; its date range
    is replaced so the mean is always the 7-day average.
    """
    if threshold_pct < 0:
        raise ValidationError("threshold_pct must be >= 0")

    points = aggregator.trend(
        aggregator.for_days(query, WINDOW_DAYS), DAILY, fill_gaps=False
    )

    if len(points) < MIN_BUCKETS:
        logger.info(f"Anomaly detection skipped: {len(points)} daily bucket(s)")
        return AnomalyReport(
            outcome=Outcome.INSUFFICIENT_DATA,
            threshold_pct=threshold_pct,
            days_analyzed=len(points),
            message="Not enough daily data to detect anomalies",
        )

    means = {metric: _mean(points, metric) for metric, _ in CHECKED_METRICS}
    anomalies: List[Anomaly] = []

    # Newest first; the most recent (possibly partial) day is not judged.
    for point in reversed(points[:-1]):
        for metric, flag_spikes in CHECKED_METRICS:
            mean = means[metric]
            if mean == 0:
                continue
            value = float(getattr(point, metric))
            deviation = (value - mean) / mean * 100

            if deviation < -threshold_pct:
                direction = "low"
            elif flag_spikes and deviation > threshold_pct:
                direction = "high"
            else:
                continue

            verb = "above" if direction == "high" else "below"
            anomalies.append(
                Anomaly(
                    date=point.bucket,
                    metric=metric,
                    direction=direction,
                    value=round(value, 4),
                    average=round(mean, 4),
                    deviation_pct=round(deviation, 1),
                    message=(
                        f"{LABELS[metric]} on {point.bucket} were "
                        f"{abs(deviation):.1f}% {verb} the 7-day average"
                    ),
                )
            )

    logger.info(
        f"Anomaly detection: {len(anomalies)} anomalies across {len(points)} days",
        extra={"client_id": query.client_id},
    )
    return AnomalyReport(
        outcome=Outcome.OK,
        threshold_pct=threshold_pct,
        days_analyzed=len(points),
        anomalies=anomalies,
    )
