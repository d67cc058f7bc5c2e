"""AdSight — Insight Engine.

Compares the current period against the immediately preceding period of
equal length and emits qualitative change notices.
"""

from datetime import timedelta
from typing import Dict, List

from adsight.analyzer.aggregator import Aggregator, last_n_days
from adsight.core.errors import ValidationError
from adsight.core.logging import get_logger
from adsight.models.analysis_models import (
    AggregateResult,
    Insight,
    InsightReport,
    MetricFilter,
)

logger = get_logger("analyzer.insight")

DEFAULT_PERIOD_DAYS = 30

# Thresholds (% change period over period)
CLICKS_UP_PCT = 10.0
CLICKS_DOWN_PCT = -10.0
CONVERSIONS_UP_PCT = 10.0
COST_UP_PCT = 20.0
COST_TRAFFIC_PCT = 10.0  # cost rising while clicks grow less than this


def percent_change(current: float, previous: float) -> float:
    """Period-over-period change in %, 0 when there is no baseline."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def _changes(current: AggregateResult, previous: AggregateResult) -> Dict[str, float]:
    return {
        metric: round(
            percent_change(getattr(current, metric), getattr(previous, metric)), 1
        )
        for metric in ("clicks", "conversions", "cost")
    }


def generate_insights(
    aggregator: Aggregator,
    query: MetricFilter,
    period_days: int = DEFAULT_PERIOD_DAYS,
) -> InsightReport:
    """Run the fixed, ordered insight rule set. Several rules may fire."""
    if period_days < 1:
        raise ValidationError("period_days must be >= 1")

    start, end = last_n_days(aggregator.now(), period_days)
    current_q = query.model_copy(update={"start": start, "end": end})
    previous_q = query.model_copy(
        update={"start": start - timedelta(days=period_days), "end": start}
    )

    current = aggregator.summarize(current_q)
    previous = aggregator.summarize(previous_q)
    changes = _changes(current, previous)
    clicks, conversions, cost = changes["clicks"], changes["conversions"], changes["cost"]

    insights: List[Insight] = []

    if clicks > CLICKS_UP_PCT:
        insights.append(
            Insight(
                type="positive",
                title="Clicks increased",
                message=f"Clicks rose {clicks}% compared with the previous {period_days} days",
                metric="clicks",
                value=clicks,
            )
        )
    elif clicks < CLICKS_DOWN_PCT:
        insights.append(
            Insight(
                type="warning",
                title="Clicks decreased",
                message=(
                    f"Clicks fell {abs(clicks)}% compared with the previous "
                    f"{period_days} days. Review targeting and creatives"
                ),
                metric="clicks",
                value=clicks,
            )
        )

    if conversions > CONVERSIONS_UP_PCT:
        insights.append(
            Insight(
                type="positive",
                title="Conversions increased",
                message=f"Conversions rose {conversions}% compared with the previous {period_days} days",
                metric="conversions",
                value=conversions,
            )
        )

    if cost > COST_UP_PCT and clicks < COST_TRAFFIC_PCT:
        insights.append(
            Insight(
                type="warning",
                title="Cost outpacing traffic",
                message=f"Cost rose {cost}% while clicks changed only {clicks}%",
                metric="cost",
                value=cost,
            )
        )

    channels = aggregator.by_channel(current_q)
    if channels:
        # Highest conversions; ties go to the alphabetically first channel
        best = min(channels, key=lambda ch: (-channels[ch].conversions, ch))
        insights.append(
            Insight(
                type="info",
                title="Best performing channel",
                message=(
                    f"{best} delivered the most conversions "
                    f"({channels[best].conversions}) in the last {period_days} days"
                ),
                metric="channel",
                value=best,
            )
        )

    logger.info(
        f"Generated {len(insights)} insights over {period_days} days",
        extra={"client_id": query.client_id},
    )
    return InsightReport(
        period_days=period_days,
        current=current,
        previous=previous,
        changes=changes,
        insights=insights,
    )
