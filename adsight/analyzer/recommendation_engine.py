"""AdSight — Recommendation Engine.

Evaluates per-channel KPI thresholds over the trailing 7 days:
- Low CTR → improve ad copy / targeting
- High CPA → review bidding
- One channel holding most of the spend → diversify budget
"""

from typing import Dict, List

from adsight.analyzer.aggregator import Aggregator
from adsight.core.logging import get_logger
from adsight.models.analysis_models import AggregateResult, MetricFilter, Recommendation

logger = get_logger("analyzer.recommendation")

LOOKBACK_DAYS = 7

# Thresholds
LOW_CTR_THRESHOLD = 1.0  # %
HIGH_CPA_THRESHOLD = 100.0  # currency units
BUDGET_CONCENTRATION_PCT = 70.0
MIN_CHANNELS_FOR_BUDGET = 2


def _ctr_recommendations(channels: Dict[str, AggregateResult]) -> List[Recommendation]:
    recs = []
    for channel, agg in channels.items():
        # No impressions means no evidence either way
        if agg.impressions > 0 and agg.ctr < LOW_CTR_THRESHOLD:
            recs.append(
                Recommendation(
                    type="optimization",
                    priority="medium",
                    title="Improve CTR",
                    message=(
                        f"CTR on {channel} is {agg.ctr:.2f}%, below "
                        f"{LOW_CTR_THRESHOLD:.0f}%. Review ad copy or targeting"
                    ),
                    action="review_ad_copy",
                    channel=channel,
                    value=agg.ctr,
                )
            )
    return recs


def _cpa_recommendations(
    channels: Dict[str, AggregateResult], currency: str
) -> List[Recommendation]:
    recs = []
    for channel, agg in channels.items():
        if agg.cpa > HIGH_CPA_THRESHOLD:
            recs.append(
                Recommendation(
                    type="cost",
                    priority="high",
                    title="CPA too high",
                    message=(
                        f"CPA on {channel} is {agg.cpa:,.2f} {currency}, above "
                        f"{HIGH_CPA_THRESHOLD:,.0f} {currency}. Revisit the bidding strategy"
                    ),
                    action="optimize_bidding",
                    channel=channel,
                    value=agg.cpa,
                )
            )
    return recs


def _budget_recommendation(
    channels: Dict[str, AggregateResult],
) -> List[Recommendation]:
    if len(channels) < MIN_CHANNELS_FOR_BUDGET:
        return []
    total_cost = sum(agg.cost for agg in channels.values())
    if total_cost <= 0:
        return []

    top = min(channels, key=lambda ch: (-channels[ch].cost, ch))
    share = channels[top].cost / total_cost * 100
    if share <= BUDGET_CONCENTRATION_PCT:
        return []

    return [
        Recommendation(
            type="strategy",
            priority="medium",
            title="Diversify budget",
            message=(
                f"{share:.1f}% of the last {LOOKBACK_DAYS} days' spend went to "
                f"{top}. Consider moving budget to other channels"
            ),
            action="diversify_budget",
            channel=top,
            value=round(share, 1),
        )
    ]


def recommend(
    aggregator: Aggregator, query: MetricFilter, currency: str = "THB"
) -> List[Recommendation]:
    """Advisory recommendations for the filter's tenant over the last 7 days."""
    channels = aggregator.by_channel(aggregator.for_days(query, LOOKBACK_DAYS))

    recommendations = (
        _ctr_recommendations(channels)
        + _cpa_recommendations(channels, currency)
        + _budget_recommendation(channels)
    )

    logger.info(
        f"Produced {len(recommendations)} recommendations across {len(channels)} channels",
        extra={"client_id": query.client_id},
    )
    return recommendations
