"""AdSight — Alert Rule Evaluator.

Checks every active, not-yet-triggered rule against its tenant's trailing
7-day aggregates and latches triggered_at when the condition holds.
Runs on demand or from the scheduler; it never changes a rule's status.
"""

from typing import Dict, List

from adsight.alerts.rule_engine import AlertRuleEngine
from adsight.analyzer.aggregator import Aggregator
from adsight.core.logging import get_logger
from adsight.models.alert_models import AlertRule, Dimension
from adsight.models.analysis_models import AggregateResult, MetricFilter

logger = get_logger("alerts.evaluator")

LOOKBACK_DAYS = 7


def _candidates(
    aggregator: Aggregator, rule: AlertRule
) -> Dict[str, AggregateResult]:
    """Aggregates the rule's condition is checked against, keyed by group."""
    query = aggregator.for_days(MetricFilter(client_id=rule.client_id), LOOKBACK_DAYS)
    if rule.dimension == Dimension.CHANNEL.value:
        return aggregator.by_channel(query)
    if rule.dimension == Dimension.CAMPAIGN.value:
        return {k: v for k, v in aggregator.by_campaign(query).items() if k}
    return {"global": aggregator.summarize(query)}


def rule_fires(aggregator: Aggregator, rule: AlertRule) -> bool:
    """True when the condition holds for any group of the rule's dimension."""
    condition = rule.condition
    return any(
        condition.holds(float(getattr(agg, condition.metric)))
        for agg in _candidates(aggregator, rule).values()
    )


def evaluate_rules(engine: AlertRuleEngine, aggregator: Aggregator) -> List[int]:
    """Evaluate all active rules; returns ids of rules latched by this run."""
    triggered: List[int] = []
    now = aggregator.now()

    for rule in engine.store.list_active():
        if rule.triggered_at is not None:
            continue
        if rule_fires(aggregator, rule) and engine.mark_triggered(rule.id, now):
            triggered.append(rule.id)

    logger.info(f"Alert evaluation complete: {len(triggered)} rule(s) triggered")
    return triggered
