"""Tests for adsight.analyzer.anomaly_engine."""
from datetime import datetime

import pytest

from adsight.analyzer.anomaly_engine import detect_anomalies
from adsight.core.errors import Outcome, ValidationError
from adsight.models.analysis_models import MetricFilter


@pytest.fixture
def week(add_record):
    """Seed one record per day for the last 7 days, overriding given days."""
    def _seed(overrides=None):
        for days_ago in range(7):
            values = dict(clicks=100, cost=10.0, conversions=1)
            values.update((overrides or {}).get(days_ago, {}))
            add_record(days_ago=days_ago, **values)
    return _seed


def test_single_day_is_insufficient(aggregator, add_record):
    add_record(days_ago=0)
    report = detect_anomalies(aggregator, MetricFilter(client_id=1))
    assert report.outcome is Outcome.INSUFFICIENT_DATA
    assert report.days_analyzed == 1
    assert report.anomalies == []


def test_no_data_is_insufficient(aggregator):
    report = detect_anomalies(aggregator, MetricFilter(client_id=1))
    assert report.outcome is Outcome.INSUFFICIENT_DATA
    assert report.days_analyzed == 0


def test_click_drop_is_flagged(aggregator, week):
    week({1: {"clicks": 30}})

    report = detect_anomalies(aggregator, MetricFilter(client_id=1))

    assert report.outcome is Outcome.OK
    assert report.days_analyzed == 7
    assert len(report.anomalies) == 1
    anomaly = report.anomalies[0]
    assert anomaly.date == "2026-10-18"
    assert anomaly.metric == "clicks"
    assert anomaly.direction == "low"
    assert anomaly.deviation_pct == pytest.approx(-66.7)
    assert anomaly.average == pytest.approx(90.0)
    assert anomaly.message == "Clicks on 2026-10-18 were 66.7% below the 7-day average"


def test_zero_mean_metric_is_never_flagged(aggregator, week):
    week({d: {"conversions": 0} for d in range(7)})
    report = detect_anomalies(aggregator, MetricFilter(client_id=1))
    assert report.outcome is Outcome.OK
    assert report.anomalies == []


def test_conversion_spike_is_not_flagged(aggregator, week):
    week({2: {"conversions": 10}})
    report = detect_anomalies(aggregator, MetricFilter(client_id=1), threshold_pct=60)
    assert report.anomalies == []


def test_cost_spike_is_flagged_high(aggregator, week):
    week({2: {"cost": 40.0}})

    report = detect_anomalies(aggregator, MetricFilter(client_id=1), threshold_pct=50)

    assert [(a.date, a.metric, a.direction) for a in report.anomalies] == [
        ("2026-10-17", "cost", "high"),
    ]
    assert "above" in report.anomalies[0].message


def test_most_recent_day_is_not_judged(aggregator, week):
    week({0: {"clicks": 30}})
    report = detect_anomalies(aggregator, MetricFilter(client_id=1))
    assert report.outcome is Outcome.OK
    assert report.anomalies == []


def test_anomalies_are_newest_first(aggregator, week):
    week({1: {"clicks": 20}, 3: {"clicks": 20}})
    report = detect_anomalies(aggregator, MetricFilter(client_id=1), threshold_pct=50)
    assert [a.date for a in report.anomalies] == ["2026-10-18", "2026-10-16"]


def test_other_tenants_do_not_affect_mean(aggregator, week, add_record):
    week({1: {"clicks": 30}})
    add_record(client_id=2, days_ago=1, clicks=900)
    report = detect_anomalies(aggregator, MetricFilter(client_id=1))
    assert [a.date for a in report.anomalies] == ["2026-10-18"]


def test_negative_threshold_is_rejected(aggregator):
    with pytest.raises(ValidationError):
        detect_anomalies(aggregator, MetricFilter(client_id=1), threshold_pct=-1)


def test_deterministic(aggregator, week):
    week({1: {"clicks": 30}, 4: {"cost": 50.0}})
    query = MetricFilter(client_id=1)
    assert detect_anomalies(aggregator, query) == detect_anomalies(aggregator, query)


def test_window_is_trailing_seven_days_whatever_the_range(aggregator, week, add_record):
    week()
    add_record(days_ago=25, clicks=5000, impressions=10000)
    query = MetricFilter(
        client_id=1, start=datetime(2026, 9, 19), end=datetime(2026, 10, 20)
    )

    report = detect_anomalies(aggregator, query)

    assert report.days_analyzed == 7
    assert report.anomalies == []


def test_provider_constraint_still_applies(aggregator, week, add_record):
    week({1: {"clicks": 30}})
    add_record(days_ago=2, provider="meta_ads", clicks=900)
    report = detect_anomalies(aggregator, MetricFilter(client_id=1, provider="google_ads"))
    assert [(a.date, a.metric) for a in report.anomalies] == [("2026-10-18", "clicks")]
