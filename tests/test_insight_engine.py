"""Tests for adsight.analyzer.insight_engine."""
import pytest

from adsight.analyzer.insight_engine import generate_insights, percent_change
from adsight.core.errors import ValidationError
from adsight.models.analysis_models import MetricFilter

CURRENT = 5  # days_ago inside the last 30 days
PREVIOUS = 40  # days_ago inside the 30 days before that


def test_percent_change_without_baseline_is_zero():
    assert percent_change(50, 0) == 0.0
    assert percent_change(150, 100) == pytest.approx(50.0)


class TestGenerateInsights:

    def test_growth_period(self, aggregator, add_record):
        add_record(days_ago=PREVIOUS, clicks=100, conversions=10, cost=100)
        add_record(days_ago=CURRENT, clicks=150, conversions=15, cost=100)

        report = generate_insights(aggregator, MetricFilter(client_id=1))

        assert report.changes == {"clicks": 50.0, "conversions": 50.0, "cost": 0.0}
        assert [i.type for i in report.insights] == ["positive", "positive", "info"]
        assert [i.metric for i in report.insights] == ["clicks", "conversions", "channel"]

    def test_cost_outpacing_falling_traffic(self, aggregator, add_record):
        add_record(days_ago=PREVIOUS, clicks=100, conversions=10, cost=100)
        add_record(days_ago=CURRENT, clicks=50, conversions=10, cost=150)

        report = generate_insights(aggregator, MetricFilter(client_id=1))

        assert [i.title for i in report.insights] == [
            "Clicks decreased",
            "Cost outpacing traffic",
            "Best performing channel",
        ]
        assert report.insights[0].value == pytest.approx(-50.0)
        assert report.insights[1].value == pytest.approx(50.0)

    def test_no_previous_period_only_reports_best_channel(self, aggregator, add_record):
        add_record(days_ago=CURRENT, clicks=150, conversions=15, cost=100)
        report = generate_insights(aggregator, MetricFilter(client_id=1))
        assert report.changes == {"clicks": 0.0, "conversions": 0.0, "cost": 0.0}
        assert [i.type for i in report.insights] == ["info"]

    def test_no_records_no_insights(self, aggregator):
        report = generate_insights(aggregator, MetricFilter(client_id=1))
        assert report.insights == []
        assert report.current.record_count == 0

    def test_best_channel_has_most_conversions(self, aggregator, add_record):
        add_record(days_ago=CURRENT, provider="google_ads", conversions=2)
        add_record(days_ago=CURRENT, provider="meta_ads", conversions=5)
        report = generate_insights(aggregator, MetricFilter(client_id=1))
        best = report.insights[-1]
        assert best.value == "meta_ads"
        assert "meta_ads" in best.message

    def test_best_channel_tie_goes_to_first_name(self, aggregator, add_record):
        add_record(days_ago=CURRENT, provider="tiktok_ads", conversions=3)
        add_record(days_ago=CURRENT, provider="google_ads", conversions=3)
        report = generate_insights(aggregator, MetricFilter(client_id=1))
        assert report.insights[-1].value == "google_ads"

    def test_shorter_period(self, aggregator, add_record):
        add_record(days_ago=10, clicks=100)  # previous 7-day window
        add_record(days_ago=2, clicks=200)
        report = generate_insights(aggregator, MetricFilter(client_id=1), period_days=7)
        assert report.period_days == 7
        assert report.changes["clicks"] == pytest.approx(100.0)

    def test_period_must_be_positive(self, aggregator):
        with pytest.raises(ValidationError):
            generate_insights(aggregator, MetricFilter(client_id=1), period_days=0)
