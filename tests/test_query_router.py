"""Tests for adsight.analyzer.query_router."""
import pytest

from adsight.analyzer.query_router import QueryIntentRouter
from adsight.core.errors import Outcome, ValidationError


@pytest.fixture
def seeded(add_record):
    add_record(client_id=1, campaign_id="a", impressions=1000, clicks=100,
               cost=50, conversions=5, revenue=500)
    add_record(client_id=1, campaign_id="b", impressions=500, clicks=50,
               cost=25, conversions=2, revenue=100)
    add_record(client_id=2, impressions=5000, clicks=999, cost=999, revenue=10)


@pytest.fixture
def router(aggregator):
    return QueryIntentRouter(aggregator)


@pytest.mark.usefixtures("seeded")
class TestIntents:

    def test_revenue(self, router, viewer):
        answer = router.answer(viewer, "What is revenue this month?")
        assert answer.matched is True
        assert answer.intent == "revenue"
        assert answer.outcome is Outcome.OK
        assert answer.answer_text == (
            "Total revenue for the last 30 days: 600.00 THB from 7 conversions"
        )
        assert answer.supporting_data["revenue"] == pytest.approx(600.0)

    def test_clicks(self, router, viewer):
        answer = router.answer(viewer, "How many clicks last week?")
        assert answer.intent == "clicks"
        assert answer.answer_text == "Clicks in the last 7 days: 150"

    def test_ctr(self, router, viewer):
        answer = router.answer(viewer, "What is our CTR?")
        assert answer.intent == "ctr"
        assert answer.answer_text == "Average CTR for the last 7 days: 10.00%"

    def test_roi(self, router, viewer):
        answer = router.answer(viewer, "What are ROI and ROAS?")
        assert answer.intent == "roi"
        assert answer.answer_text == "ROI: 700.00%, ROAS: 8.00x (last 30 days)"

    def test_first_matching_intent_wins(self, router, viewer):
        answer = router.answer(viewer, "revenue per click")
        assert answer.intent == "revenue"

    def test_viewer_only_sees_own_tenant(self, router, viewer):
        answer = router.answer(viewer, "clicks?")
        assert answer.supporting_data["clicks"] == 150

    def test_privileged_caller_sees_all_tenants(self, router, admin):
        answer = router.answer(admin, "clicks?")
        assert answer.supporting_data["clicks"] == 150 + 999

    def test_thai_locale(self, aggregator, viewer):
        router = QueryIntentRouter(aggregator, locale="th")
        answer = router.answer(viewer, "ยอดขายเดือนนี้เท่าไร")
        assert answer.intent == "revenue"
        assert answer.answer_text.startswith("ยอดขายรวม 30 วันล่าสุด: 600.00 THB")

    def test_deterministic(self, router, viewer):
        assert router.answer(viewer, "ctr") == router.answer(viewer, "ctr")


def test_unmatched_question_falls_back(router, viewer):
    answer = router.answer(viewer, "Tell me a joke")
    assert answer.matched is False
    assert answer.intent is None
    assert answer.outcome is Outcome.INSUFFICIENT_DATA
    assert answer.answer_text.startswith("Sorry")
    assert answer.suggestions


def test_roi_without_cost_is_zero(router, viewer, add_record):
    add_record(cost=0, revenue=100, conversions=1)
    answer = router.answer(viewer, "roi")
    assert answer.supporting_data["roi"] == 0
    assert answer.supporting_data["roas"] == 0


def test_unknown_locale_uses_english(aggregator):
    assert QueryIntentRouter(aggregator, locale="fr").locale == "en"


@pytest.mark.parametrize("text", ["", "   "])
def test_empty_question_is_rejected(router, viewer, text):
    with pytest.raises(ValidationError):
        router.answer(viewer, text)


class TestTopCampaign:

    def test_names_campaign_with_most_conversions(self, router, viewer, add_record):
        add_record(campaign_id="spring", conversions=3, cost=30, revenue=90)
        add_record(campaign_id="summer", conversions=8, cost=40, revenue=200)
        add_record(campaign_id=None, conversions=50)

        answer = router.answer(viewer, "Which campaign performs best?")

        assert answer.intent == "top_campaign"
        assert answer.outcome is Outcome.OK
        assert answer.answer_text == (
            "Best campaign in the last 30 days: summer with 8 conversions (ROAS 5.00x)"
        )
        assert answer.supporting_data["campaign_id"] == "summer"

    def test_thai_question(self, aggregator, viewer, add_record):
        add_record(campaign_id="spring", conversions=3)
        answer = QueryIntentRouter(aggregator, locale="th").answer(viewer, "แคมเปญไหนทำงานดีที่สุด")
        assert answer.intent == "top_campaign"
        assert answer.answer_text.startswith("แคมเปญที่ดีที่สุด 30 วันล่าสุด: spring")

    def test_no_campaign_data(self, router, viewer):
        answer = router.answer(viewer, "best campaign?")
        assert answer.matched is True
        assert answer.outcome is Outcome.INSUFFICIENT_DATA
        assert answer.answer_text == "No campaign data for the last 30 days"


def test_fallback_suggestions_cover_every_intent(router, viewer):
    suggestions = router.answer(viewer, "hello").suggestions
    assert len(suggestions) == 5
    assert [router.match(s).name for s in suggestions] == [
        "revenue", "clicks", "ctr", "roi", "top_campaign",
    ]


def test_thai_suggestions_include_campaign_question(aggregator, viewer):
    answer = QueryIntentRouter(aggregator, locale="th").answer(viewer, "สวัสดี")
    assert answer.suggestions[-1] == "แคมเปญไหนทำงานดีที่สุด"
