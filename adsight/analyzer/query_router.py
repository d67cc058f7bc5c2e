"""AdSight — Query Intent Router.

Answers a closed set of natural-language questions. Each intent is a
fixed (keywords → aggregate query) mapping evaluated top to bottom; the
first intent whose keyword appears in the question wins. Adding a
question type means adding an Intent to INTENTS, nothing is learned.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from adsight.analyzer.aggregator import Aggregator
from adsight.core.errors import Outcome, ValidationError
from adsight.core.logging import get_logger
from adsight.core.tenant_scope import ANALYTICS_SCOPE, TenantPrincipal
from adsight.models.analysis_models import MetricFilter, QueryAnswer

logger = get_logger("analyzer.query")

# ── Localized templates ──

TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        "revenue": "Total revenue for the last 30 days: {revenue} {currency} from {conversions} conversions",
        "clicks": "Clicks in the last 7 days: {clicks}",
        "ctr": "Average CTR for the last 7 days: {ctr}%",
        "roi": "ROI: {roi}%, ROAS: {roas}x (last 30 days)",
        "top_campaign": "Best campaign in the last 30 days: {campaign} with {conversions} conversions (ROAS {roas}x)",
        "no_campaign_data": "No campaign data for the last 30 days",
        "fallback": (
            "Sorry, I could not understand the question. "
            'Try asking e.g. "What is revenue this month?" or "What is our CTR?"'
        ),
    },
    "th": {
        "revenue": "ยอดขายรวม 30 วันล่าสุด: {revenue} {currency} จาก {conversions} คอนเวอร์ชัน",
        "clicks": "จำนวนคลิก 7 วันล่าสุด: {clicks} คลิก",
        "ctr": "CTR เฉลี่ย 7 วันล่าสุด: {ctr}%",
        "roi": "ROI: {roi}%, ROAS: {roas}x (30 วันล่าสุด)",
        "top_campaign": "แคมเปญที่ดีที่สุด 30 วันล่าสุด: {campaign} มี {conversions} คอนเวอร์ชัน (ROAS {roas}x)",
        "no_campaign_data": "ไม่มีข้อมูลแคมเปญใน 30 วันล่าสุด",
        "fallback": (
            "ขออภัย ไม่สามารถเข้าใจคำถามได้ กรุณาลองถามใหม่ "
            'เช่น "ยอดขายเดือนนี้เท่าไร" หรือ "CTR เป็นเท่าไร"'
        ),
    },
}

SUGGESTIONS: Dict[str, List[str]] = {
    "en": [
        "What is revenue this month?",
        "How many clicks in the last 7 days?",
        "What is our CTR?",
        "What are ROI and ROAS?",
        "Which campaign performs best?",
    ],
    "th": [
        "ยอดขายเดือนนี้เท่าไร",
        "จำนวนคลิก 7 วันล่าสุด",
        "CTR เป็นเท่าไร",
        "ROI และ ROAS เป็นเท่าไร",
        "แคมเปญไหนทำงานดีที่สุด",
    ],
}

# handler(aggregator, scoped filter) -> (template variables, supporting data).
# A handler with nothing to report returns (None, {"empty": <template key>}).
Handler = Callable[
    [Aggregator, MetricFilter], Tuple[Optional[Dict[str, Any]], Dict[str, Any]]
]


@dataclass(frozen=True)
class Intent:
    name: str
    keywords: Tuple[str, ...]
    handler: Handler

    def matches(self, text: str) -> bool:
        return any(k in text for k in self.keywords)


# ── Intent handlers ──


def _revenue(aggregator: Aggregator, query: MetricFilter):
    agg = aggregator.summarize(aggregator.for_days(query, 30))
    return (
        {"revenue": f"{agg.revenue:,.2f}", "conversions": f"{agg.conversions:,}"},
        {"revenue": agg.revenue, "conversions": agg.conversions, "days": 30},
    )


def _clicks(aggregator: Aggregator, query: MetricFilter):
    agg = aggregator.summarize(aggregator.for_days(query, 7))
    return {"clicks": f"{agg.clicks:,}"}, {"clicks": agg.clicks, "days": 7}


def _ctr(aggregator: Aggregator, query: MetricFilter):
    agg = aggregator.summarize(aggregator.for_days(query, 7))
    return (
        {"ctr": f"{agg.ctr:.2f}"},
        {
            "ctr": agg.ctr,
            "clicks": agg.clicks,
            "impressions": agg.impressions,
            "days": 7,
        },
    )


def _roi(aggregator: Aggregator, query: MetricFilter):
    agg = aggregator.summarize(aggregator.for_days(query, 30))
    cost, revenue = agg.cost, agg.revenue
    roi = (revenue - cost) / cost * 100 if cost > 0 else 0.0
    roas = revenue / cost if cost > 0 else 0.0
    return (
        {"roi": f"{roi:.2f}", "roas": f"{roas:.2f}"},
        {
            "roi": round(roi, 4),
            "roas": round(roas, 4),
            "cost": cost,
            "revenue": revenue,
            "days": 30,
        },
    )


def _top_campaign(aggregator: Aggregator, query: MetricFilter):
    campaigns = {
        k: v
        for k, v in aggregator.by_campaign(aggregator.for_days(query, 30)).items()
        if k
    }
    if not campaigns:
        return None, {"empty": "no_campaign_data", "days": 30}
    # Most conversions; ties go to the alphabetically first campaign
    best = min(campaigns, key=lambda c: (-campaigns[c].conversions, c))
    agg = campaigns[best]
    return (
        {
            "campaign": best,
            "conversions": f"{agg.conversions:,}",
            "roas": f"{agg.roas:.2f}",
        },
        {
            "campaign_id": best,
            "conversions": agg.conversions,
            "cost": agg.cost,
            "revenue": agg.revenue,
            "roas": agg.roas,
            "days": 30,
        },
    )


INTENTS: Tuple[Intent, ...] = (
    Intent("revenue", ("revenue", "sales", "ยอดขาย"), _revenue),
    Intent("clicks", ("click", "คลิก"), _clicks),
    Intent("ctr", ("ctr", "อัตราคลิก"), _ctr),
    Intent("roi", ("roi", "roas"), _roi),
    Intent("top_campaign", ("campaign", "แคมเปญ"), _top_campaign),
)


class QueryIntentRouter:
    """Routes a free-text question to the first matching intent."""

    def __init__(
        self,
        aggregator: Aggregator,
        locale: str = "en",
        currency: str = "THB",
        intents: Tuple[Intent, ...] = INTENTS,
    ):
        self.aggregator = aggregator
        self.locale = locale if locale in TEMPLATES else "en"
        self.currency = currency
        self.intents = intents

    def match(self, text: str) -> Optional[Intent]:
        lowered = text.lower()
        for intent in self.intents:
            if intent.matches(lowered):
                return intent
        return None

    def answer(self, principal: TenantPrincipal, text: str) -> QueryAnswer:
        if not text or not text.strip():
            raise ValidationError("Query text is required")

        query = ANALYTICS_SCOPE.apply(principal, MetricFilter())
        templates = TEMPLATES[self.locale]
        intent = self.match(text)

        if intent is None:
            logger.info("Query matched no intent", extra={"client_id": query.client_id})
            return QueryAnswer(
                matched=False,
                outcome=Outcome.INSUFFICIENT_DATA,
                query=text,
                answer_text=templates["fallback"],
                suggestions=list(SUGGESTIONS[self.locale]),
            )

        variables, data = intent.handler(self.aggregator, query)
        if variables is None:
            outcome, answer_text = Outcome.INSUFFICIENT_DATA, templates[data["empty"]]
        else:
            outcome = Outcome.OK
            answer_text = templates[intent.name].format(currency=self.currency, **variables)
        logger.info(
            f"Query answered by intent '{intent.name}'",
            extra={"client_id": query.client_id},
        )
        return QueryAnswer(
            matched=True,
            intent=intent.name,
            outcome=outcome,
            query=text,
            answer_text=answer_text,
            supporting_data=data,
        )
