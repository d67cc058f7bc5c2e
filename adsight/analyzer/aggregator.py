"""AdSight — Aggregator.

Shared computational core: sums metric records matching a filter and
derives CTR, CPM, CPC, CPA and ROAS from the totals (ratio-of-sums).
Produces point-in-time summaries and daily / hourly trends.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Tuple

from adsight.core.clock import Clock, naive_utc, utcnow
from adsight.core.errors import ValidationError
from adsight.core.logging import get_logger
from adsight.core.metric_registry import BASE_METRICS, DERIVED_METRICS, MetricType
from adsight.models.analysis_models import AggregateResult, MetricFilter, TrendPoint
from adsight.models.metric_models import MetricRecord
from adsight.stores.metric_store import MetricStore

logger = get_logger("analyzer.aggregator")

DAILY = "daily"
HOURLY = "hourly"
INTERVALS = (DAILY, HOURLY)

DEFAULT_DAILY_LOOKBACK_DAYS = 7
DEFAULT_HOURLY_LOOKBACK_HOURS = 24


def build_aggregate(totals: Dict[str, float], record_count: int) -> Dict[str, float]:
    """Totals plus derived KPIs, as plain fields for an AggregateResult."""
    fields: Dict[str, float] = {
        name: (
            int(totals.get(name, 0))
            if BASE_METRICS[name].metric_type is MetricType.VOLUME
            else round(totals.get(name, 0.0), 4)
        )
        for name in BASE_METRICS
    }
    for name, metric in DERIVED_METRICS.items():
        fields[name] = round(metric.formula.compute(totals), 4)
    fields["record_count"] = record_count
    return fields


def _sum_records(records: Iterable[MetricRecord]) -> Tuple[Dict[str, float], int]:
    totals: Dict[str, float] = defaultdict(float)
    count = 0
    for r in records:
        count += 1
        for name in BASE_METRICS:
            totals[name] += getattr(r, name) or 0
    return dict(totals), count


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_hour(value: datetime) -> datetime:
    return value.replace(minute=0, second=0, microsecond=0)


def last_n_days(now: datetime, days: int) -> Tuple[datetime, datetime]:
    """[today - (days-1), tomorrow): ``days`` whole calendar days incl. today."""
    tomorrow = start_of_day(now) + timedelta(days=1)
    return tomorrow - timedelta(days=days), tomorrow


def last_n_hours(now: datetime, hours: int) -> Tuple[datetime, datetime]:
    """``hours`` whole clock hours including the current one."""
    next_hour = start_of_hour(now) + timedelta(hours=1)
    return next_hour - timedelta(hours=hours), next_hour


class Aggregator:
    """Computes summaries and trends over a MetricStore.

    Holds no cache: every call reads the store once and is a pure function
    of the stored records and the filter.
    """

    def __init__(self, store: MetricStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    def now(self) -> datetime:
        return naive_utc(self.clock())

    # ── Range resolution ──

    def resolve(
        self,
        query: MetricFilter,
        default: Callable[[datetime], Tuple[datetime, datetime]] | None = None,
    ) -> MetricFilter:
        """Fill in a missing date range with the default lookback."""
        default = default or (
            lambda now: last_n_days(now, DEFAULT_DAILY_LOOKBACK_DAYS)
        )
        start, end = query.start, query.end
        if start is None or end is None:
            default_start, default_end = default(self.now())
            start = start if start is not None else default_start
            end = end if end is not None else default_end
        start, end = naive_utc(start), naive_utc(end)
        if start >= end:
            raise ValidationError(f"Empty date range: {start} .. {end}")
        return query.model_copy(update={"start": start, "end": end})

    def for_days(self, query: MetricFilter, days: int) -> MetricFilter:
        """Replace the filter's range with the last ``days`` calendar days."""
        start, end = last_n_days(self.now(), days)
        return query.model_copy(update={"start": start, "end": end})

    # ── Summaries ──

    def summarize(self, query: MetricFilter) -> AggregateResult:
        """Totals and derived KPIs for every record matching the filter."""
        query = self.resolve(query)
        totals, count = _sum_records(self.store.query(query))
        logger.debug(
            f"Summarized {count} records for {query.start} .. {query.end}",
            extra={"client_id": query.client_id},
        )
        return AggregateResult(**build_aggregate(totals, count))

    def group_by(
        self, query: MetricFilter, key: Callable[[MetricRecord], str]
    ) -> Dict[str, AggregateResult]:
        """Aggregates per group key, in ascending key order."""
        query = self.resolve(query)
        groups: Dict[str, List[MetricRecord]] = defaultdict(list)
        for r in self.store.query(query):
            groups[key(r)].append(r)
        return {
            k: AggregateResult(**build_aggregate(*_sum_records(groups[k])))
            for k in sorted(groups)
        }

    def by_channel(self, query: MetricFilter) -> Dict[str, AggregateResult]:
        return self.group_by(query, lambda r: r.provider)

    def by_campaign(self, query: MetricFilter) -> Dict[str, AggregateResult]:
        return self.group_by(query, lambda r: r.campaign_id or "")

    # ── Trends ──

    def trend(
        self, query: MetricFilter, interval: str = DAILY, fill_gaps: bool = True
    ) -> List[TrendPoint]:
        """Totals per daily or hourly bucket, ascending by bucket.

        With ``fill_gaps`` every bucket of the range is emitted, empty ones
        with zero totals, so the buckets partition the range exactly.
        """
        if interval == DAILY:
            query = self.resolve(query)
            truncate, step, fmt = start_of_day, timedelta(days=1), "%Y-%m-%d"
        elif interval == HOURLY:
            query = self.resolve(
                query, lambda now: last_n_hours(now, DEFAULT_HOURLY_LOOKBACK_HOURS)
            )
            truncate, step, fmt = start_of_hour, timedelta(hours=1), "%Y-%m-%dT%H:00"
        else:
            raise ValidationError(
                f"Unknown interval '{interval}', expected one of {INTERVALS}"
            )

        buckets: Dict[datetime, List[MetricRecord]] = defaultdict(list)
        for r in self.store.query(query):
            buckets[truncate(r.timestamp)].append(r)

        if fill_gaps:
            cursor = truncate(query.start)
            while cursor < query.end:
                buckets.setdefault(cursor, [])
                cursor += step

        points = [
            TrendPoint(bucket=b.strftime(fmt), **build_aggregate(*_sum_records(buckets[b])))
            for b in sorted(buckets)
        ]
        logger.debug(f"Built {len(points)} {interval} trend points")
        return points
