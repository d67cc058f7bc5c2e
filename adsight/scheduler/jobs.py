"""AdSight — Scheduler Jobs.

Periodic alert evaluation. Each run opens its own session, checks every
active rule and latches the ones whose condition holds.
"""

import asyncio
from typing import List

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from adsight.alerts.evaluator import evaluate_rules
from adsight.alerts.rule_engine import AlertRuleEngine
from adsight.analyzer.aggregator import Aggregator
from adsight.config import settings
from adsight.core.errors import AnalyticsError
from adsight.core.logging import get_logger, timed
from adsight.database import session_scope
from adsight.stores.alert_store import SQLAlertRuleStore
from adsight.stores.metric_store import SQLMetricStore

logger = get_logger("scheduler")

JOB_ID = "alert_evaluation"

scheduler = AsyncIOScheduler()


def run_alert_evaluation() -> List[int]:
    with session_scope() as session:
        return evaluate_rules(
            AlertRuleEngine(SQLAlertRuleStore(session)),
            Aggregator(SQLMetricStore(session)),
        )


async def alert_evaluation_job():
    """Scheduled entry point. The blocking database work runs in a worker
    thread; a failed run is logged and retried next interval.
    """
    try:
        with timed(logger, "Scheduled alert evaluation finished"):
            await asyncio.to_thread(run_alert_evaluation)
    except AnalyticsError as e:
        logger.error(f"Scheduled alert evaluation failed: {e.message}")


def start_scheduler() -> bool:
    """Register the evaluation job and start. False when disabled by config."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return False

    scheduler.add_job(
        alert_evaluation_job,
        "interval",
        minutes=settings.alert_evaluation_minutes,
        id=JOB_ID,
        replace_existing=True,
        misfire_grace_time=600,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started: alert evaluation every {settings.alert_evaluation_minutes} min"
    )
    return True


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
