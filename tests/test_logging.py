"""Tests for adsight.core.logging and scheduler wiring."""
import asyncio
import json
import logging
import threading

from adsight.core.logging import JSONFormatter, get_logger, timed
from adsight.core.errors import StoreUnavailable
from adsight.scheduler import jobs
from adsight.scheduler.jobs import scheduler, start_scheduler


def _record(**extra):
    record = logging.LogRecord("adsight.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_includes_context_fields():
    line = JSONFormatter().format(_record(client_id=3, rule_id=7, ignored="x"))
    entry = json.loads(line)
    assert entry["message"] == "hello world"
    assert entry["level"] == "INFO"
    assert entry["client_id"] == 3
    assert entry["rule_id"] == 7
    assert "ignored" not in entry


def test_non_ascii_messages_are_kept():
    record = _record()
    record.msg, record.args = "ยอดขาย", ()
    assert "ยอดขาย" in JSONFormatter().format(record)


def test_loggers_are_namespaced():
    assert get_logger("unit").name == "adsight.unit"


def test_timed_records_duration(caplog):
    logger = get_logger("unit.timed")
    logger.propagate = True
    try:
        with caplog.at_level(logging.INFO, logger="adsight.unit.timed"):
            with timed(logger, "work done", client_id=5) as fields:
                fields["status_code"] = 200
    finally:
        logger.propagate = False

    [record] = caplog.records
    assert record.getMessage() == "work done"
    assert record.client_id == 5
    assert record.status_code == 200
    assert record.duration_ms >= 0


def test_scheduler_respects_config():
    assert start_scheduler() is False
    assert not scheduler.running


def test_evaluation_job_runs_off_the_event_loop_thread(monkeypatch):
    seen = []
    monkeypatch.setattr(jobs, "run_alert_evaluation", lambda: seen.append(threading.get_ident()) or [])

    asyncio.run(jobs.alert_evaluation_job())

    assert len(seen) == 1
    assert seen[0] != threading.get_ident()


def test_evaluation_job_logs_store_failures(monkeypatch):
    def _fail():
        raise StoreUnavailable("Alert rule store read failed")

    monkeypatch.setattr(jobs, "run_alert_evaluation", _fail)
    asyncio.run(jobs.alert_evaluation_job())
