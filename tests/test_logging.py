"""
Tests for structured JSON logging
"""
import json
import logging

import pytest

from slaengine.shared.infrastructure.logging import (
    REDACTED, CustomJsonFormatter, get_context_logger, log_latency, setup_logging
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("slaengine.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_adds_context_fields():
    formatter = CustomJsonFormatter("%(name)s %(message)s", service="reports", environment="staging")
    payload = json.loads(formatter.format(_record(correlation_id="req-1")))
    assert payload["message"] == "hello"
    assert payload["service"] == "reports"
    assert payload["environment"] == "staging"
    assert payload["level"] == "INFO"
    assert payload["correlation_id"] == "req-1"
    assert "timestamp" in payload


def test_formatter_redacts_secrets():
    formatter = CustomJsonFormatter("%(message)s")
    payload = json.loads(formatter.format(_record(api_key="abc123", db_password="pw", report="zones")))
    assert payload["api_key"] == REDACTED
    assert payload["db_password"] == REDACTED
    assert payload["report"] == "zones"


def test_context_logger_merges_bound_fields(caplog):
    logger = get_context_logger("slaengine.test", correlation_id="req-9", report="sla_performance")
    with caplog.at_level(logging.INFO, logger="slaengine.test"):
        logger.info("building", extra={"tickets": 4})
    [record] = caplog.records
    assert record.correlation_id == "req-9"
    assert record.report == "sla_performance"
    assert record.tickets == 4


def test_log_latency_records_operation(caplog):
    logger = logging.getLogger("slaengine.test")
    with caplog.at_level(logging.INFO, logger="slaengine.test"):
        with log_latency(logger, "zone_performance", tickets=3):
            pass
    [record] = caplog.records
    assert record.levelno == logging.INFO
    assert record.operation == "zone_performance"
    assert record.tickets == 3
    assert record.latency_ms >= 0


def test_log_latency_logs_failures(caplog):
    logger = logging.getLogger("slaengine.test")
    with caplog.at_level(logging.INFO, logger="slaengine.test"):
        with pytest.raises(ValueError):
            with log_latency(logger, "ticket_summary"):
                raise ValueError("boom")
    [record] = caplog.records
    assert record.levelno == logging.ERROR
    assert record.getMessage() == "ticket_summary failed"


def test_setup_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug", environment="production", service="sla-engine")
        [handler] = root.handlers
        assert isinstance(handler.formatter, CustomJsonFormatter)
        assert handler.formatter.environment == "production"
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
