from __future__ import annotations

import io
import json
import logging

from liquidity_rebalancer.config.settings import MonitoringConfig
from liquidity_rebalancer.monitoring.logger import (
    PACKAGE_LOGGER,
    DecisionLogFormatter,
    configure_logging,
    current_decision_id,
    decision_context,
    get_logger,
)
from liquidity_rebalancer.monitoring.metrics import MetricsRegistry, prometheus_name


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("liquidity_rebalancer.test", logging.INFO, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_prometheus_names_are_prefixed_and_sanitized():
    assert prometheus_name("decisions.blocked.no_changes_required") == (
        "rebalancer_decisions_blocked_no_changes_required"
    )
    assert prometheus_name("capital-usd", prefix="") == "capital_usd"


def test_metrics_registry_exports_prometheus_format():
    registry = MetricsRegistry()
    registry.increment("decisions.evaluated")
    registry.increment("decisions.blocked.no_changes_required", 2)
    registry.gauge("decisions.last_net_profit_30d_usd", 398.31)
    registry.observe("decisions.evaluation_seconds", 0.25)

    exported = registry.export_prometheus()

    assert "# TYPE rebalancer_decisions_evaluated_total counter" in exported
    assert "rebalancer_decisions_blocked_no_changes_required_total 2.0" in exported
    assert "# TYPE rebalancer_decisions_last_net_profit_30d_usd gauge" in exported
    assert "rebalancer_decisions_last_net_profit_30d_usd 398.31" in exported
    assert 'rebalancer_decisions_evaluation_seconds{quantile="0.5"} 0.25' in exported
    assert "rebalancer_decisions_evaluation_seconds_count 1" in exported
    assert exported.endswith("\n")


def test_empty_registry_exports_nothing():
    registry = MetricsRegistry()

    assert registry.export_prometheus() == ""
    assert registry.snapshot() == {"counters": {}, "gauges": {}, "timings": {}}


def test_timing_window_is_bounded():
    registry = MetricsRegistry(window=3)
    for value in (1.0, 2.0, 3.0, 4.0):
        registry.observe("latency", value)

    stats = registry.snapshot()["timings"]["latency"]

    assert stats["count"] == 3.0
    assert stats["sum"] == 9.0
    assert stats["p50"] == 3.0
    assert stats["p99"] == 4.0


def test_formatter_tags_decision_and_user():
    formatter = DecisionLogFormatter()

    with decision_context("dec_abc123", user_id="user-1"):
        assert current_decision_id() == "dec_abc123"
        payload = json.loads(formatter.format(_record("Decision computed", withdraw=1)))

    assert payload["event"] == "Decision computed"
    assert payload["level"] == "info"
    assert payload["decision_id"] == "dec_abc123"
    assert payload["user_id"] == "user-1"
    assert payload["withdraw"] == 1
    assert current_decision_id() is None


def test_nested_context_keeps_outer_user():
    with decision_context(user_id="user-1"):
        with decision_context("dec_1"):
            payload = json.loads(DecisionLogFormatter().format(_record("nested")))

    assert payload["decision_id"] == "dec_1"
    assert payload["user_id"] == "user-1"


def test_formatter_outside_context_omits_tags():
    payload = json.loads(DecisionLogFormatter().format(_record("idle")))

    assert "decision_id" not in payload
    assert "user_id" not in payload


def test_configure_logging_routes_package_loggers():
    stream = io.StringIO()
    handler = configure_logging(MonitoringConfig(), stream=stream)
    try:
        logger = get_logger("scratch")
        assert logger.name == f"{PACKAGE_LOGGER}.scratch"
        with decision_context("dec_xyz"):
            logger.info("hello")
    finally:
        logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)

    payload = json.loads(stream.getvalue().strip())
    assert payload["event"] == "hello"
    assert payload["decision_id"] == "dec_xyz"
