"""Tests for structured logging configuration and context binding."""

import json

import pytest
import structlog
from structlog.testing import LogCapture

from tenantry.logging import LogContext, bind_context, configure_logging, get_logger, unbind_context
from tenantry.scope import scope_context


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.startswith("{")]


@pytest.fixture
def logs() -> list[dict]:
    """Captured event dicts, with contextvars merged in."""
    capture = LogCapture()
    structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
    return capture.entries


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, service="billing")
        get_logger("tenantry.test").info("connection.resolved", scope="core")

        [event] = _json_lines(capsys.readouterr().out)
        assert event["event"] == "connection.resolved"
        assert event["scope"] == "core"
        assert event["logger_name"] == "tenantry.test"
        assert event["service.name"] == "billing"
        assert event["log.level"] == "info"
        assert "@timestamp" in event

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        log = get_logger("tenantry.test")
        log.info("migration.applied")
        log.warning("connection.close_failed")
        events = [e["event"] for e in _json_lines(capsys.readouterr().out)]
        assert events == ["connection.close_failed"]


class TestContext:
    def test_scope_context_binds_identity(self, logs):
        with scope_context(tenant_id="acme", request_id="req-1"):
            get_logger("tenantry.test").info("transaction.begin")
        get_logger("tenantry.test").info("transaction.commit")

        inside, outside = logs
        assert inside["tenant_id"] == "acme"
        assert inside["request_id"] == "req-1"
        assert "unit_id" not in inside
        assert "tenant_id" not in outside

    def test_bind_and_unbind(self, logs):
        bind_context(job="nightly")
        get_logger().info("one")
        unbind_context("job")
        get_logger().info("two")
        assert logs[0]["job"] == "nightly"
        assert "job" not in logs[1]

    def test_log_context(self, logs):
        with LogContext(migration="0001_create_users"):
            get_logger().info("migration.applied")
        assert logs[0]["migration"] == "0001_create_users"


class TestGetLogger:
    def test_name_is_bound(self, logs):
        get_logger("tenantry.resolver").info("connection.resolved")
        assert logs[0]["logger_name"] == "tenantry.resolver"

    def test_module_loggers_build(self):
        import tenantry.adapters.handle as handle_module
        import tenantry.migrations.runner as runner_module

        assert handle_module.logger is not None
        assert runner_module.logger is not None

    def test_picks_up_later_configuration(self, capsys):
        log = get_logger("tenantry.early")
        configure_logging(level="ERROR", json_format=True)
        log.warning("dropped")
        log.error("kept")
        assert [e["event"] for e in _json_lines(capsys.readouterr().out)] == ["kept"]
