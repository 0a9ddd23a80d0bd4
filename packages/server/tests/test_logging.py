"""
Tests for structlog configuration.
"""

import json

import pytest
import structlog

from app.core.config import get_settings
from app.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    structlog.contextvars.clear_contextvars()
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


class TestConfigureLogging:
    def test_json_format(self, capsys):
        configure_logging("info", "json")
        structlog.contextvars.bind_contextvars(request_id="req-1")

        structlog.get_logger().info("account.synced", user_id=7)

        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["event"] == "account.synced"
        assert line["user_id"] == 7
        assert line["level"] == "info"
        assert line["request_id"] == "req-1"
        assert "timestamp" in line

    def test_console_format(self, capsys):
        configure_logging("info", "console")

        structlog.get_logger().warning("account.org_hint_not_found", org_id="abc")

        out = capsys.readouterr().out
        assert "account.org_hint_not_found" in out
        assert "abc" in out

    def test_level_filters_lower_events(self, capsys):
        configure_logging("WARNING", "json")

        log = structlog.get_logger()
        log.info("request.completed")
        log.warning("request.failed")

        lines = [json.loads(raw) for raw in capsys.readouterr().out.strip().splitlines()]
        assert [line["event"] for line in lines] == ["request.failed"]

    def test_unknown_level_defaults_to_info(self, capsys):
        configure_logging("chatty", "json")

        log = structlog.get_logger()
        log.debug("identity.profile_fetched")
        log.info("account.synced")

        lines = [json.loads(raw) for raw in capsys.readouterr().out.strip().splitlines()]
        assert [line["event"] for line in lines] == ["account.synced"]
