# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the structlog/stdlib logging bridge."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from agentgate.logging_config import bind_request, clear_request, configure, redact_secrets


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    clear_request()


def _last_json_line(err: str) -> dict:
    lines = [line for line in err.splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestRedactSecrets:
    def test_masks_credential_keys(self):
        event = {"event": "x", "api_key": "ag_live_1", "Authorization": "Bearer t", "path": "/"}
        out = redact_secrets(None, "info", event)
        assert out["api_key"] == "[REDACTED]"
        assert out["Authorization"] == "[REDACTED]"
        assert out["path"] == "/"

    def test_empty_values_untouched(self):
        assert redact_secrets(None, "info", {"api_key": ""})["api_key"] == ""


class TestConfigure:
    def test_stdlib_records_rendered_as_json_with_request_context(self, capsys, restore_logging):
        configure(json_output=True, level="DEBUG")
        bind_request(request_id="req-1", hostname="example.com", path="/robots.txt")
        logging.getLogger("agentgate.pipeline").warning("Pipeline stage %s failed", "robots-txt")

        record = _last_json_line(capsys.readouterr().err)
        assert record["event"] == "Pipeline stage robots-txt failed"
        assert record["level"] == "warning"
        assert record["logger"] == "agentgate.pipeline"
        assert record["request_id"] == "req-1"
        assert record["hostname"] == "example.com"
        assert "timestamp" in record

    def test_structlog_loggers_are_redacted(self, capsys, restore_logging):
        configure(json_output=True)
        structlog.get_logger("agentgate.test").info("configured", api_key="ag_live_secret")
        err = capsys.readouterr().err
        assert _last_json_line(err)["api_key"] == "[REDACTED]"
        assert "ag_live_secret" not in err

    def test_level_filtering(self, capsys, restore_logging):
        configure(json_output=True, level="WARNING")
        logging.getLogger("agentgate.x").info("quiet")
        assert "quiet" not in capsys.readouterr().err

    def test_clear_request_unbinds(self, capsys, restore_logging):
        configure(json_output=True)
        bind_request(request_id="req-2", hostname="h", path="/")
        clear_request()
        logging.getLogger("agentgate.x").warning("after")
        assert "request_id" not in _last_json_line(capsys.readouterr().err)

    def test_console_output(self, capsys, restore_logging):
        configure(json_output=False)
        logging.getLogger("agentgate.x").warning("plain text line")
        assert "plain text line" in capsys.readouterr().err
