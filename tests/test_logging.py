"""Tests for structured logging setup."""

from __future__ import annotations

import json

import structlog

from openx_config.logging import get_logger, setup_logging, setup_logging_from_env


class TestSetupLogging:
    def test_json_format(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_json")
        logger.info("document_loaded", sections=3)

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["event"] == "document_loaded"
        assert line["sections"] == 3
        assert line["level"] == "info"
        assert "timestamp" in line

    def test_console_format(self, capsys):
        setup_logging(level="INFO", log_format="console")
        logger = get_logger("test_console")
        logger.info("hello console", exchange="openx")

        captured = capsys.readouterr()
        assert "hello console" in captured.err
        assert "openx" in captured.err

    def test_log_level_filtering(self, capsys):
        setup_logging(level="WARNING", log_format="json")
        logger = get_logger("test_level")
        logger.info("should be hidden")
        logger.warning("should appear")

        captured = capsys.readouterr()
        assert "should be hidden" not in captured.err
        assert "should appear" in captured.err

    def test_stdout_untouched(self, capsys):
        setup_logging(level="INFO", log_format="json")
        get_logger("test_stdout").info("to stderr")
        assert capsys.readouterr().out == ""

    def test_get_logger_with_context(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_ctx", source="master_config.yaml", stage="defaults")
        logger.info("context test")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["source"] == "master_config.yaml"
        assert line["stage"] == "defaults"

    def test_contextvars_binding(self, capsys):
        setup_logging(level="INFO", log_format="json")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(run_id="abc123")

        logger = get_logger("test_ctxvars")
        logger.info("with context var")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["run_id"] == "abc123"

        structlog.contextvars.clear_contextvars()


class TestSetupLoggingFromEnv:
    def test_quiet_console_by_default(self, capsys):
        setup_logging_from_env({})
        logger = get_logger("test_env_default")
        logger.info("hidden")
        logger.warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err
        assert not err.lstrip().startswith("{")

    def test_environment_overrides(self, capsys):
        setup_logging_from_env({"OPENX_LOG_LEVEL": "debug", "OPENX_LOG_FORMAT": "json"})
        get_logger("test_env_override").debug("visible")

        line = json.loads(capsys.readouterr().err.strip())
        assert line["event"] == "visible"
        assert line["level"] == "debug"
