"""Tests for report aggregation and rendering."""

from __future__ import annotations

import json

from openx_config.config.diagnostics import ValidationReport, error, warning
from openx_config.config.reporter import (
    MASK,
    build_report,
    redact,
    render_json,
    render_text,
    resolve,
)


def _report(*diagnostics, defaults_applied=False):
    return build_report(diagnostics, defaults_applied=defaults_applied)


class TestValidationReport:
    def test_errors_before_warnings_then_by_path(self):
        report = _report(
            warning("b.path", "w1"),
            error("z.path", "e1"),
            error("a.path", "e2"),
        )
        assert [d.message for d in report.sorted_diagnostics()] == ["e2", "e1", "w1"]

    def test_ties_keep_emission_order(self):
        report = _report(error("same", "first"), error("same", "second"))
        assert [d.message for d in report.errors] == ["first", "second"]

    def test_validity(self):
        assert _report(warning("a", "only a warning")).is_valid
        assert not _report(error("a", "broken")).is_valid
        assert ValidationReport().is_valid

    def test_with_code(self):
        report = _report(error("a", "x", "ENUM_MISMATCH"), warning("b", "y", "DEFAULT_APPLIED"))
        assert [d.path for d in report.with_code("DEFAULT_APPLIED")] == ["b"]


class TestResolve:
    def test_no_config_when_errors(self, full_document):
        assert resolve(full_document, _report(error("exchange.mode", "bad"))) is None

    def test_config_when_only_warnings(self, full_document):
        config = resolve(full_document, _report(warning("a", "w")))
        assert config is not None
        assert config.exchange.name == "My Exchange"


class TestRedact:
    def test_secret_values_masked(self):
        data = {
            "password": "hunter2",
            "port": 5432,
            "nested": [{"api_key": "k", "api_secret": "s", "name": "feed"}],
            "service_role_key": "role",
            "anon_key": "",
            "host": "db.internal",
        }
        assert redact(data) == {
            "password": MASK,
            "port": 5432,
            "nested": [{"api_key": MASK, "api_secret": MASK, "name": "feed"}],
            "service_role_key": MASK,
            "anon_key": "",
            "host": "db.internal",
        }

    def test_missing_secrets_left_as_none(self):
        assert redact({"api_key": None}) == {"api_key": None}


class TestRenderText:
    def test_invalid_report(self):
        report = _report(
            error("exchange.version", "invalid format", "INVALID_FORMAT"),
            warning("fees", "field fees not specified, using default {}", "DEFAULT_APPLIED"),
        )
        text = render_text(report)
        lines = text.splitlines()
        assert lines[0] == "Errors (1):"
        assert lines[1] == "  - exchange.version: invalid format [INVALID_FORMAT]"
        assert "Warnings (1):" in lines
        assert lines.index("Errors (1):") < lines.index("Warnings (1):")
        assert lines[-1] == "Configuration is invalid: 1 error(s), 1 warning(s)"
        assert "Resolved configuration:" not in text

    def test_clean_report(self):
        assert render_text(_report()) == "Configuration is valid: 0 error(s), 0 warning(s)\n"

    def test_diagnostic_without_code(self):
        text = render_text(_report(warning("a", "plain")))
        assert "  - a: plain\n" in text

    def test_resolved_config_appended_and_masked(self, run_tree, minimal_document):
        result = run_tree(minimal_document)
        text = render_text(result.report, result.config)
        assert "Resolved configuration:" in text
        assert "db.internal" in text
        assert "s3cret" not in text
        assert MASK in text


class TestRenderJson:
    def test_structure(self):
        report = _report(
            error("exchange.mode", "bad mode", "ENUM_MISMATCH"),
            defaults_applied=True,
        )
        payload = json.loads(render_json(report))
        assert payload["valid"] is False
        assert payload["defaults_applied"] is True
        assert payload["errors"] == [{
            "severity": "error",
            "path": "exchange.mode",
            "message": "bad mode",
            "code": "ENUM_MISMATCH",
        }]
        assert payload["warnings"] == []
        assert payload["config"] is None

    def test_config_included_and_masked(self, run_tree, full_document):
        result = run_tree(full_document)
        payload = json.loads(render_json(result.report, result.config))
        assert payload["valid"] is True
        assert payload["config"]["storage"]["postgres"]["password"] == MASK
        assert payload["config"]["storage"]["postgres"]["user"] == "openx"
