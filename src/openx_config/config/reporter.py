"""Reporter: aggregates diagnostics, decides the outcome, renders output."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

import structlog
import yaml

from openx_config.config.diagnostics import Diagnostic, ValidationReport
from openx_config.config.models import VenueConfig
from openx_config.config.schema import is_secret_name

log = structlog.get_logger("config.reporter")

MASK = "********"


def build_report(diagnostics: Iterable[Diagnostic], defaults_applied: bool) -> ValidationReport:
    return ValidationReport(diagnostics=list(diagnostics), defaults_applied=defaults_applied)


def resolve(tree: dict[str, Any], report: ValidationReport) -> VenueConfig | None:
    """Build the typed config, but only for a report without errors."""
    if not report.is_valid:
        log.info("config_rejected", errors=len(report.errors), warnings=len(report.warnings))
        return None
    config = VenueConfig.model_validate(tree)
    log.info("config_resolved", warnings=len(report.warnings))
    return config


def redact(node: Any) -> Any:
    """Copy of a dumped config with secret-named string values masked."""
    if isinstance(node, dict):
        return {
            key: MASK if is_secret_name(key) and isinstance(child, str) and child else redact(child)
            for key, child in node.items()
        }
    if isinstance(node, list):
        return [redact(child) for child in node]
    return node


def _public_dump(config: VenueConfig) -> dict[str, Any]:
    return redact(config.model_dump(mode="json"))


def _summary(report: ValidationReport) -> str:
    errors, warnings = len(report.errors), len(report.warnings)
    verdict = "valid" if report.is_valid else "invalid"
    return f"Configuration is {verdict}: {errors} error(s), {warnings} warning(s)"


def render_text(report: ValidationReport, config: VenueConfig | None = None) -> str:
    """Human-readable report: errors first, then warnings, then the config."""
    lines: list[str] = []
    for title, group in (("Errors", report.errors), ("Warnings", report.warnings)):
        if not group:
            continue
        lines.append(f"{title} ({len(group)}):")
        for d in group:
            code = f" [{d.code}]" if d.code else ""
            lines.append(f"  - {d.path}: {d.message}{code}")
        lines.append("")
    lines.append(_summary(report))
    if config is not None:
        lines.append("")
        lines.append("Resolved configuration:")
        lines.append(
            yaml.safe_dump(_public_dump(config), sort_keys=False).rstrip()
        )
    return "\n".join(lines) + "\n"


def render_json(report: ValidationReport, config: VenueConfig | None = None) -> str:
    payload = {
        "valid": report.is_valid,
        "defaults_applied": report.defaults_applied,
        "errors": [d.model_dump() for d in report.errors],
        "warnings": [d.model_dump() for d in report.warnings],
        "config": _public_dump(config) if config is not None else None,
    }
    return json.dumps(payload, indent=2)
