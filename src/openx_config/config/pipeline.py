"""Pipeline: load -> substitute -> default -> validate -> report."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import IO

import structlog

from openx_config.config.defaults import fill_defaults
from openx_config.config.diagnostics import ValidationReport
from openx_config.config.loader import load_document
from openx_config.config.models import VenueConfig
from openx_config.config.reporter import build_report, resolve
from openx_config.config.substitution import EnvSnapshot, snapshot_environment, substitute
from openx_config.validation import validate

# Ensure all rule modules are imported so @register_rule fires
import openx_config.validation.rules  # noqa: F401

log = structlog.get_logger("config.pipeline")


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one run; ``config`` is None whenever the report has errors."""

    report: ValidationReport
    config: VenueConfig | None

    @property
    def ok(self) -> bool:
        return self.config is not None


def run_pipeline(
    source: str | Path | IO[str],
    env: EnvSnapshot | None = None,
) -> PipelineResult:
    """Run every stage on one document.

    Only a load failure raises (LoadError). Every later stage runs even if an
    earlier one produced errors, so the report lists every problem at once.
    """
    env = snapshot_environment() if env is None else env
    raw = load_document(source)

    substituted = substitute(raw, env)
    defaulted = fill_defaults(substituted.tree)
    findings = validate(defaulted.tree)

    report = build_report(
        [*substituted.diagnostics, *defaulted.diagnostics, *findings],
        defaults_applied=bool(defaulted.diagnostics),
    )
    config = resolve(defaulted.tree, report)
    log.info(
        "pipeline_complete",
        valid=report.is_valid,
        errors=len(report.errors),
        warnings=len(report.warnings),
    )
    return PipelineResult(report=report, config=config)
