"""Diagnostic and report models shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["error", "warning"]

# Machine codes for programmatic matching.
REQUIRED_FIELD = "REQUIRED_FIELD"
TYPE_MISMATCH = "TYPE_MISMATCH"
INVALID_FORMAT = "INVALID_FORMAT"
ENUM_MISMATCH = "ENUM_MISMATCH"
OUT_OF_RANGE = "OUT_OF_RANGE"
NO_ENABLED_ENTRIES = "NO_ENABLED_ENTRIES"
MISSING_PRIMARY = "MISSING_PRIMARY"
MULTIPLE_PRIMARY = "MULTIPLE_PRIMARY"
DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
MISSING_CADENCE = "MISSING_CADENCE"
MISSING_SECTION = "MISSING_SECTION"
INCOMPLETE_CREDENTIALS = "INCOMPLETE_CREDENTIALS"
UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"
INCONSISTENT_VALUE = "INCONSISTENT_VALUE"
UNRESOLVED_VAR = "UNRESOLVED_VAR"
UNSET_VAR = "UNSET_VAR"
DEFAULT_APPLIED = "DEFAULT_APPLIED"
UNKNOWN_FIELD = "UNKNOWN_FIELD"
UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"
UNSUPPORTED_VALUE = "UNSUPPORTED_VALUE"
NO_MARKET_DATA = "NO_MARKET_DATA"

# Primary designation codes count as cardinality violations.
CARDINALITY_CODES = frozenset({NO_ENABLED_ENTRIES, MISSING_PRIMARY, MULTIPLE_PRIMARY})

_SEVERITY_RANK = {"error": 0, "warning": 1}


class Diagnostic(BaseModel):
    """A single reported issue at a dotted field path."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    path: str
    message: str
    code: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


def error(path: str, message: str, code: str | None = None) -> Diagnostic:
    return Diagnostic(severity="error", path=path, message=message, code=code)


def warning(path: str, message: str, code: str | None = None) -> Diagnostic:
    return Diagnostic(severity="warning", path=path, message=message, code=code)


class ValidationReport(BaseModel):
    """Every diagnostic from one run, plus whether defaults were inserted.

    ``diagnostics`` keeps emission order: substitution, then defaults, then
    validation rules in registration order. ``sorted_diagnostics`` relies on
    the sort being stable to break path ties by that order.
    """

    diagnostics: list[Diagnostic] = Field(default_factory=list)
    defaults_applied: bool = False

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.sorted_diagnostics() if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.sorted_diagnostics() if d.severity == "warning"]

    @property
    def is_valid(self) -> bool:
        return not any(d.is_error for d in self.diagnostics)

    def sorted_diagnostics(self) -> list[Diagnostic]:
        return sorted(
            self.diagnostics,
            key=lambda d: (_SEVERITY_RANK[d.severity], d.path),
        )

    def with_code(self, code: str) -> list[Diagnostic]:
        return [d for d in self.sorted_diagnostics() if d.code == code]


@dataclass
class StageResult:
    """A transformed tree plus the diagnostics the stage produced."""

    tree: dict[str, Any]
    diagnostics: list[Diagnostic] = field(default_factory=list)
