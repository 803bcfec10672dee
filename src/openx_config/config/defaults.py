"""Default filler: inserts schema defaults for absent optional fields."""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from typing import Any

import structlog

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import StageResult, warning
from openx_config.config.schema import FIELD_SPECS, FieldSpec, format_path, iter_matches

log = structlog.get_logger("config.defaults")


def render_value(value: Any) -> str:
    return json.dumps(value)


def fill_defaults(
    tree: dict[str, Any],
    specs: Iterable[FieldSpec] = FIELD_SPECS,
    *,
    record: bool = True,
) -> StageResult:
    """Return a copy of *tree* with every missing defaulted field inserted.

    Specs are applied in declaration order, so a section defaulted to ``{}``
    is filled by the specs that follow it. Only existing parent mappings are
    visited; an absent optional section stays absent. Explicit values, even
    falsy ones, are never replaced.

    With ``record=False`` no warnings are produced (used to build ``init``
    output, where every field ends up explicit).
    """
    filled = copy.deepcopy(tree)
    diagnostics = []
    for spec in specs:
        if not spec.has_default:
            continue
        segments = spec.segments
        parent_pattern, key = segments[:-1], segments[-1]
        for parent_path, parent in list(iter_matches(filled, parent_pattern)):
            if not isinstance(parent, dict) or key in parent or not spec.applies_to(parent):
                continue
            parent[key] = copy.deepcopy(spec.default)
            if record:
                path = format_path(parent_path + (key,))
                diagnostics.append(warning(
                    path,
                    f"field {path} not specified, using default {render_value(spec.default)}",
                    codes.DEFAULT_APPLIED,
                ))

    log.info("defaults_applied", count=len(diagnostics))
    return StageResult(tree=filled, diagnostics=diagnostics)
