"""Schema-driven rules: presence, types, formats, enums, ranges, unknown keys."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error, warning
from openx_config.config.schema import (
    FIELD_SPECS,
    FORMAT_HINTS,
    KEY,
    FieldSpec,
    declared_children,
    format_path,
    iter_matches,
)
from openx_config.validation.registry import register_rule
from openx_config.validation.tree import is_number


def kind_of(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, Mapping):
        return "mapping"
    raise TypeError(f"unexpected node type {type(value).__name__}")


def _matches_kind(value: Any, kind: str) -> bool:
    actual = kind_of(value)
    return actual == kind or (kind == "number" and actual == "integer")


def _fmt(number: float) -> str:
    return f"{number:g}"


def _range_violation(spec: FieldSpec, value: float) -> str | None:
    low, high = spec.minimum, spec.maximum
    too_low = low is not None and (value <= low if spec.exclusive_minimum else value < low)
    too_high = high is not None and value > high
    if not (too_low or too_high):
        return None
    if low is not None and high is not None:
        lower = f"greater than {_fmt(low)}" if spec.exclusive_minimum else f"at least {_fmt(low)}"
        return f"must be {lower} and at most {_fmt(high)}"
    if low is not None:
        return f"must be greater than {_fmt(low)}" if spec.exclusive_minimum else f"must be at least {_fmt(low)}"
    return f"must be at most {_fmt(high)}"


@register_rule
def check_required_fields(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for spec in FIELD_SPECS:
        if not spec.required:
            continue
        segments = spec.segments
        for parent_path, parent in iter_matches(tree, segments[:-1]):
            if not isinstance(parent, Mapping) or not spec.applies_to(parent):
                continue
            path = format_path(parent_path + (segments[-1],))
            value = parent.get(segments[-1])
            if segments[-1] not in parent:
                out.append(error(path, f"{path} is required", codes.REQUIRED_FIELD))
            elif spec.non_empty and isinstance(value, str) and not value.strip():
                out.append(error(path, f"{path} must not be empty", codes.REQUIRED_FIELD))
    return out


@register_rule
def check_field_types(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for spec in FIELD_SPECS:
        for path, value in iter_matches(tree, spec.segments):
            if not _matches_kind(value, spec.kind):
                rendered = format_path(path)
                out.append(error(
                    rendered,
                    f"{rendered} must be of type {spec.kind}, got {kind_of(value)}",
                    codes.TYPE_MISMATCH,
                ))
    return out


@register_rule
def check_field_formats(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for spec in FIELD_SPECS:
        if spec.pattern is None:
            continue
        for path, value in iter_matches(tree, spec.segments):
            if isinstance(value, str) and re.fullmatch(spec.pattern, value) is None:
                rendered = format_path(path)
                hint = FORMAT_HINTS.get(spec.pattern, spec.pattern)
                out.append(error(
                    rendered,
                    f"invalid format for {rendered}: {value!r}; expected {hint}",
                    codes.INVALID_FORMAT,
                ))
    return out


@register_rule
def check_field_choices(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for spec in FIELD_SPECS:
        if spec.choices is None:
            continue
        for path, value in iter_matches(tree, spec.segments):
            if _matches_kind(value, spec.kind) and value not in spec.choices:
                rendered = format_path(path)
                allowed = ", ".join(str(choice) for choice in spec.choices)
                out.append(error(
                    rendered,
                    f"{rendered} is {value!r}; must be one of: {allowed}",
                    codes.ENUM_MISMATCH,
                ))
    return out


@register_rule
def check_field_ranges(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for spec in FIELD_SPECS:
        if spec.kind != "number" and spec.minimum is None and spec.maximum is None:
            continue
        for path, value in iter_matches(tree, spec.segments):
            if not is_number(value) or not _matches_kind(value, spec.kind):
                continue
            # NaN compares false against both bounds
            if not math.isfinite(value):
                problem = "must be a finite number"
            else:
                problem = _range_violation(spec, value)
            if problem is not None:
                rendered = format_path(path)
                out.append(error(
                    rendered,
                    f"{rendered} {problem}, got {_fmt(value)}",
                    codes.OUT_OF_RANGE,
                ))
    return out


@register_rule
def check_unknown_fields(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for parent_pattern, known in declared_children().items():
        if KEY in known:
            continue
        for parent_path, parent in iter_matches(tree, parent_pattern):
            if not isinstance(parent, Mapping):
                continue
            for key in parent:
                if key not in known:
                    path = format_path(parent_path + (key,))
                    out.append(warning(path, f"unknown field {path} is ignored", codes.UNKNOWN_FIELD))
    return out
