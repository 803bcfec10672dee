"""Expiry schedule rules: every cadence declared, enabled ones complete."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error
from openx_config.config.schema import CADENCES
from openx_config.validation.registry import register_rule
from openx_config.validation.tree import flag, is_sequence, lookup

# Keys an enabled cadence cannot do without.
CADENCE_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "daily": ("count",),
    "weekly": ("count", "day_of_week"),
    "monthly": ("count",),
    "quarterly": ("months",),
    "yearly": ("month",),
}


@register_rule
def check_cadence_coverage(tree: Mapping[str, Any]) -> list[Diagnostic]:
    schedule = lookup(tree, "expiry_schedule")
    if not isinstance(schedule, Mapping):
        return []
    return [
        error(
            f"expiry_schedule.{cadence}",
            f"expiry cadence '{cadence}' is not defined; daily, weekly, monthly, quarterly "
            f"and yearly must all be present (use enabled: false to switch one off)",
            codes.MISSING_CADENCE,
        )
        for cadence in CADENCES
        if cadence not in schedule
    ]


@register_rule
def check_cadence_details(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for cadence, keys in CADENCE_REQUIREMENTS.items():
        entry = lookup(tree, f"expiry_schedule.{cadence}")
        if not isinstance(entry, Mapping) or not flag(entry, "enabled", True):
            continue
        for key in keys:
            path = f"expiry_schedule.{cadence}.{key}"
            if key not in entry:
                out.append(error(
                    path,
                    f"{path} is required when the {cadence} schedule is enabled",
                    codes.REQUIRED_FIELD,
                ))
            elif is_sequence(entry[key]) and not entry[key]:
                out.append(error(path, f"{path} must list at least one month", codes.REQUIRED_FIELD))
    return out
