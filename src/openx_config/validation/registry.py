"""Rule registry: decorated check functions are collected in order."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

import structlog

from openx_config.config.diagnostics import Diagnostic

log = structlog.get_logger("config.validator")

Rule = Callable[[Mapping[str, Any]], list[Diagnostic]]

RULES: list[Rule] = []


def register_rule(fn: Rule) -> Rule:
    """Decorator that appends a rule; registration order breaks sort ties."""
    if any(rule.__name__ == fn.__name__ for rule in RULES):
        raise ValueError(f"Duplicate rule name: {fn.__name__!r}")
    RULES.append(fn)
    return fn


def freeze(node: Any) -> Any:
    """Read-only view of a tree: mappings become proxies, lists become tuples."""
    if isinstance(node, dict):
        return MappingProxyType({key: freeze(child) for key, child in node.items()})
    if isinstance(node, list):
        return tuple(freeze(child) for child in node)
    return node


def validate(tree: Mapping[str, Any], rules: Iterable[Rule] | None = None) -> list[Diagnostic]:
    """Run every rule against the same frozen input and concatenate the results.

    No rule can stop the others; the output is the union of all rule outputs
    in registration order.
    """
    frozen = freeze(tree)
    selected = RULES if rules is None else list(rules)
    diagnostics: list[Diagnostic] = []
    for rule in selected:
        diagnostics.extend(rule(frozen))
    log.info(
        "validation_complete",
        rules=len(selected),
        errors=sum(1 for d in diagnostics if d.is_error),
        warnings=sum(1 for d in diagnostics if not d.is_error),
    )
    return diagnostics
