"""Read helpers shared by rules; all tolerate malformed shapes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error
from openx_config.config.schema import Segment, format_path


def lookup(tree: Mapping[str, Any], path: str) -> Any:
    """Return the value at a dotted path, or None if any step is missing."""
    node: Any = tree
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node


def is_sequence(node: Any) -> bool:
    return isinstance(node, (list, tuple))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def entries(node: Any) -> list[tuple[int, Mapping[str, Any]]]:
    """(index, entry) pairs for the mapping elements of a list."""
    if not is_sequence(node):
        return []
    return [(i, entry) for i, entry in enumerate(node) if isinstance(entry, Mapping)]


def flag(entry: Mapping[str, Any], key: str, default: bool) -> bool:
    value = entry.get(key, default)
    return value if isinstance(value, bool) else default


def text(entry: Mapping[str, Any], key: str) -> str | None:
    value = entry.get(key)
    return value if isinstance(value, str) and value else None


def symbols(node: Any) -> set[str]:
    """Symbols of the entries in a list (assets, currencies)."""
    return {s for _, entry in entries(node) if (s := text(entry, "symbol")) is not None}


def duplicates(
    node: Any, base: tuple[Segment, ...], key: str, label: str,
) -> list[Diagnostic]:
    """Error for each entry whose *key* repeats an earlier entry's."""
    out: list[Diagnostic] = []
    seen: set[str] = set()
    for i, entry in entries(node):
        value = text(entry, key)
        if value is None:
            continue
        if value in seen:
            out.append(error(
                format_path(base + (i, key)),
                f"duplicate {label} '{value}'",
                codes.DUPLICATE_ENTRY,
            ))
        seen.add(value)
    return out


def primary_cardinality(
    path: str, label: str, enabled: list[Mapping[str, Any]], name_key: str,
) -> list[Diagnostic]:
    """Exactly one of the enabled entries must carry ``primary: true``."""
    primaries = [entry for entry in enabled if flag(entry, "primary", False)]
    if len(primaries) == 1:
        return []
    if not primaries:
        return [error(
            path,
            f"exactly one enabled {label} must be marked primary, found none",
            codes.MISSING_PRIMARY,
        )]
    names = ", ".join(str(entry.get(name_key, "?")) for entry in primaries)
    return [error(
        path,
        f"exactly one enabled {label} must be marked primary, found {len(primaries)}: {names}",
        codes.MULTIPLE_PRIMARY,
    )]
