"""Storage backend rules: the selected backend must be fully configured."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error
from openx_config.config.schema import STORAGE_DOMAINS
from openx_config.validation.registry import register_rule
from openx_config.validation.tree import lookup

BACKEND_CREDENTIALS: dict[str, tuple[str, ...]] = {
    "postgres": ("host", "database", "user", "password"),
    "supabase": ("url", "anon_key", "service_role_key"),
}


def missing_section(path: str, selector: str, backend: str) -> Diagnostic:
    return error(
        path,
        f"{selector} is '{backend}' but the {path} section is missing",
        codes.MISSING_SECTION,
    )


def empty_credentials(block: Mapping[str, Any], base: str, keys: tuple[str, ...]) -> list[Diagnostic]:
    """Error per credential that is present but blank.

    Absent credentials are reported as required fields and unresolved
    placeholders by substitution, so neither is repeated here.
    """
    out: list[Diagnostic] = []
    for key in keys:
        value = block.get(key)
        if isinstance(value, str) and not value.strip():
            out.append(error(
                f"{base}.{key}",
                f"incomplete credentials: {base}.{key} is empty",
                codes.INCOMPLETE_CREDENTIALS,
            ))
    return out


@register_rule
def check_storage_backend(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for domain in STORAGE_DOMAINS:
        storage = lookup(tree, domain)
        if not isinstance(storage, Mapping):
            continue
        backend = storage.get("type")
        if not isinstance(backend, str) or backend not in BACKEND_CREDENTIALS:
            continue
        base = f"{domain}.{backend}"
        if backend not in storage:
            out.append(missing_section(base, f"{domain}.type", backend))
        elif isinstance(storage[backend], Mapping):
            out.extend(empty_credentials(storage[backend], base, BACKEND_CREDENTIALS[backend]))
    return out
