"""Environment substitution for ``${NAME}`` placeholders in string leaves."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, StageResult, error, warning
from openx_config.config.schema import Segment, format_path, is_sensitive

log = structlog.get_logger("config.substitution")

PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

EnvSnapshot = Mapping[str, str]


def snapshot_environment(environ: Mapping[str, str] | None = None) -> EnvSnapshot:
    """Freeze the environment once for the duration of a run."""
    source = os.environ if environ is None else environ
    return MappingProxyType(dict(source))


def _substitute_leaf(
    text: str,
    segments: tuple[Segment, ...],
    env: EnvSnapshot,
    out: list[Diagnostic],
) -> str:
    if "${" not in text:
        return text

    path = format_path(segments)
    sensitive = is_sensitive(segments)
    pieces: list[str] = []
    last = 0
    for match in PLACEHOLDER.finditer(text):
        name = match.group(1)
        pieces.append(text[last:match.start()])
        last = match.end()
        if name in env:
            pieces.append(env[name])
        elif sensitive:
            out.append(error(
                path,
                f"environment variable {name} is not set; {path} is unresolved",
                codes.UNRESOLVED_VAR,
            ))
            # Leaf stays as written so it reads as unresolved, never as "".
            return text
        else:
            out.append(warning(
                path,
                f"environment variable {name} is not set; substituting an empty string",
                codes.UNSET_VAR,
            ))
    pieces.append(text[last:])
    return "".join(pieces)


def _walk(node: Any, segments: tuple[Segment, ...], env: EnvSnapshot, out: list[Diagnostic]) -> Any:
    if isinstance(node, dict):
        return {key: _walk(child, segments + (key,), env, out) for key, child in node.items()}
    if isinstance(node, list):
        return [_walk(child, segments + (i,), env, out) for i, child in enumerate(node)]
    if isinstance(node, str):
        return _substitute_leaf(node, segments, env, out)
    if node is None or isinstance(node, (bool, int, float)):
        return node
    raise TypeError(f"unexpected node type {type(node).__name__} at {format_path(segments)}")


def substitute(tree: dict[str, Any], env: EnvSnapshot) -> StageResult:
    """Return a new tree with every placeholder resolved against *env*.

    Each leaf is scanned once; substituted text is never rescanned. A missing
    variable on a sensitive path is an error and leaves the leaf unresolved;
    elsewhere it is a warning and resolves to "".
    """
    diagnostics: list[Diagnostic] = []
    resolved = _walk(tree, (), env, diagnostics)
    log.info(
        "substitution_complete",
        unresolved=sum(1 for d in diagnostics if d.is_error),
        unset=sum(1 for d in diagnostics if not d.is_error),
    )
    return StageResult(tree=resolved, diagnostics=diagnostics)
