"""Market-data provider and stream rules."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error, warning
from openx_config.config.schema import format_path
from openx_config.validation.registry import register_rule
from openx_config.validation.tree import (
    duplicates,
    entries,
    flag,
    is_sequence,
    lookup,
    primary_cardinality,
    symbols,
    text,
)


@register_rule
def check_providers(tree: Mapping[str, Any]) -> list[Diagnostic]:
    path = "market_data.providers"
    providers = lookup(tree, path)
    if not is_sequence(providers) or not providers:
        return []

    out: list[Diagnostic] = []
    enabled = [p for _, p in entries(providers) if flag(p, "enabled", True)]
    if not enabled:
        out.append(error(path, "at least one market data provider must be enabled", codes.NO_ENABLED_ENTRIES))
    else:
        out.extend(primary_cardinality(path, "market data provider", enabled, "name"))
    out.extend(duplicates(providers, ("market_data", "providers"), "name", "provider name"))
    return out


@register_rule
def check_streams(tree: Mapping[str, Any]) -> list[Diagnostic]:
    assets = symbols(lookup(tree, "instrument.supported_assets"))
    out: list[Diagnostic] = []
    for i, provider in entries(lookup(tree, "market_data.providers")):
        streams = provider.get("streams")
        base = ("market_data", "providers", i, "streams")
        out.extend(duplicates(streams, base, "name", "stream name"))
        for j, stream in entries(streams):
            endpoint = stream.get("endpoint")
            if isinstance(endpoint, str) and not endpoint.strip():
                stream_path = format_path(base + (j, "endpoint"))
                out.append(error(stream_path, f"{stream_path} must not be empty", codes.REQUIRED_FIELD))
            symbol = text(stream, "symbol")
            if symbol is not None and symbol not in assets:
                symbol_path = format_path(base + (j, "symbol"))
                out.append(warning(
                    symbol_path,
                    f"stream symbol '{symbol}' is not a supported asset",
                    codes.UNKNOWN_REFERENCE,
                ))
    return out


@register_rule
def check_asset_coverage(tree: Mapping[str, Any]) -> list[Diagnostic]:
    """Warn for enabled assets that no enabled provider streams."""
    covered: set[str] = set()
    for _, provider in entries(lookup(tree, "market_data.providers")):
        if flag(provider, "enabled", True):
            covered |= symbols(provider.get("streams"))

    out: list[Diagnostic] = []
    for i, asset in entries(lookup(tree, "instrument.supported_assets")):
        symbol = text(asset, "symbol")
        if symbol is None or not flag(asset, "enabled", True) or symbol in covered:
            continue
        out.append(warning(
            format_path(("instrument", "supported_assets", i)),
            f"asset {symbol} is enabled but has no market data source",
            codes.NO_MARKET_DATA,
        ))
    return out
