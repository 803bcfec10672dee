"""Exchange metadata and instrument universe rules."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error, warning
from openx_config.validation.registry import register_rule
from openx_config.validation.tree import (
    duplicates,
    entries,
    flag,
    is_sequence,
    lookup,
    primary_cardinality,
)

SUPPORTED_TRADING_HOURS = "24/7"


@register_rule
def check_trading_hours(tree: Mapping[str, Any]) -> list[Diagnostic]:
    hours = lookup(tree, "exchange.trading_hours.type")
    if isinstance(hours, str) and hours != SUPPORTED_TRADING_HOURS:
        return [warning(
            "exchange.trading_hours.type",
            f"trading hours {hours!r} are not supported; only {SUPPORTED_TRADING_HOURS} trading is available",
            codes.UNSUPPORTED_VALUE,
        )]
    return []


@register_rule
def check_supported_assets(tree: Mapping[str, Any]) -> list[Diagnostic]:
    path = "instrument.supported_assets"
    assets = lookup(tree, path)
    if not is_sequence(assets):
        return []
    if not assets:
        return [error(path, "at least one supported asset must be defined", codes.NO_ENABLED_ENTRIES)]

    out: list[Diagnostic] = []
    if not any(flag(asset, "enabled", True) for _, asset in entries(assets)):
        out.append(error(path, "at least one supported asset must be enabled", codes.NO_ENABLED_ENTRIES))
    out.extend(duplicates(assets, ("instrument", "supported_assets"), "symbol", "asset symbol"))
    return out


@register_rule
def check_settlement_currencies(tree: Mapping[str, Any]) -> list[Diagnostic]:
    path = "instrument.settlement_currencies"
    currencies = lookup(tree, path)
    if not is_sequence(currencies):
        return []
    if not currencies:
        return [error(path, "at least one settlement currency must be defined", codes.NO_ENABLED_ENTRIES)]

    out: list[Diagnostic] = []
    enabled = [c for _, c in entries(currencies) if flag(c, "enabled", True)]
    if not enabled:
        out.append(error(path, "at least one settlement currency must be enabled", codes.NO_ENABLED_ENTRIES))
    else:
        out.extend(primary_cardinality(path, "settlement currency", enabled, "symbol"))
    out.extend(duplicates(currencies, ("instrument", "settlement_currencies"), "symbol", "settlement currency"))
    return out
