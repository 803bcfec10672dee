"""Order management, matching engine and risk engine rules."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openx_config.config import diagnostics as codes
from openx_config.config.diagnostics import Diagnostic, error, warning
from openx_config.config.schema import format_path
from openx_config.validation.registry import register_rule
from openx_config.validation.rules.storage import empty_credentials, missing_section
from openx_config.validation.tree import (
    duplicates,
    entries,
    is_number,
    lookup,
    symbols,
    text,
)

UNSUPPORTED_ORDER_TYPES = ("stop_limit", "stop_market")
SUPPORTED_ALGORITHM = "price_time_priority"
VOLATILITY_TYPES = ("implied", "historical", "manual")


def _enabled_flags(section: Any) -> dict[str, bool]:
    if not isinstance(section, Mapping):
        return {}
    return {
        name: entry.get("enabled") is True
        for name, entry in section.items()
        if isinstance(entry, Mapping)
    }


# ── OMS ──────────────────────────────────────────────────────


@register_rule
def check_order_types(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    order_types = _enabled_flags(lookup(tree, "oms.order_types"))
    for name in UNSUPPORTED_ORDER_TYPES:
        if order_types.get(name):
            out.append(error(
                f"oms.order_types.{name}.enabled",
                f"{name} orders are not supported in this version",
                codes.UNSUPPORTED_FEATURE,
            ))
    if order_types and not any(order_types.values()):
        out.append(error("oms.order_types", "at least one order type must be enabled", codes.NO_ENABLED_ENTRIES))

    time_in_force = _enabled_flags(lookup(tree, "oms.time_in_force"))
    if time_in_force and not any(time_in_force.values()):
        out.append(error("oms.time_in_force", "at least one time in force must be enabled", codes.NO_ENABLED_ENTRIES))
    return out


@register_rule
def check_order_size_limits(tree: Mapping[str, Any]) -> list[Diagnostic]:
    smallest = lookup(tree, "oms.limits.min_order_size_contracts")
    largest = lookup(tree, "oms.limits.max_order_size_contracts")
    if is_number(smallest) and is_number(largest) and smallest > largest:
        return [error(
            "oms.limits.min_order_size_contracts",
            f"min_order_size_contracts ({smallest}) exceeds max_order_size_contracts ({largest})",
            codes.INCONSISTENT_VALUE,
        )]
    return []


# ── Matching engine ──────────────────────────────────────────


@register_rule
def check_matching_engine(tree: Mapping[str, Any]) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    algorithm = lookup(tree, "matching_engine.algorithm")
    if isinstance(algorithm, str) and algorithm != SUPPORTED_ALGORITHM:
        out.append(warning(
            "matching_engine.algorithm",
            f"algorithm '{algorithm}' is not supported; {SUPPORTED_ALGORITHM} will be used",
            codes.UNSUPPORTED_VALUE,
        ))

    store = lookup(tree, "matching_engine.orderbook_store")
    if isinstance(store, Mapping) and store.get("type") == "redis":
        base = "matching_engine.orderbook_store.redis"
        if "redis" not in store:
            out.append(missing_section(base, "matching_engine.orderbook_store.type", "redis"))
        elif isinstance(store["redis"], Mapping):
            out.extend(empty_credentials(store["redis"], base, ("host",)))
    return out


# ── Risk engine ──────────────────────────────────────────────


@register_rule
def check_margin_tables(tree: Mapping[str, Any]) -> list[Diagnostic]:
    assets = symbols(lookup(tree, "instrument.supported_assets"))
    out: list[Diagnostic] = []
    for table in ("initial_margin", "maintenance_margin"):
        rows = lookup(tree, f"risk_engine.{table}")
        base = ("risk_engine", table)
        out.extend(duplicates(rows, base, "symbol", f"{table} symbol"))
        for i, row in entries(rows):
            symbol = text(row, "symbol")
            if symbol is not None and symbol not in assets:
                out.append(warning(
                    format_path(base + (i, "symbol")),
                    f"symbol '{symbol}' in risk_engine.{table} is not a supported asset",
                    codes.UNKNOWN_REFERENCE,
                ))
    return out


@register_rule
def check_margin_ordering(tree: Mapping[str, Any]) -> list[Diagnostic]:
    initial: dict[str, float] = {}
    for _, row in entries(lookup(tree, "risk_engine.initial_margin")):
        symbol = text(row, "symbol")
        if symbol is not None and is_number(row.get("percentage")):
            initial[symbol] = row["percentage"]

    out: list[Diagnostic] = []
    for i, row in entries(lookup(tree, "risk_engine.maintenance_margin")):
        symbol = text(row, "symbol")
        pct = row.get("percentage")
        if symbol in initial and is_number(pct) and pct > initial[symbol]:
            out.append(error(
                format_path(("risk_engine", "maintenance_margin", i, "percentage")),
                f"maintenance margin for {symbol} ({pct:g}) exceeds its initial margin ({initial[symbol]:g})",
                codes.INCONSISTENT_VALUE,
            ))
    return out


@register_rule
def check_volatility(tree: Mapping[str, Any]) -> list[Diagnostic]:
    volatility = lookup(tree, "risk_engine.greeks.volatility")
    if not isinstance(volatility, Mapping):
        return []
    kind = volatility.get("type")
    if isinstance(kind, str) and kind not in VOLATILITY_TYPES:
        return [warning(
            "risk_engine.greeks.volatility.type",
            f"volatility type '{kind}' is not supported; 'implied' will be used",
            codes.UNSUPPORTED_VALUE,
        )]
    if kind == "manual" and "manual_values" not in volatility:
        return [error(
            "risk_engine.greeks.volatility.manual_values",
            "risk_engine.greeks.volatility.manual_values is required when volatility type is 'manual'",
            codes.REQUIRED_FIELD,
        )]
    return []
