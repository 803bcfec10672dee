"""Field schema: one FieldSpec per document path.

Paths are dotted. ``name[]`` walks every element of the list ``name`` and
``*`` walks every key of a free-form mapping, so
``instrument.supported_assets[].enabled`` covers each asset entry.

The table is declared parents-first; the default filler relies on that order
so a section inserted with ``{}`` gets its own children filled afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Literal

Kind = Literal["string", "integer", "number", "boolean", "list", "mapping"]
Segment = str | int

ITEM = "[]"
KEY = "*"


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()

_SENSITIVE_MARKERS = ("password", "secret", "token", "api_key")


@dataclass(frozen=True)
class FieldSpec:
    """Static description of one document field."""

    path: str
    kind: Kind
    default: Any = NO_DEFAULT
    required: bool = False
    choices: tuple[Any, ...] | None = None
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool = False
    pattern: str | None = None
    non_empty: bool = False
    sensitive: bool = False
    # (sibling key, allowed values): the field only applies when the enclosing
    # mapping's sibling holds one of the values.
    when: tuple[str, tuple[str, ...]] | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def segments(self) -> tuple[str, ...]:
        return parse_path(self.path)

    def applies_to(self, parent: Mapping[str, Any]) -> bool:
        if self.when is None:
            return True
        key, values = self.when
        return parent.get(key) in values


def parse_path(path: str) -> tuple[str, ...]:
    segments: list[str] = []
    for part in path.split("."):
        if part.endswith(ITEM):
            segments.extend((part[: -len(ITEM)], ITEM))
        else:
            segments.append(part)
    return tuple(segments)


def format_path(segments: tuple[Segment, ...]) -> str:
    """Render concrete or pattern segments as ``a.b[0].c``."""
    out = ""
    for seg in segments:
        if isinstance(seg, int):
            out += f"[{seg}]"
        elif seg == ITEM:
            out += ITEM
        else:
            out += f".{seg}" if out else seg
    return out


def _is_sequence(node: Any) -> bool:
    return isinstance(node, (list, tuple))


def iter_matches(
    tree: Any, pattern: tuple[str, ...],
) -> Iterator[tuple[tuple[Segment, ...], Any]]:
    """Yield (concrete path, value) for every existing node matching *pattern*."""

    def walk(node: Any, remaining: tuple[str, ...], prefix: tuple[Segment, ...]):
        if not remaining:
            yield prefix, node
            return
        head, rest = remaining[0], remaining[1:]
        if head == ITEM:
            if _is_sequence(node):
                for index, child in enumerate(node):
                    yield from walk(child, rest, prefix + (index,))
        elif head == KEY:
            if isinstance(node, Mapping):
                for key, child in node.items():
                    yield from walk(child, rest, prefix + (key,))
        elif isinstance(node, Mapping) and head in node:
            yield from walk(node[head], rest, prefix + (head,))

    yield from walk(tree, pattern, ())


def _segment_matches(pattern_seg: str, seg: Segment) -> bool:
    if pattern_seg == ITEM:
        return isinstance(seg, int)
    if pattern_seg == KEY:
        return isinstance(seg, str)
    return pattern_seg == seg


def spec_for(segments: tuple[Segment, ...]) -> FieldSpec | None:
    """Return the FieldSpec declaring a concrete path, if any."""
    for spec in _specs_by_length().get(len(segments), ()):
        if all(_segment_matches(p, s) for p, s in zip(spec.segments, segments)):
            return spec
    return None


def is_sensitive(segments: tuple[Segment, ...]) -> bool:
    """True for credential-shaped paths: flagged in the schema or named like a secret."""
    spec = spec_for(segments)
    if spec is not None and spec.sensitive:
        return True
    leaf = next((s for s in reversed(segments) if isinstance(s, str)), "")
    return is_secret_name(leaf)


def is_secret_name(name: str) -> bool:
    """True for key names that hold a secret value (password, token, *_key)."""
    name = name.lower()
    return any(marker in name for marker in _SENSITIVE_MARKERS) or name.endswith("_key")


def declared_children() -> dict[tuple[str, ...], frozenset[str]]:
    """Map each parent pattern to the child keys the schema declares under it."""
    return dict(_declared_children())


@lru_cache(maxsize=1)
def _declared_children() -> tuple[tuple[tuple[str, ...], frozenset[str]], ...]:
    children: dict[tuple[str, ...], set[str]] = {}
    for spec in FIELD_SPECS:
        segments = spec.segments
        parent, name = segments[:-1], segments[-1]
        if name == ITEM:
            continue
        children.setdefault(parent, set()).add(name)
    return tuple((parent, frozenset(names)) for parent, names in children.items())


@lru_cache(maxsize=1)
def _specs_by_length() -> dict[int, tuple[FieldSpec, ...]]:
    grouped: dict[int, list[FieldSpec]] = {}
    for spec in FIELD_SPECS:
        grouped.setdefault(len(spec.segments), []).append(spec)
    return {length: tuple(specs) for length, specs in grouped.items()}


# ── Constraint presets ───────────────────────────────────────

POSITIVE_INT = {"minimum": 1}
NON_NEGATIVE = {"minimum": 0}
POSITIVE = {"minimum": 0, "exclusive_minimum": True}
FRACTION = {"minimum": 0.0, "maximum": 1.0}
PERCENT = {"minimum": 0, "exclusive_minimum": True, "maximum": 100}

VERSION_PATTERN = r"^\d+\.\d+\.\d+$"
TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"

FORMAT_HINTS = {
    VERSION_PATTERN: "MAJOR.MINOR.PATCH (e.g. 1.0.0)",
    TIME_PATTERN: "24-hour HH:MM",
}

EXCHANGE_MODES = ("production", "virtual", "both")
PROVIDER_TYPES = ("websocket", "grpc", "rest")
STORAGE_TYPES = ("postgres", "supabase")
# Top-level storage serves the instrument service; oms and risk_engine may
# carry their own.
STORAGE_DOMAINS = ("storage", "oms.storage", "risk_engine.storage")
ORDERBOOK_STORE_TYPES = ("redis", "inmemory")
CADENCES = ("daily", "weekly", "monthly", "quarterly", "yearly")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
SSL_MODES = ("disable", "allow", "prefer", "require", "verify-ca", "verify-full")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "console")


def _cadence_specs(name: str) -> list[FieldSpec]:
    base = f"expiry_schedule.{name}"
    return [
        FieldSpec(base, "mapping"),
        FieldSpec(f"{base}.enabled", "boolean", default=True),
        FieldSpec(f"{base}.count", "integer", **POSITIVE_INT),
        FieldSpec(f"{base}.expiry_time_utc", "string", required=True, pattern=TIME_PATTERN),
        FieldSpec(f"{base}.day_of_week", "string", choices=WEEKDAYS),
        FieldSpec(f"{base}.day_type", "string"),
        FieldSpec(f"{base}.months", "list"),
        FieldSpec(f"{base}.months[]", "integer", minimum=1, maximum=12),
        FieldSpec(f"{base}.month", "integer", minimum=1, maximum=12),
    ]


def _storage_specs(base: str, required: bool = False) -> list[FieldSpec]:
    """Backend selector plus postgres, supabase and cache blocks under *base*."""
    return [
        FieldSpec(base, "mapping", required=required),
        FieldSpec(f"{base}.type", "string", required=True, choices=STORAGE_TYPES),
        FieldSpec(f"{base}.postgres", "mapping"),
        FieldSpec(f"{base}.postgres.host", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.postgres.port", "integer", default=5432, minimum=1, maximum=65535),
        FieldSpec(f"{base}.postgres.database", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.postgres.user", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.postgres.password", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.postgres.ssl_mode", "string", default="require", choices=SSL_MODES),
        FieldSpec(f"{base}.postgres.max_connections", "integer", default=20, **POSITIVE_INT),
        FieldSpec(f"{base}.postgres.connection_timeout_seconds", "integer", default=30, **POSITIVE_INT),
        FieldSpec(f"{base}.postgres.idle_timeout_seconds", "integer", default=600, **POSITIVE_INT),
        FieldSpec(f"{base}.supabase", "mapping"),
        FieldSpec(f"{base}.supabase.url", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.supabase.anon_key", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.supabase.service_role_key", "string", required=True, sensitive=True),
        FieldSpec(f"{base}.cache", "mapping"),
        FieldSpec(f"{base}.cache.enabled", "boolean", default=True),
        FieldSpec(f"{base}.cache.ttl_seconds", "integer", default=300, **POSITIVE_INT),
        FieldSpec(f"{base}.cache.max_entries", "integer", default=10000, **POSITIVE_INT),
    ]


_WS = ("type", ("websocket",))
_REST = ("type", ("rest",))
_HISTORICAL = ("type", ("historical",))

FIELD_SPECS: tuple[FieldSpec, ...] = (
    # exchange
    FieldSpec("exchange", "mapping", required=True),
    FieldSpec("exchange.name", "string", required=True, non_empty=True),
    FieldSpec("exchange.description", "string", required=True, non_empty=True),
    FieldSpec("exchange.version", "string", required=True, pattern=VERSION_PATTERN),
    FieldSpec("exchange.mode", "string", required=True, choices=EXCHANGE_MODES),
    FieldSpec("exchange.trading_hours", "mapping", default={}),
    FieldSpec("exchange.trading_hours.type", "string", default="24/7"),
    # instrument universe
    FieldSpec("instrument", "mapping", required=True),
    FieldSpec("instrument.supported_assets", "list", required=True),
    FieldSpec("instrument.supported_assets[]", "mapping"),
    FieldSpec("instrument.supported_assets[].symbol", "string", required=True, non_empty=True),
    FieldSpec("instrument.supported_assets[].name", "string", required=True, non_empty=True),
    FieldSpec("instrument.supported_assets[].decimals", "integer", required=True, **NON_NEGATIVE),
    FieldSpec("instrument.supported_assets[].contract_size", "number", required=True, **POSITIVE),
    FieldSpec("instrument.supported_assets[].min_order_size", "integer", required=True, **POSITIVE_INT),
    FieldSpec("instrument.supported_assets[].tick_size", "number", required=True, **POSITIVE),
    FieldSpec("instrument.supported_assets[].price_decimals", "integer", required=True, **POSITIVE_INT),
    FieldSpec("instrument.supported_assets[].enabled", "boolean", default=True),
    FieldSpec("instrument.settlement_currencies", "list", required=True),
    FieldSpec("instrument.settlement_currencies[]", "mapping"),
    FieldSpec("instrument.settlement_currencies[].symbol", "string", required=True, non_empty=True),
    FieldSpec("instrument.settlement_currencies[].name", "string", required=True, non_empty=True),
    FieldSpec("instrument.settlement_currencies[].decimals", "integer", required=True, **NON_NEGATIVE),
    FieldSpec("instrument.settlement_currencies[].enabled", "boolean", default=True),
    FieldSpec("instrument.settlement_currencies[].primary", "boolean", default=False),
    FieldSpec("instrument.settlement_currencies[].chains", "list", default=[]),
    FieldSpec("instrument.settlement_currencies[].chains[]", "mapping"),
    FieldSpec("instrument.settlement_currencies[].chains[].chain", "string", required=True, non_empty=True),
    FieldSpec("instrument.settlement_currencies[].chains[].chain_id", "integer", required=True, **POSITIVE_INT),
    FieldSpec("instrument.settlement_currencies[].chains[].contract_address", "string", required=True, non_empty=True),
    FieldSpec("instrument.settlement_currencies[].chains[].rpc_url", "string", required=True, non_empty=True),
    FieldSpec("instrument.settlement_currencies[].chains[].gas_limit", "integer", default=100000, **POSITIVE_INT),
    FieldSpec("instrument.settlement_currencies[].chains[].enabled", "boolean", default=True),
    # market data
    FieldSpec("market_data", "mapping", default={}),
    FieldSpec("market_data.providers", "list", default=[]),
    FieldSpec("market_data.providers[]", "mapping"),
    FieldSpec("market_data.providers[].name", "string", required=True, non_empty=True),
    FieldSpec("market_data.providers[].type", "string", required=True, choices=PROVIDER_TYPES),
    FieldSpec("market_data.providers[].endpoint", "string"),
    FieldSpec("market_data.providers[].enabled", "boolean", default=True),
    FieldSpec("market_data.providers[].primary", "boolean", default=False),
    FieldSpec("market_data.providers[].streams", "list", default=[]),
    FieldSpec("market_data.providers[].streams[]", "mapping"),
    FieldSpec("market_data.providers[].streams[].name", "string", required=True, non_empty=True),
    FieldSpec("market_data.providers[].streams[].symbol", "string", required=True, non_empty=True),
    FieldSpec("market_data.providers[].streams[].ticker", "string", required=True, non_empty=True),
    FieldSpec("market_data.providers[].streams[].endpoint", "string"),
    FieldSpec("market_data.providers[].reconnect_delay_seconds", "integer", default=5, when=_WS, **POSITIVE_INT),
    FieldSpec("market_data.providers[].max_reconnect_attempts", "integer", default=10, when=_WS, **NON_NEGATIVE),
    FieldSpec("market_data.providers[].heartbeat_interval_seconds", "integer", default=30, when=_WS, **POSITIVE_INT),
    FieldSpec("market_data.providers[].connection_timeout_seconds", "integer", default=60, when=_WS, **POSITIVE_INT),
    FieldSpec("market_data.providers[].rate_limit_per_second", "integer", default=10, when=_REST, **POSITIVE_INT),
    FieldSpec("market_data.providers[].timeout_seconds", "integer", default=5, when=_REST, **POSITIVE_INT),
    FieldSpec("market_data.providers[].auth", "mapping"),
    FieldSpec("market_data.providers[].auth.type", "string", required=True, non_empty=True),
    FieldSpec("market_data.providers[].auth.api_key", "string", sensitive=True),
    FieldSpec("market_data.providers[].auth.api_secret", "string", sensitive=True),
    FieldSpec("market_data.fallback_strategy", "string", default="median",
              choices=("median", "average", "high", "low")),
    FieldSpec("market_data.max_price_age_seconds", "integer", default=10, **POSITIVE_INT),
    FieldSpec("market_data.stale_price_action", "string", default="halt_trading",
              choices=("halt_trading", "use_last_price", "use_fallback")),
    # expiry schedules: each cadence must be present, so none has a default
    FieldSpec("expiry_schedule", "mapping", required=True),
    *(spec for cadence in CADENCES for spec in _cadence_specs(cadence)),
    # storage backends
    *_storage_specs("storage", required=True),
    # order management
    FieldSpec("oms", "mapping", default={}),
    FieldSpec("oms.order_types", "mapping", default={}),
    FieldSpec("oms.order_types.limit", "mapping", default={}),
    FieldSpec("oms.order_types.limit.enabled", "boolean", default=True),
    FieldSpec("oms.order_types.market", "mapping", default={}),
    FieldSpec("oms.order_types.market.enabled", "boolean", default=True),
    FieldSpec("oms.order_types.stop_limit", "mapping", default={}),
    FieldSpec("oms.order_types.stop_limit.enabled", "boolean", default=False),
    FieldSpec("oms.order_types.stop_market", "mapping", default={}),
    FieldSpec("oms.order_types.stop_market.enabled", "boolean", default=False),
    FieldSpec("oms.time_in_force", "mapping", default={}),
    FieldSpec("oms.time_in_force.gtc", "mapping", default={}),
    FieldSpec("oms.time_in_force.gtc.enabled", "boolean", default=True),
    FieldSpec("oms.time_in_force.ioc", "mapping", default={}),
    FieldSpec("oms.time_in_force.ioc.enabled", "boolean", default=True),
    FieldSpec("oms.time_in_force.fok", "mapping", default={}),
    FieldSpec("oms.time_in_force.fok.enabled", "boolean", default=True),
    FieldSpec("oms.time_in_force.day", "mapping", default={}),
    FieldSpec("oms.time_in_force.day.enabled", "boolean", default=False),
    FieldSpec("oms.limits", "mapping", default={}),
    FieldSpec("oms.limits.max_open_orders_per_user", "integer", default=100, **POSITIVE_INT),
    FieldSpec("oms.limits.max_order_size_contracts", "integer", default=10000, **POSITIVE_INT),
    FieldSpec("oms.limits.min_order_size_contracts", "integer", default=1, **POSITIVE_INT),
    FieldSpec("oms.limits.max_price_deviation_percent", "number", default=20.0, **PERCENT),
    FieldSpec("oms.orderbook", "mapping", default={}),
    FieldSpec("oms.orderbook.depth_levels", "integer", default=50, **POSITIVE_INT),
    FieldSpec("oms.orderbook.update_frequency_ms", "integer", default=100, **POSITIVE_INT),
    *_storage_specs("oms.storage"),
    # matching engine
    FieldSpec("matching_engine", "mapping", default={}),
    FieldSpec("matching_engine.algorithm", "string", default="price_time_priority"),
    FieldSpec("matching_engine.performance", "mapping", default={}),
    FieldSpec("matching_engine.performance.matching_frequency_ms", "integer", default=10, **POSITIVE_INT),
    FieldSpec("matching_engine.performance.batch_size", "integer", default=100, **POSITIVE_INT),
    FieldSpec("matching_engine.orderbook_store", "mapping", default={}),
    FieldSpec("matching_engine.orderbook_store.type", "string", default="inmemory",
              choices=ORDERBOOK_STORE_TYPES),
    FieldSpec("matching_engine.orderbook_store.redis", "mapping"),
    FieldSpec("matching_engine.orderbook_store.redis.host", "string", required=True, sensitive=True),
    FieldSpec("matching_engine.orderbook_store.redis.port", "integer", default=6379, minimum=1, maximum=65535),
    FieldSpec("matching_engine.orderbook_store.redis.password", "string", required=True, sensitive=True),
    FieldSpec("matching_engine.orderbook_store.redis.cluster_mode", "boolean", default=False),
    FieldSpec("matching_engine.orderbook_store.redis.db_index", "integer", default=0, minimum=0, maximum=15),
    FieldSpec("matching_engine.orderbook_store.redis.persistence_enabled", "boolean", default=True),
    FieldSpec("matching_engine.orderbook_store.redis.snapshot_interval_seconds", "integer",
              default=60, **POSITIVE_INT),
    FieldSpec("matching_engine.execution", "mapping", default={}),
    FieldSpec("matching_engine.execution.atomic_trades", "boolean", default=True),
    FieldSpec("matching_engine.execution.max_partial_fills", "integer", default=10, **POSITIVE_INT),
    FieldSpec("matching_engine.circuit_breakers", "mapping", default={}),
    FieldSpec("matching_engine.circuit_breakers.enabled", "boolean", default=True),
    FieldSpec("matching_engine.circuit_breakers.price_movement", "mapping", default={}),
    FieldSpec("matching_engine.circuit_breakers.price_movement.enabled", "boolean", default=True),
    FieldSpec("matching_engine.circuit_breakers.price_movement.percent_threshold", "number",
              default=10.0, **PERCENT),
    FieldSpec("matching_engine.circuit_breakers.price_movement.time_window_seconds", "integer",
              default=60, **POSITIVE_INT),
    FieldSpec("matching_engine.circuit_breakers.price_movement.halt_duration_seconds", "integer",
              default=300, **POSITIVE_INT),
    FieldSpec("matching_engine.circuit_breakers.liquidity", "mapping", default={}),
    FieldSpec("matching_engine.circuit_breakers.liquidity.enabled", "boolean", default=True),
    FieldSpec("matching_engine.circuit_breakers.liquidity.min_bid_ask_orders", "integer",
              default=5, **POSITIVE_INT),
    FieldSpec("matching_engine.circuit_breakers.liquidity.max_spread_percent", "number",
              default=5.0, **PERCENT),
    FieldSpec("matching_engine.circuit_breakers.liquidity.halt_duration_seconds", "integer",
              default=60, **POSITIVE_INT),
    # risk engine
    FieldSpec("risk_engine", "mapping", default={}),
    FieldSpec("risk_engine.margin_method", "string", default="simplified_span",
              choices=("simplified_span",)),
    FieldSpec("risk_engine.initial_margin", "list", default=[]),
    FieldSpec("risk_engine.initial_margin[]", "mapping"),
    FieldSpec("risk_engine.initial_margin[].symbol", "string", required=True, non_empty=True),
    FieldSpec("risk_engine.initial_margin[].percentage", "number", required=True, **FRACTION),
    FieldSpec("risk_engine.maintenance_margin", "list", default=[]),
    FieldSpec("risk_engine.maintenance_margin[]", "mapping"),
    FieldSpec("risk_engine.maintenance_margin[].symbol", "string", required=True, non_empty=True),
    FieldSpec("risk_engine.maintenance_margin[].percentage", "number", required=True, **FRACTION),
    FieldSpec("risk_engine.liquidation", "mapping", default={}),
    FieldSpec("risk_engine.liquidation.enabled", "boolean", default=True),
    FieldSpec("risk_engine.liquidation.threshold", "number", default=1.0, **FRACTION),
    FieldSpec("risk_engine.liquidation.check_frequency_seconds", "integer", default=5, **POSITIVE_INT),
    FieldSpec("risk_engine.liquidation.partial_liquidation", "boolean", default=True),
    FieldSpec("risk_engine.liquidation.insurance_fund", "mapping", default={}),
    FieldSpec("risk_engine.liquidation.insurance_fund.enabled", "boolean", default=True),
    FieldSpec("risk_engine.liquidation.insurance_fund.initial_balance_usdt", "number",
              default=100000.0, **NON_NEGATIVE),
    FieldSpec("risk_engine.liquidation.insurance_fund.replenishment_percent", "number",
              default=0.10, **FRACTION),
    FieldSpec("risk_engine.position_limits", "mapping", default={}),
    FieldSpec("risk_engine.position_limits.max_contracts_per_instrument", "integer",
              default=10000, **POSITIVE_INT),
    FieldSpec("risk_engine.position_limits.max_notional_per_user_usdt", "number",
              default=1000000.0, **POSITIVE),
    FieldSpec("risk_engine.position_limits.max_delta_exposure_btc", "number", default=100.0, **POSITIVE),
    FieldSpec("risk_engine.position_limits.max_gamma_exposure", "number", default=10.0, **POSITIVE),
    FieldSpec("risk_engine.greeks", "mapping", default={}),
    FieldSpec("risk_engine.greeks.enabled", "boolean", default=True),
    FieldSpec("risk_engine.greeks.calculation_frequency_seconds", "integer", default=10, **POSITIVE_INT),
    FieldSpec("risk_engine.greeks.risk_free_rate", "number", default=0.05, **FRACTION),
    FieldSpec("risk_engine.greeks.volatility", "mapping", default={}),
    FieldSpec("risk_engine.greeks.volatility.type", "string", default="implied"),
    FieldSpec("risk_engine.greeks.volatility.historical_days", "integer", default=30,
              when=_HISTORICAL, **POSITIVE_INT),
    FieldSpec("risk_engine.greeks.volatility.manual_values", "mapping"),
    FieldSpec("risk_engine.greeks.volatility.manual_values.*", "number", **POSITIVE),
    *_storage_specs("risk_engine.storage"),
    # fees
    FieldSpec("fees", "mapping", default={}),
    FieldSpec("fees.maker_fee_rate", "number", default=0.0002, **FRACTION),
    FieldSpec("fees.taker_fee_rate", "number", default=0.0005, **FRACTION),
    FieldSpec("fees.settlement_fee_rate", "number", default=0.00015, **FRACTION),
    # logging
    FieldSpec("logging", "mapping", default={}),
    FieldSpec("logging.level", "string", default="INFO", choices=LOG_LEVELS),
    FieldSpec("logging.format", "string", default="json", choices=LOG_FORMATS),
)
