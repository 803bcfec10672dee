"""Starter document written by ``init``.

Holds only what has no schema default; ``generate_default_document`` runs it
through the default filler so every field ends up explicit.
"""

from __future__ import annotations

from typing import Any

from openx_config.config.defaults import fill_defaults

# One database per service: instrument, order management, risk.
DB_PREFIXES = ("INSTRUMENT", "OMS", "RISK")


def _postgres_storage(prefix: str) -> dict[str, Any]:
    return {
        "type": "postgres",
        "postgres": {
            "host": f"${{{prefix}_DB_HOST}}",
            "database": f"${{{prefix}_DB_NAME}}",
            "user": f"${{{prefix}_DB_USER}}",
            "password": f"${{{prefix}_DB_PASSWORD}}",
        },
    }


STARTER_DOCUMENT: dict[str, Any] = {
    "exchange": {
        "name": "My Exchange",
        "description": "A white-label crypto options exchange",
        "version": "1.0.0",
        "mode": "virtual",
    },
    "instrument": {
        "supported_assets": [
            {
                "symbol": "BTC",
                "name": "Bitcoin",
                "decimals": 8,
                "contract_size": 0.01,
                "min_order_size": 1,
                "tick_size": 0.5,
                "price_decimals": 2,
            },
            {
                "symbol": "ETH",
                "name": "Ethereum",
                "decimals": 18,
                "contract_size": 0.1,
                "min_order_size": 1,
                "tick_size": 0.1,
                "price_decimals": 2,
            },
        ],
        "settlement_currencies": [
            {"symbol": "USDT", "name": "Tether", "decimals": 6, "primary": True},
        ],
    },
    "market_data": {
        "providers": [
            {
                "name": "binance",
                "type": "websocket",
                "endpoint": "wss://stream.binance.com:9443/ws",
                "primary": True,
                "streams": [
                    {"name": "btc_index", "symbol": "BTC", "ticker": "btcusdt@trade"},
                    {"name": "eth_index", "symbol": "ETH", "ticker": "ethusdt@trade"},
                ],
            },
        ],
    },
    "expiry_schedule": {
        "daily": {"count": 2, "expiry_time_utc": "08:00"},
        "weekly": {"count": 2, "expiry_time_utc": "08:00", "day_of_week": "friday"},
        "monthly": {"count": 3, "expiry_time_utc": "08:00", "day_type": "last_friday"},
        "quarterly": {"expiry_time_utc": "08:00", "months": [3, 6, 9, 12]},
        "yearly": {"enabled": False, "expiry_time_utc": "08:00", "month": 12},
    },
    "storage": {**_postgres_storage("INSTRUMENT"), "cache": {}},
    "oms": {"storage": _postgres_storage("OMS")},
    "risk_engine": {
        "storage": _postgres_storage("RISK"),
        "initial_margin": [
            {"symbol": "BTC", "percentage": 0.15},
            {"symbol": "ETH", "percentage": 0.15},
        ],
        "maintenance_margin": [
            {"symbol": "BTC", "percentage": 0.075},
            {"symbol": "ETH", "percentage": 0.075},
        ],
    },
}

# Variables the starter document expects at validate/start time.
STARTER_VARIABLES = tuple(
    f"{prefix}_DB_{part}" for prefix in DB_PREFIXES for part in ("HOST", "NAME", "USER", "PASSWORD")
)


def generate_default_document() -> dict[str, Any]:
    """Fully defaulted document with placeholders left in place."""
    return fill_defaults(STARTER_DOCUMENT, record=False).tree
