"""Resolved configuration: Pydantic models for a validated document.

Only built once a document has passed validation with zero errors, so the
models carry no constraints of their own beyond types.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from sqlalchemy import URL


# ── Exchange and instruments ─────────────────────────────────


class TradingHours(BaseModel):
    type: str = "24/7"


class ExchangeConfig(BaseModel):
    name: str
    description: str
    version: str
    mode: Literal["production", "virtual", "both"]
    trading_hours: TradingHours = Field(default_factory=TradingHours)


class Asset(BaseModel):
    symbol: str
    name: str
    decimals: int
    contract_size: float
    min_order_size: int
    tick_size: float
    price_decimals: int
    enabled: bool = True


class ChainConfig(BaseModel):
    chain: str
    chain_id: int
    contract_address: str
    rpc_url: str
    gas_limit: int = 100000
    enabled: bool = True


class SettlementCurrency(BaseModel):
    symbol: str
    name: str
    decimals: int
    enabled: bool = True
    primary: bool = False
    chains: list[ChainConfig] = Field(default_factory=list)


class InstrumentConfig(BaseModel):
    supported_assets: list[Asset]
    settlement_currencies: list[SettlementCurrency]


# ── Market data ──────────────────────────────────────────────


class MarketDataStream(BaseModel):
    name: str
    symbol: str
    ticker: str
    endpoint: str | None = None


class ProviderAuth(BaseModel):
    type: str
    api_key: str | None = None
    api_secret: str | None = None


class MarketDataProvider(BaseModel):
    name: str
    type: Literal["websocket", "grpc", "rest"]
    endpoint: str | None = None
    enabled: bool = True
    primary: bool = False
    streams: list[MarketDataStream] = Field(default_factory=list)
    reconnect_delay_seconds: int | None = None
    max_reconnect_attempts: int | None = None
    heartbeat_interval_seconds: int | None = None
    connection_timeout_seconds: int | None = None
    rate_limit_per_second: int | None = None
    timeout_seconds: int | None = None
    auth: ProviderAuth | None = None


class MarketDataConfig(BaseModel):
    providers: list[MarketDataProvider] = Field(default_factory=list)
    fallback_strategy: Literal["median", "average", "high", "low"] = "median"
    max_price_age_seconds: int = 10
    stale_price_action: str = "halt_trading"


# ── Expiry schedules ─────────────────────────────────────────


class ExpirySchedule(BaseModel):
    enabled: bool = True
    count: int | None = None
    expiry_time_utc: str
    day_of_week: str | None = None
    day_type: str | None = None
    months: list[int] | None = None
    month: int | None = None


class ExpiryConfig(BaseModel):
    daily: ExpirySchedule
    weekly: ExpirySchedule
    monthly: ExpirySchedule
    quarterly: ExpirySchedule
    yearly: ExpirySchedule


# ── Storage ──────────────────────────────────────────────────


class PostgresConfig(BaseModel):
    host: str
    port: int = 5432
    database: str
    user: str
    password: str
    ssl_mode: str = "require"
    max_connections: int = 20
    connection_timeout_seconds: int = 30
    idle_timeout_seconds: int = 600

    def sqlalchemy_url(self) -> URL:
        """SQLAlchemy URL for the psycopg v3 driver; no connection is made."""
        return URL.create(
            "postgresql+psycopg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"sslmode": self.ssl_mode},
        )


class SupabaseConfig(BaseModel):
    url: str
    anon_key: str
    service_role_key: str


class CacheConfig(BaseModel):
    enabled: bool = True
    ttl_seconds: int = 300
    max_entries: int = 10000


class StorageConfig(BaseModel):
    type: Literal["postgres", "supabase"]
    postgres: PostgresConfig | None = None
    supabase: SupabaseConfig | None = None
    cache: CacheConfig | None = None


# ── Order management ─────────────────────────────────────────


class Toggle(BaseModel):
    enabled: bool


class OrderTypesConfig(BaseModel):
    limit: Toggle = Field(default_factory=lambda: Toggle(enabled=True))
    market: Toggle = Field(default_factory=lambda: Toggle(enabled=True))
    stop_limit: Toggle = Field(default_factory=lambda: Toggle(enabled=False))
    stop_market: Toggle = Field(default_factory=lambda: Toggle(enabled=False))


class TimeInForceConfig(BaseModel):
    gtc: Toggle = Field(default_factory=lambda: Toggle(enabled=True))
    ioc: Toggle = Field(default_factory=lambda: Toggle(enabled=True))
    fok: Toggle = Field(default_factory=lambda: Toggle(enabled=True))
    day: Toggle = Field(default_factory=lambda: Toggle(enabled=False))


class OmsLimits(BaseModel):
    max_open_orders_per_user: int = 100
    max_order_size_contracts: int = 10000
    min_order_size_contracts: int = 1
    max_price_deviation_percent: float = 20.0


class OrderbookConfig(BaseModel):
    depth_levels: int = 50
    update_frequency_ms: int = 100


class OmsConfig(BaseModel):
    order_types: OrderTypesConfig = Field(default_factory=OrderTypesConfig)
    time_in_force: TimeInForceConfig = Field(default_factory=TimeInForceConfig)
    limits: OmsLimits = Field(default_factory=OmsLimits)
    orderbook: OrderbookConfig = Field(default_factory=OrderbookConfig)
    storage: StorageConfig | None = None


# ── Matching engine ──────────────────────────────────────────


class PerformanceConfig(BaseModel):
    matching_frequency_ms: int = 10
    batch_size: int = 100


class RedisConfig(BaseModel):
    host: str
    port: int = 6379
    password: str
    cluster_mode: bool = False
    db_index: int = 0
    persistence_enabled: bool = True
    snapshot_interval_seconds: int = 60


class OrderbookStoreConfig(BaseModel):
    type: Literal["redis", "inmemory"] = "inmemory"
    redis: RedisConfig | None = None


class ExecutionConfig(BaseModel):
    atomic_trades: bool = True
    max_partial_fills: int = 10


class PriceMovementBreaker(BaseModel):
    enabled: bool = True
    percent_threshold: float = 10.0
    time_window_seconds: int = 60
    halt_duration_seconds: int = 300


class LiquidityBreaker(BaseModel):
    enabled: bool = True
    min_bid_ask_orders: int = 5
    max_spread_percent: float = 5.0
    halt_duration_seconds: int = 60


class CircuitBreakersConfig(BaseModel):
    enabled: bool = True
    price_movement: PriceMovementBreaker = Field(default_factory=PriceMovementBreaker)
    liquidity: LiquidityBreaker = Field(default_factory=LiquidityBreaker)


class MatchingEngineConfig(BaseModel):
    algorithm: str = "price_time_priority"
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    orderbook_store: OrderbookStoreConfig = Field(default_factory=OrderbookStoreConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    circuit_breakers: CircuitBreakersConfig = Field(default_factory=CircuitBreakersConfig)


# ── Risk engine ──────────────────────────────────────────────


class MarginConfig(BaseModel):
    symbol: str
    percentage: float


class InsuranceFundConfig(BaseModel):
    enabled: bool = True
    initial_balance_usdt: float = 100000.0
    replenishment_percent: float = 0.10


class LiquidationConfig(BaseModel):
    enabled: bool = True
    threshold: float = 1.0
    check_frequency_seconds: int = 5
    partial_liquidation: bool = True
    insurance_fund: InsuranceFundConfig = Field(default_factory=InsuranceFundConfig)


class PositionLimits(BaseModel):
    max_contracts_per_instrument: int = 10000
    max_notional_per_user_usdt: float = 1000000.0
    max_delta_exposure_btc: float = 100.0
    max_gamma_exposure: float = 10.0


class VolatilityConfig(BaseModel):
    type: str = "implied"
    historical_days: int | None = None
    manual_values: dict[str, float] | None = None


class GreeksConfig(BaseModel):
    enabled: bool = True
    calculation_frequency_seconds: int = 10
    risk_free_rate: float = 0.05
    volatility: VolatilityConfig = Field(default_factory=VolatilityConfig)


class RiskEngineConfig(BaseModel):
    margin_method: str = "simplified_span"
    initial_margin: list[MarginConfig] = Field(default_factory=list)
    maintenance_margin: list[MarginConfig] = Field(default_factory=list)
    liquidation: LiquidationConfig = Field(default_factory=LiquidationConfig)
    position_limits: PositionLimits = Field(default_factory=PositionLimits)
    greeks: GreeksConfig = Field(default_factory=GreeksConfig)
    storage: StorageConfig | None = None


# ── Fees and logging ─────────────────────────────────────────


class FeesConfig(BaseModel):
    maker_fee_rate: float = 0.0002
    taker_fee_rate: float = 0.0005
    settlement_fee_rate: float = 0.00015


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class VenueConfig(BaseModel):
    """Root of a resolved configuration."""

    exchange: ExchangeConfig
    instrument: InstrumentConfig
    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)
    expiry_schedule: ExpiryConfig
    storage: StorageConfig
    oms: OmsConfig = Field(default_factory=OmsConfig)
    matching_engine: MatchingEngineConfig = Field(default_factory=MatchingEngineConfig)
    risk_engine: RiskEngineConfig = Field(default_factory=RiskEngineConfig)
    fees: FeesConfig = Field(default_factory=FeesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def primary_currency(self) -> SettlementCurrency:
        return next(
            c for c in self.instrument.settlement_currencies if c.enabled and c.primary
        )

    @property
    def storage_domains(self) -> dict[str, StorageConfig]:
        """Storage blocks by owning service; oms and risk fall back to the shared one."""
        return {
            "instrument": self.storage,
            "oms": self.oms.storage or self.storage,
            "risk_engine": self.risk_engine.storage or self.storage,
        }

    @property
    def enabled_assets(self) -> list[Asset]:
        return [a for a in self.instrument.supported_assets if a.enabled]
