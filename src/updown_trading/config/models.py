"""Configuration models for the UpDown trading system using Pydantic."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StrategyConfig(BaseModel):
    """Factor extraction and signal combination parameters."""

    model_config = ConfigDict(extra="forbid")

    # Momentum
    momentum_periods: list[int] = Field(
        default_factory=lambda: [3, 5],
        description="Lookback periods (in bars) used for momentum"
    )
    momentum_weights: dict[int, float] = Field(
        default_factory=lambda: {3: 0.6, 5: 0.4},
        description="Weight per lookback period; unknown periods use 0.4"
    )
    momentum_scale: float = Field(
        default=100.0,
        gt=0.0,
        description="Multiplier mapping fractional change onto [-1, 1]"
    )
    momentum_threshold: float = Field(
        default=0.001,
        ge=0.0,
        description="Minimum |momentum| for the momentum term to contribute"
    )

    # Volatility
    volatility_period: int = Field(
        default=10,
        ge=2,
        description="Number of bars in the true-range window"
    )
    high_volatility_multiplier: float = Field(
        default=1.5,
        gt=0.0,
        description="Divisor applied to the ATR/price ratio"
    )

    # Pricing deviation
    pricing_deviation_threshold: float = Field(
        default=0.05,
        ge=0.0,
        description="Minimum |deviation| for the pricing term to contribute"
    )

    # Volume
    volume_anomaly_threshold: float = Field(
        default=2.0,
        gt=0.0,
        description="Volume ratio considered fully anomalous"
    )

    # Time factor
    use_time_factor: bool = True
    early_market_weight: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Weight applied to the early-market trend"
    )
    early_window_minutes: float = Field(
        default=5.0,
        ge=0.0,
        description="Minutes after market start during which the time factor is active"
    )
    time_factor_threshold: float = Field(
        default=0.1,
        ge=0.0,
        description="Minimum |time factor| for it to count as a reason or in agreement"
    )

    # Combination weights
    momentum_weight: float = Field(default=0.40, ge=0.0)
    pricing_weight: float = Field(default=0.25, ge=0.0)
    time_weight: float = Field(default=0.10, ge=0.0)
    volume_weight: float = Field(default=0.10, ge=0.0)

    # Gating
    min_confidence: float = Field(
        default=0.60,
        ge=0.0,
        le=1.0,
        description="Minimum combined confidence to emit a signal"
    )
    min_signal_strength: float = Field(
        default=0.55,
        ge=0.0,
        le=1.0,
        description="Minimum signal strength to emit a signal"
    )

    # History
    bar_timeframe: str = Field(
        default="15m",
        description="Width of the price bars fed into the factors"
    )
    history_bars: int = Field(
        default=50,
        ge=1,
        description="Number of bars requested per evaluation"
    )
    min_history_bars: int = Field(
        default=10,
        ge=1,
        description="Instruments with fewer bars are skipped"
    )

    @field_validator("momentum_periods")
    @classmethod
    def _periods_positive(cls, value: list[int]) -> list[int]:
        if not value or any(p < 2 for p in value):
            raise ValueError("momentum_periods must be non-empty and each period >= 2")
        return value


class SizingConfig(BaseModel):
    """Position sizing parameters."""

    model_config = ConfigDict(extra="forbid")

    base_size_usd: float = Field(default=100.0, gt=0.0)
    liquidity_cap_fraction: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Maximum fraction of outcome liquidity a single entry may take"
    )
    min_size_usd: float = Field(default=50.0, gt=0.0)
    max_size_usd: float = Field(default=500.0, gt=0.0)
    high_probability_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Outcomes priced above this are considered priced-in"
    )
    high_probability_derate: float = Field(default=0.8, gt=0.0, le=1.0)


class RiskConfig(BaseModel):
    """Risk limits applied before and after entries."""

    model_config = ConfigDict(extra="forbid")

    max_position_size_usd: float = Field(
        default=100.0,
        gt=0.0,
        description="Hard cap for a single position"
    )
    max_daily_loss_usd: float = Field(
        default=500.0,
        gt=0.0,
        description="Daily realized loss that blocks new entries"
    )
    max_positions: int = Field(
        default=5,
        ge=1,
        description="Maximum number of simultaneously open positions"
    )
    stop_loss_percent: float = Field(
        default=10.0,
        gt=0.0,
        description="Stop loss in percent units (10 = 10% loss triggers exit)"
    )
    min_market_liquidity_usd: float = Field(
        default=1000.0,
        ge=0.0,
        description="Instruments with less liquidity are not evaluated"
    )


class LoopConfig(BaseModel):
    """Trading loop scheduling and mode."""

    model_config = ConfigDict(extra="forbid")

    mode: str = Field(
        default="collect",
        description="'collect' records signals only, 'paper' simulates fills"
    )
    poll_interval_sec: float = Field(default=5.0, ge=0.0)
    request_delay_sec: float = Field(
        default=0.5,
        ge=0.0,
        description="Delay between per-instrument collaborator calls"
    )
    max_markets_per_cycle: int = Field(default=10, ge=1)

    @field_validator("mode")
    @classmethod
    def _mode_known(cls, value: str) -> str:
        value = value.lower()
        if value not in ("collect", "paper"):
            raise ValueError(f"mode must be 'collect' or 'paper', got '{value}'")
        return value


class ApiConfig(BaseModel):
    """External API endpoints."""

    model_config = ConfigDict(extra="forbid")

    polymarket_data_api_url: str = "https://gamma-api.polymarket.com"
    market_symbols: list[str] = Field(
        default_factory=lambda: ["btc", "eth", "xrp", "sol", "matic", "link"],
        description="Underlying symbols whose 15m up/down markets are probed"
    )
    chainlink_feed_urls: list[str] = Field(
        default_factory=lambda: [
            "https://data.chain.link/v1/feeds/{feed}",
            "https://api.chain.link/v1/feeds/{feed}",
        ],
        description="Reference feed URL templates tried in order"
    )
    ccxt_exchange_id: str = Field(
        default="binance",
        description="ccxt exchange used for bars and ticker reference prices"
    )
    quote_currency: str = "USDT"
    timeout_seconds: int = Field(default=10, ge=1)
    history_cache_ttl_sec: float = Field(
        default=60.0,
        ge=0.0,
        description="How long fetched bar history stays fresh"
    )


class StorageConfig(BaseModel):
    """Where analysis records are written."""

    model_config = ConfigDict(extra="forbid")

    data_dir: str = "data"
    record_analysis: bool = True
    best_opportunities_limit: int = Field(default=50, ge=1)


class AppConfig(BaseModel):
    """Root application configuration containing all sub-configs."""

    model_config = ConfigDict(extra="forbid")

    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    sizing: SizingConfig = Field(default_factory=SizingConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
