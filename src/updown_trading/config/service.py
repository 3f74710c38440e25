"""Load, cache and persist the AppConfig.

The first call to load_config() reads the JSON file at get_config_path(); if
there is none, the config is built from environment variables and written
there so later runs pick it up from disk.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from updown_trading.config.models import (
    ApiConfig,
    AppConfig,
    LoopConfig,
    RiskConfig,
    SizingConfig,
    StorageConfig,
    StrategyConfig,
)

DEFAULT_CONFIG_DIR = ".updown_trading"
CONFIG_FILENAME = "config.json"

# Process-wide cache, filled by load_config()/save_config()
_APP_CONFIG: AppConfig | None = None

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def get_config_path() -> Path:
    """Location of config.json.

    UPDOWN_CONFIG_PATH wins when set; otherwise ~/.updown_trading/config.json.
    The parent directory is created on demand.
    """
    override = os.getenv("UPDOWN_CONFIG_PATH")
    if override:
        path = Path(override).expanduser()
    else:
        path = Path.home() / DEFAULT_CONFIG_DIR / CONFIG_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _load_from_env() -> AppConfig:
    """Build an AppConfig from environment variables; unset ones keep model defaults."""
    strategy = StrategyConfig(
        min_confidence=float(os.getenv("MIN_WIN_PROBABILITY", "0.60")),
        min_signal_strength=float(os.getenv("MIN_SIGNAL_STRENGTH", "0.55")),
        momentum_threshold=float(os.getenv("MOMENTUM_THRESHOLD", "0.001")),
        pricing_deviation_threshold=float(os.getenv("PRICING_DEVIATION_THRESHOLD", "0.05")),
        use_time_factor=_env_bool("USE_TIME_FACTOR", "true"),
        bar_timeframe=os.getenv("BAR_TIMEFRAME", "15m"),
    )

    sizing = SizingConfig(
        base_size_usd=float(os.getenv("BASE_SIZE_USD", "100")),
        min_size_usd=float(os.getenv("MIN_SIZE_USD", "50")),
        max_size_usd=float(os.getenv("MAX_SIZE_USD", "500")),
    )

    risk = RiskConfig(
        max_position_size_usd=float(os.getenv("MAX_POSITION_SIZE_USD", "100")),
        max_daily_loss_usd=float(os.getenv("MAX_DAILY_LOSS_USD", "500")),
        max_positions=int(os.getenv("MAX_POSITIONS", "5")),
        stop_loss_percent=float(os.getenv("STOP_LOSS_PERCENT", "10")),
        min_market_liquidity_usd=float(os.getenv("MIN_MARKET_LIQUIDITY_USD", "1000")),
    )

    # POLL_INTERVAL_MS is in milliseconds
    loop = LoopConfig(
        mode="collect" if _env_bool("DATA_COLLECTION_MODE", "true") else "paper",
        poll_interval_sec=int(os.getenv("POLL_INTERVAL_MS", "5000")) / 1000.0,
        request_delay_sec=float(os.getenv("REQUEST_DELAY_SEC", "0.5")),
        max_markets_per_cycle=int(os.getenv("MAX_MARKETS_PER_CYCLE", "10")),
    )

    api = ApiConfig(
        polymarket_data_api_url=os.getenv(
            "POLYMARKET_DATA_API_URL",
            "https://gamma-api.polymarket.com"
        ),
        ccxt_exchange_id=os.getenv("CCXT_EXCHANGE_ID", "binance"),
        timeout_seconds=int(os.getenv("API_TIMEOUT_SECONDS", "10")),
        history_cache_ttl_sec=float(os.getenv("HISTORY_CACHE_TTL_SEC", "60")),
    )

    storage = StorageConfig(
        data_dir=os.getenv("DATA_DIR", "data"),
        record_analysis=_env_bool("RECORD_ANALYSIS", "true"),
    )

    return AppConfig(strategy=strategy, sizing=sizing, risk=risk, loop=loop, api=api, storage=storage)


def _read_config_file(path: Path) -> AppConfig:
    try:
        return AppConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        logger.error("Config file %s is invalid: %s", path, exc)
        raise ValueError(f"Invalid configuration file {path}: {exc}") from exc


def load_config() -> AppConfig:
    """Return the process-wide AppConfig.

    Order of precedence: in-memory cache, then the config file, then
    environment variables (the result is saved to the config file).

    Raises:
        ValueError: If the config file is malformed or fails validation
    """
    global _APP_CONFIG

    if _APP_CONFIG is None:
        path = get_config_path()
        if path.exists():
            logger.info("Reading configuration from %s", path)
            _APP_CONFIG = _read_config_file(path)
        else:
            logger.info("%s not found; using environment variables", path)
            save_config(_load_from_env())

    return _APP_CONFIG


def save_config(app_config: AppConfig) -> None:
    """Write app_config to the config file and make it the cached config.

    Raises:
        OSError: If the file cannot be written
    """
    global _APP_CONFIG

    path = get_config_path()
    path.write_text(
        json.dumps(app_config.model_dump(mode="json"), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    _APP_CONFIG = app_config

    logger.info("Wrote configuration to %s", path)


def reload_config() -> AppConfig:
    """Drop the cache and re-read the config file.

    Raises:
        ValueError: If there is no config file, or it is invalid
    """
    path = get_config_path()
    if not path.exists():
        raise ValueError(f"No configuration file at {path}")

    clear_config_cache()
    return load_config()


def clear_config_cache() -> None:
    """Forget the cached config so the next load_config() re-reads its source."""
    global _APP_CONFIG
    _APP_CONFIG = None
