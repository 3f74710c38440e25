"""Configuration management package for the UpDown trading system.

Usage:
    from updown_trading.config import load_config, save_config

    cfg = load_config()
    print(cfg.risk.max_daily_loss_usd)

    cfg.loop.poll_interval_sec = 10
    save_config(cfg)
"""

from updown_trading.config.models import (
    ApiConfig,
    AppConfig,
    LoopConfig,
    RiskConfig,
    SizingConfig,
    StorageConfig,
    StrategyConfig,
)
from updown_trading.config.service import (
    clear_config_cache,
    get_config_path,
    load_config,
    reload_config,
    save_config,
)

__all__ = [
    # Models
    "StrategyConfig",
    "SizingConfig",
    "RiskConfig",
    "LoopConfig",
    "ApiConfig",
    "StorageConfig",
    "AppConfig",
    # Service functions
    "get_config_path",
    "load_config",
    "save_config",
    "reload_config",
    "clear_config_cache",
]
