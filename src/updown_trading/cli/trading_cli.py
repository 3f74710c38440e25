"""CLI for data collection and paper trading on UP/DOWN markets.

Usage:
    updown-trading --mode collect
    updown-trading --mode paper --poll-interval 10
    updown-trading --mode collect --once --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from types import FrameType

from updown_trading.config import AppConfig, load_config
from updown_trading.core.risk import RiskGovernor
from updown_trading.data import BarCache, CachedHistorySource, SymbolResolver
from updown_trading.engine import TradingLoop, TradingSessionResult
from updown_trading.exchange import (
    ChainlinkFeedClient,
    FallbackReferencePriceSource,
    PaperOrderSink,
    PolymarketClient,
)
from updown_trading.storage import CompositeSink, JsonlRecorder, LoggingSink
from updown_trading.strategies import UpDownStrategy

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Set specific levels for noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("ccxt").setLevel(logging.WARNING)


def load_app_config(config_path: Path | None) -> AppConfig:
    """Load the application config from an explicit JSON file or the default location.

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        pydantic.ValidationError: If the file content is invalid
    """
    if config_path is None:
        return load_config()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return AppConfig.model_validate_json(config_path.read_text(encoding="utf-8"))


def apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply command-line overrides on a copy of the config."""
    cfg = cfg.model_copy(deep=True)
    if args.mode is not None:
        cfg.loop.mode = args.mode
    if args.poll_interval is not None:
        cfg.loop.poll_interval_sec = args.poll_interval
    if args.data_dir is not None:
        cfg.storage.data_dir = str(args.data_dir)
    return cfg


def build_loop(cfg: AppConfig) -> tuple[TradingLoop, JsonlRecorder | None]:
    """Wire the trading loop and its collaborators from configuration."""
    from updown_trading.exchange.ccxt_source import (
        CcxtHistorySource,
        CcxtReferencePriceSource,
        create_exchange,
    )

    polymarket = PolymarketClient(
        base_url=cfg.api.polymarket_data_api_url,
        symbols=cfg.api.market_symbols,
        timeout=cfg.api.timeout_seconds,
    )

    exchange = create_exchange(cfg.api.ccxt_exchange_id, cfg.api.timeout_seconds)
    history = CachedHistorySource(
        CcxtHistorySource(
            exchange,
            timeframe=cfg.strategy.bar_timeframe,
            quote_currency=cfg.api.quote_currency,
        ),
        BarCache(ttl_seconds=cfg.api.history_cache_ttl_sec),
    )
    reference = FallbackReferencePriceSource(
        [
            ChainlinkFeedClient(cfg.api.chainlink_feed_urls, timeout=cfg.api.timeout_seconds),
            CcxtReferencePriceSource(exchange, quote_currency=cfg.api.quote_currency),
        ]
    )

    recorder = None
    sinks = [LoggingSink()]
    if cfg.storage.record_analysis:
        recorder = JsonlRecorder(cfg.storage.data_dir, best_limit=cfg.storage.best_opportunities_limit)
        sinks.append(recorder)

    order_sink = PaperOrderSink() if cfg.loop.mode == "paper" else None

    loop = TradingLoop(
        markets=polymarket,
        quotes=polymarket,
        history=history,
        reference=reference,
        strategy=UpDownStrategy(cfg.strategy, cfg.sizing),
        risk_governor=RiskGovernor(cfg.risk),
        order_sink=order_sink,
        sink=CompositeSink(sinks),
        symbol_resolver=SymbolResolver(),
        config=cfg.loop,
    )
    return loop, recorder


def install_signal_handlers(loop: TradingLoop) -> None:
    """Route SIGINT/SIGTERM to a graceful loop stop."""

    def _handle(signum: int, frame: FrameType | None) -> None:
        logger.info("Received signal %s, shutting down...", signal.Signals(signum).name)
        loop.stop()

    signal.signal(signal.SIGINT, _handle)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle)


def print_startup_banner(cfg: AppConfig) -> None:
    print("\n" + "=" * 70)
    print("UpDown Trading System")
    print("=" * 70)
    print(f"Mode:            {cfg.loop.mode.upper()}")
    print(f"Symbols:         {', '.join(cfg.api.market_symbols)}")
    print(f"Poll Interval:   {cfg.loop.poll_interval_sec:.1f}s")
    print(f"Min Confidence:  {cfg.strategy.min_confidence * 100:.0f}%")
    print(f"Max Position:    ${cfg.risk.max_position_size_usd:,.2f}")
    print(f"Max Daily Loss:  ${cfg.risk.max_daily_loss_usd:,.2f}")
    print(f"Data Dir:        {cfg.storage.data_dir}")
    print("=" * 70 + "\n")


def print_shutdown_summary(result: TradingSessionResult, loop: TradingLoop) -> None:
    print("\n" + "=" * 70)
    print("Session Summary")
    print("=" * 70)

    if result.start_time and result.end_time:
        duration = (result.end_time - result.start_time).total_seconds()
        print(f"Duration:        {duration / 60:.1f} minutes")

    print(f"Cycles:          {result.cycles}")
    print(f"Signals:         {result.signals}")
    print(f"Opened:          {result.opened}")
    print(f"Closed:          {result.closed}")
    print(f"Open Positions:  {len(loop.ledger)}")
    print(f"Daily P&L:       ${loop.risk_state.cumulative_daily_pnl_usd:+,.2f}")

    if result.errors:
        print(f"\nErrors:          {len(result.errors)}")
        for i, error in enumerate(result.errors[:5], 1):
            print(f"  {i}. {error}")
        if len(result.errors) > 5:
            print(f"  ... and {len(result.errors) - 5} more")

    print("=" * 70 + "\n")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Data collection and paper trading for UP/DOWN prediction markets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Collect analysis records without opening positions
  updown-trading --mode collect

  # Paper trading with simulated fills
  updown-trading --mode paper

  # Single cycle with a custom config file
  updown-trading --once --config my_config.json

Environment Variables:
  UPDOWN_CONFIG_PATH         Config file location (default: ~/.updown_trading/config.json)
  DATA_COLLECTION_MODE       collect or paper (default: collect)
  MIN_WIN_PROBABILITY        Minimum confidence to emit a signal (default: 0.60)
  MAX_POSITION_SIZE_USD      Per-position size cap (default: 100)
  MAX_DAILY_LOSS_USD         Daily realized loss cutoff (default: 500)
  MAX_POSITIONS              Open position limit (default: 5)
  STOP_LOSS_PERCENT          Stop loss in percent (default: 10)
  POLL_INTERVAL_MS           Cycle interval in milliseconds (default: 5000)
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["collect", "paper"],
        default=None,
        help="collect (record signals only) or paper (simulated fills); overrides config",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON AppConfig file (default: ~/.updown_trading/config.json)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between cycles (overrides config)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for JSONL records (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        cfg = apply_overrides(load_app_config(args.config), args)
        loop, recorder = build_loop(cfg)
    except Exception as exc:
        logger.error("Failed to start: %s", exc, exc_info=True)
        return 1

    print_startup_banner(cfg)
    install_signal_handlers(loop)

    print(f"[{datetime.now().strftime('%H:%M:%S')}] Started - press Ctrl+C to stop\n")
    try:
        result = loop.run_forever(max_cycles=1 if args.once else None)
    except Exception as exc:
        logger.error("Trading loop failed: %s", exc, exc_info=True)
        return 1
    finally:
        if recorder is not None:
            try:
                recorder.save_best_opportunities()
            except OSError as exc:
                logger.error("Failed to save best opportunities: %s", exc)

    print_shutdown_summary(result, loop)
    return 0


if __name__ == "__main__":
    sys.exit(main())
