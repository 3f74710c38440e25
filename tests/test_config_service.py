"""Tests for configuration loading, saving and environment fallback."""

import json

import pytest

from updown_trading.config import (
    AppConfig,
    LoopConfig,
    StrategyConfig,
    clear_config_cache,
    get_config_path,
    load_config,
    reload_config,
    save_config,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    path = tmp_path / "cfg" / "config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("UPDOWN_CONFIG_PATH", str(path))
    clear_config_cache()
    yield path
    clear_config_cache()


def test_config_path_override(isolated_config):
    assert get_config_path() == isolated_config
    assert isolated_config.parent.exists()


def test_defaults_match_documented_values():
    cfg = AppConfig()
    assert cfg.strategy.min_confidence == 0.60
    assert cfg.strategy.min_signal_strength == 0.55
    assert cfg.risk.max_position_size_usd == 100.0
    assert cfg.risk.max_daily_loss_usd == 500.0
    assert cfg.risk.max_positions == 5
    assert cfg.risk.stop_loss_percent == 10.0
    assert cfg.risk.min_market_liquidity_usd == 1000.0
    assert cfg.sizing.min_size_usd == 50.0
    assert cfg.sizing.max_size_usd == 500.0
    assert cfg.loop.poll_interval_sec == 5.0


def test_env_fallback_creates_file(isolated_config, monkeypatch):
    monkeypatch.setenv("MAX_POSITIONS", "3")
    monkeypatch.setenv("POLL_INTERVAL_MS", "2000")
    monkeypatch.setenv("DATA_COLLECTION_MODE", "false")
    monkeypatch.setenv("MIN_WIN_PROBABILITY", "0.7")

    cfg = load_config()

    assert cfg.risk.max_positions == 3
    assert cfg.loop.poll_interval_sec == 2.0
    assert cfg.loop.mode == "paper"
    assert cfg.strategy.min_confidence == 0.7
    assert isolated_config.exists()
    assert load_config() is cfg


def test_load_from_file(isolated_config):
    isolated_config.write_text(json.dumps({"risk": {"max_positions": 7}}), encoding="utf-8")

    cfg = load_config()

    assert cfg.risk.max_positions == 7
    assert cfg.risk.stop_loss_percent == 10.0


def test_invalid_file_raises(isolated_config):
    isolated_config.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config()


def test_unknown_keys_rejected(isolated_config):
    isolated_config.write_text(json.dumps({"risk": {"leverage": 10}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config()


def test_save_and_reload_round_trip(isolated_config):
    cfg = AppConfig()
    cfg.risk.max_positions = 9
    save_config(cfg)
    clear_config_cache()

    reloaded = reload_config()

    assert reloaded.risk.max_positions == 9
    assert reloaded.strategy.momentum_weights == {3: 0.6, 5: 0.4}


def test_reload_without_file():
    with pytest.raises(ValueError):
        reload_config()


def test_model_validation():
    with pytest.raises(ValueError):
        LoopConfig(mode="live")
    with pytest.raises(ValueError):
        StrategyConfig(momentum_periods=[1, 5])
    assert LoopConfig(mode="PAPER").mode == "paper"
