"""Tests for factor extraction."""

from datetime import timedelta

import pytest

from updown_trading.config.models import StrategyConfig
from updown_trading.core.factors import FactorExtractor
from updown_trading.core.types import FactorSet, ReferencePrice


@pytest.fixture
def extractor() -> FactorExtractor:
    return FactorExtractor()


@pytest.fixture
def reference(now) -> ReferencePrice:
    return ReferencePrice(symbol="BTC", price=102.0, observed_at=now, source_tag="test")


def _assert_bounded(factors: FactorSet) -> None:
    assert -1.0 <= factors.momentum <= 1.0
    assert 0.0 <= factors.volatility <= 1.0
    assert -1.0 <= factors.pricing_deviation <= 1.0
    assert 0.0 <= factors.volume_anomaly <= 1.0
    assert -1.0 <= factors.time_factor <= 1.0


def test_flat_bars_without_reference_are_neutral(extractor, flat_bars, now):
    factors = extractor.extract(flat_bars, None, 0.45, 0.0, now=now)

    assert factors.momentum == 0.0
    assert factors.pricing_deviation == 0.0
    assert factors.volatility == 0.0
    assert factors == FactorSet()


def test_momentum_clamped_for_strong_rise(extractor, rising_bars):
    # 2% over five bars, scaled by 100, saturates
    assert extractor.momentum(rising_bars) == 1.0


def test_momentum_small_move_is_weighted(extractor, make_bars):
    bars = make_bars([100.0] * 45 + [100.0, 100.01, 100.02, 100.03, 100.04])

    change_3 = (100.04 - 100.02) / 100.02
    change_5 = (100.04 - 100.0) / 100.0
    expected = (change_3 * 0.6 + change_5 * 0.4) / 1.0 * 100

    assert extractor.momentum(bars) == pytest.approx(expected)


def test_momentum_negative_for_falling_bars(extractor, make_bars):
    bars = make_bars([100.0] * 45 + [100.0, 99.5, 99.0, 98.5, 98.0])
    assert extractor.momentum(bars) == -1.0


def test_momentum_needs_five_bars(extractor, make_bars):
    assert extractor.momentum(make_bars([100.0, 101.0, 102.0, 103.0])) == 0.0


def test_volatility_uses_true_range(extractor, make_bars):
    bars = make_bars([100.0] * 20, spread=1.0)
    # TR = high - low = 2 on every bar, ATR/price = 0.02, scaled by 1/1.5
    assert extractor.volatility(bars) == pytest.approx(0.02 / 1.5)


def test_volatility_needs_full_window(extractor, make_bars):
    assert extractor.volatility(make_bars([100.0] * 9, spread=1.0)) == 0.0


def test_pricing_deviation_underpriced_up(extractor, rising_bars, reference):
    # Trend 2% over five bars -> fair probability 0.7 (upper bound)
    deviation = extractor.pricing_deviation(rising_bars, reference, 0.45)
    assert deviation == pytest.approx(-0.5)


def test_pricing_deviation_needs_reference(extractor, rising_bars):
    assert extractor.pricing_deviation(rising_bars, None, 0.45) == 0.0


def test_pricing_deviation_flat_market(extractor, flat_bars, reference):
    assert extractor.pricing_deviation(flat_bars, reference, 0.6) == pytest.approx(0.2)


def test_volume_anomaly(extractor, rising_bars):
    # avg bar volume 10 * 96 bars/day = 960 -> ratio 1.0 -> 1.0 / threshold 2.0
    assert extractor.volume_anomaly(rising_bars, 960.0) == pytest.approx(0.5)
    assert extractor.volume_anomaly(rising_bars, 50_000.0) == 1.0


def test_volume_anomaly_without_bar_volume(extractor, flat_bars):
    assert extractor.volume_anomaly(flat_bars, 50_000.0) == 0.0


def test_time_factor_in_early_window(extractor, rising_bars, now):
    start = now - timedelta(minutes=2)
    trend = (102.0 - 101.0) / 101.0

    value = extractor.time_factor(rising_bars, start, now)

    assert value == pytest.approx(trend * 100 * 0.3)


def test_time_factor_outside_early_window(extractor, rising_bars, now):
    assert extractor.time_factor(rising_bars, now - timedelta(minutes=10), now) == 0.0
    assert extractor.time_factor(rising_bars, None, now) == 0.0


def test_time_factor_zero_before_market_start(extractor, rising_bars, now):
    assert extractor.time_factor(rising_bars, now + timedelta(minutes=20), now) == 0.0
    assert extractor.time_factor(rising_bars, now + timedelta(seconds=1), now) == 0.0
    assert extractor.time_factor(rising_bars, now, now) != 0.0


def test_time_factor_disabled(rising_bars, now):
    extractor = FactorExtractor(StrategyConfig(use_time_factor=False))
    assert extractor.time_factor(rising_bars, now - timedelta(minutes=1), now) == 0.0


@pytest.mark.parametrize(
    "closes",
    [
        [1e-9, 1e9] * 25,
        [100.0] * 40 + [0.0] * 10,
        [0.0] * 50,
        [float("nan")] * 25 + [100.0] * 25,
        [100.0] * 49 + [float("inf")],
        [-5.0, 5.0] * 25,
    ],
)
def test_factors_bounded_for_adversarial_bars(extractor, make_bars, reference, now, closes):
    bars = make_bars(closes, volume=1e-12, spread=1e6)

    factors = extractor.extract(
        bars,
        reference,
        quote_probability=float("nan"),
        volume_24h=float("inf"),
        market_start_time=now - timedelta(minutes=1),
        now=now,
    )

    _assert_bounded(factors)


def test_extract_is_idempotent(extractor, rising_bars, reference, now):
    start = now - timedelta(minutes=2)
    first = extractor.extract(rising_bars, reference, 0.45, 5_000.0, start, now)
    second = extractor.extract(rising_bars, reference, 0.45, 5_000.0, start, now)
    assert first == second


def test_invalid_bar_timeframe_rejected():
    with pytest.raises(ValueError):
        FactorExtractor(StrategyConfig(bar_timeframe="15x"))
