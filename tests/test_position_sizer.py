"""Tests for the position sizer."""

import itertools

import pytest

from updown_trading.config.models import SizingConfig
from updown_trading.core.position_sizing import PositionSizer


@pytest.fixture
def sizer() -> PositionSizer:
    return PositionSizer()


def test_scales_with_confidence_and_strength(sizer):
    assert sizer.size(1.0, 0.75, 0.45, 20_000) == pytest.approx(75.0)
    assert sizer.size(0.9, 0.8, 0.45, 20_000) == pytest.approx(72.0)


def test_floor_applies_to_weak_signals(sizer):
    assert sizer.size(0.6, 0.55, 0.45, 20_000) == 50.0


def test_ceiling(sizer):
    big = PositionSizer(SizingConfig(base_size_usd=10_000))
    assert big.size(1.0, 1.0, 0.45, 1_000_000) == 500.0


def test_liquidity_cap(sizer):
    # 5% of 1500 = 75 < raw 100
    assert sizer.size(1.0, 1.0, 0.45, 1_500) == pytest.approx(75.0)


def test_floor_wins_over_liquidity_cap(sizer):
    # cap would be 5, but the minimum entry size is 50
    assert sizer.size(1.0, 1.0, 0.45, 100) == 50.0


def test_high_probability_derate(sizer):
    assert sizer.size(1.0, 1.0, 0.8, 1_000_000) == pytest.approx(80.0)
    assert sizer.size(1.0, 1.0, 0.7, 1_000_000) == pytest.approx(100.0)


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_inputs_fall_back_to_floor(sizer, bad):
    assert sizer.size(bad, 0.8, 0.45, 20_000) == 50.0
    assert sizer.size(0.8, 0.8, 0.45, bad) == 50.0


def test_size_always_within_bounds(sizer):
    big = PositionSizer(SizingConfig(base_size_usd=2_000))
    grid = itertools.product(
        [0.0, 0.3, 0.6, 1.0],
        [0.0, 0.5, 1.0],
        [0.1, 0.5, 0.9],
        [1_000, 5_000, 20_000, 1_000_000],
    )
    for confidence, strength, probability, liquidity in grid:
        for s in (sizer, big):
            size = s.size(confidence, strength, probability, liquidity)
            assert 50.0 <= size <= 500.0
            assert size <= 0.05 * liquidity
