"""Combination of the factor set into a directional score."""

from __future__ import annotations

from dataclasses import dataclass, field

from updown_trading.config.models import StrategyConfig
from updown_trading.core.types import FactorSet, Outcome

HIGH_VOLATILITY_LEVEL = 0.5
VOLATILITY_BOOST = 1.2
VOLUME_ANOMALY_LEVEL = 0.5
VOLUME_BOOST = 1.1

AGREEMENT_WEIGHTS = {"momentum": 0.3, "pricing_deviation": 0.3, "time_factor": 0.2}
AGREEMENT_SCALE = 0.2
CONFIRMED_VOLATILITY_LEVEL = 0.6
CONFIRMED_MOMENTUM_LEVEL = 0.002
CONFIRMED_VOLATILITY_BONUS = 0.1
STRONG_DEVIATION_LEVEL = 0.1
STRONG_DEVIATION_BONUS = 0.1


@dataclass(slots=True)
class CombinedScore:
    """Directional verdict produced from one factor set."""

    direction: Outcome
    score: float
    strength: float
    confidence: float
    factors: FactorSet
    reasons: list[str] = field(default_factory=list)


class SignalCombiner:
    """Weights and merges factors into score, strength and confidence.

    The momentum term dominates (40%), pricing deviation contributes 25%,
    and the time factor and volume-amplified momentum 10% each. Strength is
    the absolute score capped at 1; confidence starts from strength and is
    raised when factors agree or when the move is confirmed by volatility
    or a clear mispricing.
    """

    def __init__(self, config: StrategyConfig | None = None) -> None:
        self.config = config or StrategyConfig()

    def combine(self, factors: FactorSet) -> CombinedScore | None:
        """Return the combined score, or None if strength is below the minimum."""
        cfg = self.config
        reasons: list[str] = []

        momentum_term = 0.0
        if abs(factors.momentum) > cfg.momentum_threshold:
            momentum_term = factors.momentum
            trend = "up" if factors.momentum > 0 else "down"
            reasons.append(f"Momentum: {factors.momentum * 100:.2f}% ({trend})")

        vol_boost = VOLATILITY_BOOST if factors.volatility > HIGH_VOLATILITY_LEVEL else 1.0

        pricing_score = 0.0
        if abs(factors.pricing_deviation) > cfg.pricing_deviation_threshold:
            pricing_score = -factors.pricing_deviation
            if factors.pricing_deviation < 0:
                reasons.append(
                    f"Pricing deviation: UP underpriced by {abs(factors.pricing_deviation) * 100:.1f}%"
                )
            else:
                reasons.append(
                    f"Pricing deviation: UP overpriced by {factors.pricing_deviation * 100:.1f}%"
                )

        volume_adjustment = 0.0
        if factors.volume_anomaly > VOLUME_ANOMALY_LEVEL:
            volume_adjustment = momentum_term * VOLUME_BOOST - momentum_term
            reasons.append(f"Volume anomaly: {factors.volume_anomaly * 100:.0f}%")

        if abs(factors.time_factor) > cfg.time_factor_threshold:
            phase = "early rise" if factors.time_factor > 0 else "early fall"
            reasons.append(f"Time factor: {phase}")

        score = (
            momentum_term * cfg.momentum_weight * vol_boost
            + pricing_score * cfg.pricing_weight
            + factors.time_factor * cfg.time_weight
            + volume_adjustment * cfg.volume_weight
        )

        direction: Outcome = "UP" if score > 0 else "DOWN"
        strength = min(1.0, abs(score))

        confidence = strength + self.factor_agreement(factors, direction) * AGREEMENT_SCALE

        if (
            factors.volatility > CONFIRMED_VOLATILITY_LEVEL
            and abs(factors.momentum) > CONFIRMED_MOMENTUM_LEVEL
        ):
            confidence += CONFIRMED_VOLATILITY_BONUS
            reasons.append("High volatility confirms momentum")

        if abs(factors.pricing_deviation) > STRONG_DEVIATION_LEVEL:
            confidence += STRONG_DEVIATION_BONUS
            reasons.append("Strong pricing deviation")

        confidence = min(1.0, confidence)

        if strength < cfg.min_signal_strength:
            return None

        return CombinedScore(
            direction=direction,
            score=score,
            strength=strength,
            confidence=confidence,
            factors=factors,
            reasons=reasons,
        )

    def factor_agreement(self, factors: FactorSet, direction: Outcome) -> float:
        """Weighted share of counted directional factors that agree with direction.

        A factor is counted once its magnitude clears its own threshold.
        Negative pricing deviation points UP.
        """
        expected = 1 if direction == "UP" else -1
        cfg = self.config

        candidates = (
            ("momentum", factors.momentum, cfg.momentum_threshold),
            ("pricing_deviation", -factors.pricing_deviation, cfg.pricing_deviation_threshold),
            ("time_factor", factors.time_factor, cfg.time_factor_threshold),
        )

        agreement = 0.0
        count = 0
        for name, value, threshold in candidates:
            if abs(value) <= threshold:
                continue
            count += 1
            if (1 if value > 0 else -1) == expected:
                agreement += AGREEMENT_WEIGHTS[name]

        return agreement / count if count else 0.0


__all__ = ["CombinedScore", "SignalCombiner"]
