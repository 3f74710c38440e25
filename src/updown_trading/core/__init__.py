"""Core decision logic.

This package contains the pure, I/O-free parts of the trading system:
- types: records shared across the system
- factors: bounded factor extraction from bars and quotes
- signals: weighted combination of factors into a directional score
- position_sizing: confidence/liquidity based entry sizing
- risk: admission control and exit triggers
"""

from updown_trading.core.factors import FactorExtractor
from updown_trading.core.position_sizing import PositionSizer
from updown_trading.core.risk import RiskDecision, RiskGovernor
from updown_trading.core.signals import CombinedScore, SignalCombiner

__all__ = [
    "FactorExtractor",
    "SignalCombiner",
    "CombinedScore",
    "PositionSizer",
    "RiskGovernor",
    "RiskDecision",
]
