"""Strategy exports for convenience."""

from updown_trading.strategies.updown import Evaluation, UpDownStrategy

__all__ = ["Evaluation", "UpDownStrategy"]
