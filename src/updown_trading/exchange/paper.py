"""Paper trading order sink.

PaperOrderSink simulates immediate fills at the intent price without making
network requests, allowing the same trading loop to run in paper mode.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone

from updown_trading.core.errors import OrderRejectedError
from updown_trading.core.types import OrderIntent

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PaperFill:
    """Simulated execution of one order intent."""

    order_id: str
    intent: OrderIntent
    filled_at: datetime


class PaperOrderSink:
    """Simulated order execution.

    Attributes:
        fills: Every simulated fill, in submission order
        order_counter: Counter for generating unique order IDs
    """

    def __init__(self, prefix: str = "paper") -> None:
        self.prefix = prefix
        self.order_counter = 0
        self.fills: list[PaperFill] = []

    def submit(self, intent: OrderIntent) -> str:
        """Fill an order intent immediately at its price.

        Raises:
            OrderRejectedError: If size or price are invalid
        """
        if not math.isfinite(intent.size_usd) or intent.size_usd <= 0:
            raise OrderRejectedError(f"Invalid order size: {intent.size_usd}")
        if not math.isfinite(intent.price) or not 0.0 <= intent.price <= 1.0:
            raise OrderRejectedError(f"Invalid order price: {intent.price}")

        self.order_counter += 1
        order_id = f"{self.prefix}-{self.order_counter}"
        self.fills.append(PaperFill(order_id, intent, datetime.now(timezone.utc)))

        logger.info(
            "Paper fill %s: %s %s %s size=$%.2f @ %.4f",
            order_id,
            intent.side,
            intent.direction,
            intent.instrument_id,
            intent.size_usd,
            intent.price,
        )
        return order_id


__all__ = ["PaperFill", "PaperOrderSink"]
