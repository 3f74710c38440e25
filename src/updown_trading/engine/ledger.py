"""In-memory ledger of open positions, keyed by instrument id."""

from __future__ import annotations

import logging

from updown_trading.core.errors import DuplicatePositionError, InvalidPositionError
from updown_trading.core.types import Position

logger = logging.getLogger(__name__)


def compute_pnl(position: Position, mark_price: float) -> tuple[float, float]:
    """Return (pnl_usd, pnl_percent) for a position marked at mark_price.

    UP positions gain when the mark rises above entry, DOWN positions when
    it falls below. pnl_percent is in percent units.
    """
    if position.entry_price <= 0:
        return 0.0, 0.0

    if position.direction == "UP":
        change = (mark_price - position.entry_price) / position.entry_price
    else:
        change = (position.entry_price - mark_price) / position.entry_price

    pnl_percent = change * 100
    return position.size_usd * change, pnl_percent


class PositionLedger:
    """Holds at most one open position per instrument.

    Only the owning trading loop mutates the ledger, between collaborator
    calls, so no locking is done here.
    """

    def __init__(self) -> None:
        self._positions: dict[str, Position] = {}

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, instrument_id: object) -> bool:
        return instrument_id in self._positions

    def upsert(self, position: Position) -> None:
        """Insert a new position, or replace the stored position for the same entry.

        Raises:
            InvalidPositionError: If size is not positive or prices are outside [0, 1]
            DuplicatePositionError: If a different position is already open
                for the instrument
        """
        if not position.size_usd > 0:
            raise InvalidPositionError(
                f"Position size must be positive, got {position.size_usd} for {position.instrument_id}"
            )
        if not (0.0 <= position.entry_price <= 1.0 and 0.0 <= position.mark_price <= 1.0):
            raise InvalidPositionError(
                f"Position prices must be in [0, 1], got entry={position.entry_price} "
                f"mark={position.mark_price} for {position.instrument_id}"
            )

        existing = self._positions.get(position.instrument_id)
        if existing is not None and (
            existing.direction != position.direction
            or existing.entry_price != position.entry_price
            or existing.opened_at != position.opened_at
        ):
            raise DuplicatePositionError(
                f"Instrument {position.instrument_id} already has an open {existing.direction} position"
            )

        self._positions[position.instrument_id] = position.copy()

    def remove(self, instrument_id: str) -> Position | None:
        return self._positions.pop(instrument_id, None)

    def get(self, instrument_id: str) -> Position | None:
        position = self._positions.get(instrument_id)
        return position.copy() if position is not None else None

    def update_mark(self, instrument_id: str, mark_price: float) -> Position:
        """Record a new mark price and recompute pnl.

        Returns:
            Snapshot of the updated position

        Raises:
            KeyError: If no position is open for the instrument
        """
        position = self._positions[instrument_id]
        pnl_usd, pnl_percent = compute_pnl(position, mark_price)

        position.mark_price = mark_price
        position.pnl_usd = pnl_usd
        position.pnl_percent = pnl_percent

        logger.debug(
            "Marked %s %s @ %.4f: pnl=%.2f (%.2f%%)",
            instrument_id,
            position.direction,
            mark_price,
            pnl_usd,
            pnl_percent,
        )
        return position.copy()

    def all(self) -> list[Position]:
        """Snapshot of open positions; mutating the result does not affect the ledger."""
        return [p.copy() for p in self._positions.values()]

    def total_pnl_usd(self) -> float:
        return sum(p.pnl_usd for p in self._positions.values())


__all__ = ["PositionLedger", "compute_pnl"]
