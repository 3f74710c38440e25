"""Exception hierarchy for the trading system.

Data problems and collaborator I/O failures are recoverable: the trading loop
logs them and skips the instrument for the current cycle. Invariant
violations indicate a programming defect and are allowed to propagate.
"""

from __future__ import annotations


class TradingSystemError(Exception):
    """Base class for all errors raised by this package."""


class DataUnavailableError(TradingSystemError):
    """Required market data (quotes, history) is missing for this cycle."""


class TransientSourceError(TradingSystemError):
    """A collaborator call failed (timeout, HTTP error, malformed payload)."""


class OrderRejectedError(TradingSystemError):
    """The order sink refused or failed to execute an order intent."""


class InvariantViolation(TradingSystemError):
    """Internal consistency rule broken; never a user-facing scenario."""


class DuplicatePositionError(InvariantViolation):
    """A second position was opened for an instrument that already has one."""


class InvalidPositionError(InvariantViolation):
    """A position with a non-positive size or out-of-range price was created."""


__all__ = [
    "TradingSystemError",
    "DataUnavailableError",
    "TransientSourceError",
    "OrderRejectedError",
    "InvariantViolation",
    "DuplicatePositionError",
    "InvalidPositionError",
]
