"""UpDown Trading System - signal engine for binary UP/DOWN prediction markets."""

__version__ = "0.1.0"
