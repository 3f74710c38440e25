"""Command-line interface.

This module contains CLI tools:
- trading_cli: Data collection and paper trading loop
"""

__all__ = []
