"""Data access helpers: bar history caching and symbol lookup."""

from updown_trading.data.cache import BarCache, CachedHistorySource
from updown_trading.data.symbols import DEFAULT_SYMBOL_RULES, SymbolResolver

__all__ = ["BarCache", "CachedHistorySource", "SymbolResolver", "DEFAULT_SYMBOL_RULES"]
