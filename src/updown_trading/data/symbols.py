"""Table-driven lookup of the underlying asset symbol for a market.

Markets are matched against an ordered list of (keyword, symbol) rules.
The slug is checked first using the `<symbol>-updown` pattern, then the
question text and finally the slug again by plain keyword; within each pass
the first matching rule wins. Checking the slug pattern before the question
is a deliberate departure from question-first lookup: a slug such as
`sol-updown-15m-...` names the asset unambiguously, while free-text questions
can mention several assets.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from updown_trading.core.types import Instrument

DEFAULT_SYMBOL_RULES: tuple[tuple[str, str], ...] = (
    ("bitcoin", "btc"),
    ("btc", "btc"),
    ("ethereum", "eth"),
    ("eth", "eth"),
    ("ripple", "xrp"),
    ("xrp", "xrp"),
    ("solana", "sol"),
    ("sol", "sol"),
    ("polygon", "matic"),
    ("matic", "matic"),
    ("chainlink", "link"),
    ("link", "link"),
    ("binance", "bnb"),
    ("bnb", "bnb"),
    ("cardano", "ada"),
    ("ada", "ada"),
    ("polkadot", "dot"),
    ("dot", "dot"),
    ("avalanche", "avax"),
    ("avax", "avax"),
)


class SymbolResolver:
    """Resolve an instrument's underlying symbol from its slug and question.

    Keywords are matched as whole words so short tickers such as "sol" or
    "dot" do not fire inside unrelated words.
    """

    def __init__(self, rules: Sequence[tuple[str, str]] = DEFAULT_SYMBOL_RULES) -> None:
        self.rules = [(keyword.lower(), symbol.lower()) for keyword, symbol in rules]
        self._patterns = [
            (re.compile(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])"), symbol)
            for keyword, symbol in self.rules
        ]

    def resolve(self, question: str, slug: str = "") -> str | None:
        question = (question or "").lower()
        slug = (slug or "").lower()

        for keyword, symbol in self.rules:
            if slug.startswith(f"{keyword}-updown"):
                return symbol

        for text in (question, slug):
            for pattern, symbol in self._patterns:
                if pattern.search(text):
                    return symbol

        return None

    def resolve_instrument(self, instrument: Instrument) -> str | None:
        return self.resolve(instrument.question, instrument.slug)


__all__ = ["DEFAULT_SYMBOL_RULES", "SymbolResolver"]
