"""Tests for table-driven symbol resolution."""

import pytest

from updown_trading.core.types import Instrument
from updown_trading.data.symbols import SymbolResolver


@pytest.fixture
def resolver() -> SymbolResolver:
    return SymbolResolver()


@pytest.mark.parametrize(
    "question, slug, expected",
    [
        ("Bitcoin Up or Down - Nov 14, 12PM ET", "", "btc"),
        ("Will ETH go up?", "", "eth"),
        ("Ethereum Up or Down", "", "eth"),
        ("Solana Up or Down", "", "sol"),
        ("XRP Up or Down", "", "xrp"),
        ("Up or Down?", "link-updown-15m-1731585600", "link"),
        ("Up or Down?", "matic-updown-15m-1731585600", "matic"),
    ],
)
def test_resolves_known_assets(resolver, question, slug, expected):
    assert resolver.resolve(question, slug) == expected


def test_slug_prefix_wins_over_question(resolver):
    assert resolver.resolve("Bitcoin vs Ethereum", "eth-updown-15m-1") == "eth"


def test_first_matching_rule_wins(resolver):
    assert resolver.resolve("Bitcoin or Ethereum first?") == "btc"


def test_keywords_match_whole_words_only(resolver):
    assert resolver.resolve("Will the solar eclipse dotcom index rise?") is None
    assert resolver.resolve("Will the weather be sunny?") is None


def test_custom_rules():
    resolver = SymbolResolver([("doge", "doge"), ("dogecoin", "doge")])
    assert resolver.resolve("Dogecoin Up or Down") == "doge"
    assert resolver.resolve("Bitcoin Up or Down") is None


def test_resolve_instrument(resolver):
    instrument = Instrument(id="1", question="Up or Down?", slug="sol-updown-15m-1", liquidity_usd=0)
    assert resolver.resolve_instrument(instrument) == "sol"
