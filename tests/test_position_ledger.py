"""Tests for the position ledger."""

import pytest

from updown_trading.core.errors import DuplicatePositionError, InvalidPositionError
from updown_trading.core.types import Position
from updown_trading.engine.ledger import PositionLedger, compute_pnl


def make_position(instrument_id="m1", direction="UP", size=100.0, entry=0.4, opened_at=None) -> Position:
    return Position(
        instrument_id=instrument_id,
        direction=direction,
        size_usd=size,
        entry_price=entry,
        mark_price=entry,
        opened_at=opened_at,
    )


def test_upsert_and_get_returns_copy(now):
    ledger = PositionLedger()
    ledger.upsert(make_position(opened_at=now))

    stored = ledger.get("m1")
    stored.size_usd = 1.0

    assert "m1" in ledger
    assert len(ledger) == 1
    assert ledger.get("m1").size_usd == 100.0


def test_second_position_for_instrument_rejected(now):
    ledger = PositionLedger()
    ledger.upsert(make_position(opened_at=now))

    with pytest.raises(DuplicatePositionError):
        ledger.upsert(make_position(direction="DOWN", opened_at=now))
    with pytest.raises(DuplicatePositionError):
        ledger.upsert(make_position(entry=0.5, opened_at=now))

    assert ledger.get("m1").direction == "UP"


def test_upsert_same_entry_replaces(now):
    ledger = PositionLedger()
    ledger.upsert(make_position(opened_at=now))
    ledger.upsert(make_position(size=80.0, opened_at=now))

    assert len(ledger) == 1
    assert ledger.get("m1").size_usd == 80.0


@pytest.mark.parametrize(
    "position",
    [
        make_position(size=0.0),
        make_position(size=-5.0),
        make_position(size=float("nan")),
        make_position(entry=1.5),
        make_position(entry=-0.1),
    ],
)
def test_invalid_positions_rejected(position):
    with pytest.raises(InvalidPositionError):
        PositionLedger().upsert(position)


def test_update_mark_up_position():
    ledger = PositionLedger()
    ledger.upsert(make_position(entry=0.4))

    updated = ledger.update_mark("m1", 0.5)

    assert updated.mark_price == 0.5
    assert updated.pnl_usd == pytest.approx(25.0)
    assert updated.pnl_percent == pytest.approx(25.0)
    assert ledger.total_pnl_usd() == pytest.approx(25.0)


def test_update_mark_down_position():
    ledger = PositionLedger()
    ledger.upsert(make_position(direction="DOWN", entry=0.4))

    updated = ledger.update_mark("m1", 0.3)

    assert updated.pnl_usd == pytest.approx(25.0)
    assert updated.pnl_percent == pytest.approx(25.0)

    updated = ledger.update_mark("m1", 0.5)
    assert updated.pnl_percent == pytest.approx(-25.0)


def test_update_mark_unknown_instrument():
    with pytest.raises(KeyError):
        PositionLedger().update_mark("missing", 0.5)


def test_all_is_a_snapshot():
    ledger = PositionLedger()
    ledger.upsert(make_position("a"))
    ledger.upsert(make_position("b"))

    snapshot = ledger.all()
    snapshot[0].mark_price = 0.99
    snapshot.clear()

    assert len(ledger) == 2
    assert all(p.mark_price == 0.4 for p in ledger.all())


def test_remove():
    ledger = PositionLedger()
    ledger.upsert(make_position())

    removed = ledger.remove("m1")

    assert removed.instrument_id == "m1"
    assert ledger.remove("m1") is None
    assert len(ledger) == 0


def test_compute_pnl_zero_entry():
    position = make_position(entry=0.0)
    assert compute_pnl(position, 0.5) == (0.0, 0.0)
