"""
Tests for the portfolio ledger.

Covers:
  1. Session start (bankroll seeding, already-active guard)
  2. BUY: debit, weighted-average cost basis, insufficient funds atomicity
  3. SELL: credit, zero-amount pruning, insufficient holdings
  4. HOLD: history only
  5. End: PnL per holding, partial lookup failures, reference valuation
  6. Conservation across a mixed sequence of trades
"""

import math

import pytest

from models.config import WETH_ADDRESS, ReferenceAssetConfig
from models.decision import TradeAction, TradeDecision
from models.market import PairSnapshot
from models.report import HoldingLookupError, HoldingPnL
from simulation.errors import (
    AlreadyActive,
    InsufficientFunds,
    InsufficientHoldings,
    InvalidDecision,
    NoActiveSession,
)
from simulation.ledger import PortfolioLedger

TOKEN_X = "0x" + "1" * 40
TOKEN_Y = "0x" + "2" * 40


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def ledger() -> PortfolioLedger:
    return PortfolioLedger(ReferenceAssetConfig())


@pytest.fixture
def session(ledger: PortfolioLedger):
    return ledger.start(2000.0)


def _pair(address: str = TOKEN_X, price_usd: float = 100.0, native: float = 0.05) -> PairSnapshot:
    return PairSnapshot(
        address=address,
        symbol="X" if address == TOKEN_X else "Y",
        price_usd=price_usd,
        price_in_reference_asset=native,
    )


def _decision(action: str, amount: float, price: float = 100.0, address: str = TOKEN_X) -> TradeDecision:
    return TradeDecision(
        address=address,
        symbol="X" if address == TOKEN_X else "Y",
        priceUsd=price,
        action=action,
        amount=amount,
        reasoning="test",
    )


# =============================================================================
# 1. START
# =============================================================================


def test_start_seeds_reference_holding(session):
    assert session.active
    assert list(session.portfolio) == [WETH_ADDRESS]
    ref = session.portfolio[WETH_ADDRESS]
    assert ref.symbol == "WETH"
    assert ref.amount == 10
    assert ref.average_cost == 2000.0
    assert session.history == []


def test_start_while_active_raises_with_current_session(ledger, session):
    with pytest.raises(AlreadyActive) as excinfo:
        ledger.start(2500.0, session)
    assert excinfo.value.session is session


def test_start_uses_configured_bankroll():
    ledger = PortfolioLedger(ReferenceAssetConfig(initial_amount=3))
    assert ledger.start(1500.0).reference_holding.amount == 3


# =============================================================================
# 2. BUY
# =============================================================================


def test_buy_debits_reference_and_creates_holding(ledger, session):
    updated = ledger.apply_decision(session, _decision("BUY", 5), _pair())

    assert updated.portfolio[WETH_ADDRESS].amount == pytest.approx(9.75)
    assert updated.portfolio[WETH_ADDRESS].average_cost == 2000.0
    x = updated.portfolio[TOKEN_X]
    assert x.amount == 5
    assert x.average_cost == 100.0
    assert len(updated.history) == 1
    assert updated.history[0].action is TradeAction.BUY


def test_buy_does_not_mutate_input_session(ledger, session):
    before = session.model_dump()
    ledger.apply_decision(session, _decision("BUY", 5), _pair())
    assert session.model_dump() == before


def test_weighted_average_cost_on_second_buy(ledger):
    session = ledger.start(2000.0)
    # Cheap native price so the bankroll covers both lots.
    pair = _pair(native=0.001)
    session = ledger.apply_decision(session, _decision("BUY", 100, price=10.0), pair)
    session = ledger.apply_decision(session, _decision("BUY", 100, price=20.0), pair)

    x = session.portfolio[TOKEN_X]
    assert x.amount == 200
    assert x.average_cost == pytest.approx(15.0)


def test_insufficient_funds_leaves_state_identical(ledger, session):
    before = session.model_dump_json()
    with pytest.raises(InsufficientFunds) as excinfo:
        ledger.apply_decision(session, _decision("BUY", 1000), _pair(native=0.05))
    assert excinfo.value.required == pytest.approx(50.0)
    assert session.model_dump_json() == before


def test_buy_spending_entire_bankroll_keeps_reference_at_zero(ledger, session):
    updated = ledger.apply_decision(session, _decision("BUY", 200), _pair(native=0.05))
    assert updated.portfolio[WETH_ADDRESS].amount == pytest.approx(0.0)
    assert WETH_ADDRESS in updated.portfolio


def test_reference_asset_cannot_be_traded(ledger, session):
    decision = _decision("BUY", 1, address=WETH_ADDRESS)
    with pytest.raises(InvalidDecision):
        ledger.apply_decision(session, decision, _pair(address=WETH_ADDRESS))


def test_decision_for_other_token_than_pair_is_rejected(ledger, session):
    with pytest.raises(InvalidDecision):
        ledger.apply_decision(session, _decision("BUY", 1, address=TOKEN_Y), _pair(TOKEN_X))


# =============================================================================
# 3. SELL
# =============================================================================


def test_sell_credits_reference_at_native_price(ledger, session):
    session = ledger.apply_decision(session, _decision("BUY", 10), _pair(native=0.05))
    updated = ledger.apply_decision(session, _decision("SELL", 4), _pair(native=0.1))

    assert updated.portfolio[TOKEN_X].amount == 6
    # 10 - 0.5 + 0.4
    assert updated.portfolio[WETH_ADDRESS].amount == pytest.approx(9.9)
    # Cost basis is untouched by a sale.
    assert updated.portfolio[TOKEN_X].average_cost == 100.0


def test_selling_everything_prunes_holding(ledger, session):
    session = ledger.apply_decision(session, _decision("BUY", 5), _pair())
    updated = ledger.apply_decision(session, _decision("SELL", 5), _pair())

    assert TOKEN_X not in updated.portfolio
    report = ledger.end(updated, {TOKEN_X: 120.0}, 2000.0)
    assert [h.address for h in report.holdings] == [WETH_ADDRESS]


def test_sell_without_holding_raises(ledger, session):
    before = session.model_dump_json()
    with pytest.raises(InsufficientHoldings) as excinfo:
        ledger.apply_decision(session, _decision("SELL", 1), _pair())
    assert excinfo.value.held == 0.0
    assert session.model_dump_json() == before


def test_sell_more_than_held_raises_and_keeps_state(ledger, session):
    session = ledger.apply_decision(session, _decision("BUY", 5), _pair())
    before = session.model_dump_json()
    with pytest.raises(InsufficientHoldings):
        ledger.apply_decision(session, _decision("SELL", 6), _pair())
    assert session.model_dump_json() == before


# =============================================================================
# 4. HOLD
# =============================================================================


def test_hold_appends_history_only(ledger, session):
    updated = ledger.apply_decision(session, _decision("HOLD", 0), _pair())
    assert updated.portfolio == session.portfolio
    assert len(updated.history) == 1
    assert updated.history[0].action is TradeAction.HOLD


def test_inactive_session_rejects_decisions(ledger, session):
    closed = session.model_copy(update={"active": False})
    with pytest.raises(NoActiveSession):
        ledger.apply_decision(closed, _decision("HOLD", 0), _pair())


# =============================================================================
# 5. END
# =============================================================================


def test_end_scenario_total_pnl(ledger):
    session = ledger.start(2000.0)
    session = ledger.apply_decision(session, _decision("BUY", 5, price=100.0), _pair(native=0.05))

    report = ledger.end(session, {TOKEN_X: 120.0}, 2100.0)

    by_symbol = {h.symbol: h for h in report.holdings}
    assert by_symbol["X"].pnl_usd == pytest.approx(100.0)
    assert by_symbol["WETH"].pnl_usd == pytest.approx(975.0)
    assert report.total_pnl_usd == pytest.approx(1075.0)
    assert report.total_pnl_in_reference_asset == pytest.approx(1075.0 / 2100.0)
    assert report.reference_price_usd == 2100.0
    assert isinstance(report.holdings[0], HoldingPnL)
    assert report.holdings[0].address == WETH_ADDRESS
    assert len(report.trades) == 1


def test_end_reports_lookup_failures_and_excludes_them(ledger):
    session = ledger.start(2000.0)
    session = ledger.apply_decision(session, _decision("BUY", 5), _pair(TOKEN_X))
    session = ledger.apply_decision(session, _decision("BUY", 5, address=TOKEN_Y), _pair(TOKEN_Y))

    report = ledger.end(session, {TOKEN_X: 110.0}, 2000.0)

    failures = report.failed_lookups
    assert len(failures) == 1
    assert isinstance(failures[0], HoldingLookupError)
    assert failures[0].address == TOKEN_Y
    assert failures[0].error
    # REF pnl is 0 at unchanged price; only X counts.
    assert report.total_pnl_usd == pytest.approx(50.0)


def test_end_without_session_raises(ledger):
    with pytest.raises(NoActiveSession):
        ledger.end(None, {}, 2000.0)


def test_end_at_unchanged_prices_is_flat(ledger, session):
    report = ledger.end(session, {}, 2000.0)
    assert report.total_pnl_usd == 0.0
    assert report.total_pnl_in_reference_asset == 0.0


# =============================================================================
# 6. CONSERVATION
# =============================================================================


def test_value_is_conserved_across_trades(ledger):
    """With fixed prices, every trade only moves value between holdings."""
    session = ledger.start(2000.0)
    x_pair = _pair(TOKEN_X, price_usd=100.0, native=0.05)
    y_pair = _pair(TOKEN_Y, price_usd=40.0, native=0.02)

    steps = [
        (_decision("BUY", 20, price=100.0), x_pair),
        (_decision("BUY", 50, price=40.0, address=TOKEN_Y), y_pair),
        (_decision("SELL", 7.5, price=100.0), x_pair),
        (_decision("HOLD", 0), x_pair),
        (_decision("SELL", 50, price=40.0, address=TOKEN_Y), y_pair),
        (_decision("BUY", 3, price=100.0), x_pair),
    ]
    natives = {TOKEN_X: 0.05, TOKEN_Y: 0.02}

    for decision, pair in steps:
        session = ledger.apply_decision(session, decision, pair)
        for holding in session.portfolio.values():
            assert holding.amount >= 0

        ref_units = session.reference_holding.amount
        token_units_in_ref = sum(
            h.amount * natives[addr]
            for addr, h in session.portfolio.items()
            if addr != session.reference_address
        )
        assert math.isclose(ref_units + token_units_in_ref, 10.0, rel_tol=1e-12)

    assert TOKEN_Y not in session.portfolio
    assert len(session.history) == len(steps)
