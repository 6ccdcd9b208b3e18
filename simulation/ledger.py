"""Portfolio ledger: session lifecycle, trade application, and PnL at close.

The ledger is pure and synchronous. It never talks to the network or the
session store; the orchestrator loads state, hands it in, and persists what
comes back. Every transition works on a deep copy so a failure leaves the
caller's session untouched.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from models.config import ReferenceAssetConfig
from models.decision import TradeAction, TradeDecision, TradeRecord
from models.market import PairSnapshot
from models.portfolio import Holding, SessionState
from models.report import HoldingLookupError, HoldingPnL, SimulationReport
from simulation.errors import (
    AlreadyActive,
    InsufficientFunds,
    InsufficientHoldings,
    InvalidDecision,
    MarketDataUnavailable,
    NoActiveSession,
)

logger = logging.getLogger(__name__)


class PortfolioLedger:
    """Applies trade decisions to a ``SessionState`` under average-cost accounting.

    Instantiate one ``PortfolioLedger`` per reference asset. It holds no
    session state of its own.
    """

    def __init__(self, reference: ReferenceAssetConfig | None = None) -> None:
        self._reference = reference or ReferenceAssetConfig()

    @property
    def reference_address(self) -> str:
        return self._reference.address

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        reference_price_usd: float,
        current: SessionState | None = None,
    ) -> SessionState:
        """Open a fresh session funded with the configured bankroll.

        Raises ``AlreadyActive`` (carrying *current*) when a session is
        already running.
        """
        if current is not None and current.active:
            raise AlreadyActive(current)
        if not _is_positive(reference_price_usd):
            raise MarketDataUnavailable(
                f"Reference price must be a positive number, got {reference_price_usd!r}."
            )

        session = SessionState(
            reference_address=self._reference.address,
            portfolio={
                self._reference.address: Holding(
                    symbol=self._reference.symbol,
                    amount=self._reference.initial_amount,
                    average_cost=reference_price_usd,
                )
            },
        )
        logger.info(
            "Session started with %s %s at $%.4f.",
            self._reference.initial_amount,
            self._reference.symbol,
            reference_price_usd,
        )
        return session

    def apply_decision(
        self,
        session: SessionState,
        decision: TradeDecision,
        pair: PairSnapshot,
    ) -> SessionState:
        """Return a new session with *decision* applied; *session* is never mutated.

        Either every effect (holding updates and the history append) lands
        in the returned copy, or an exception is raised and nothing changed.
        """
        if not session.active:
            raise NoActiveSession()
        if decision.address == session.reference_address:
            raise InvalidDecision("The reference asset cannot be traded against itself.")
        if decision.address != pair.address:
            raise InvalidDecision(
                f"Decision is for {decision.address} but market data is for {pair.address}."
            )

        # Work on a copy so we can drop it on failure.
        draft = session.model_copy(deep=True)
        portfolio = draft.portfolio
        reference = portfolio[draft.reference_address]

        if decision.action is TradeAction.BUY:
            cost = decision.amount * pair.price_in_reference_asset
            if cost > reference.amount:
                raise InsufficientFunds(cost, reference.amount, reference.symbol)

            reference.amount -= cost

            existing = portfolio.get(decision.address)
            if existing is not None:
                new_amount = existing.amount + decision.amount
                existing.average_cost = (
                    existing.amount * existing.average_cost
                    + decision.amount * decision.price_usd
                ) / new_amount
                existing.amount = new_amount
            else:
                portfolio[decision.address] = Holding(
                    symbol=decision.symbol or pair.symbol,
                    amount=decision.amount,
                    average_cost=decision.price_usd,
                )

        elif decision.action is TradeAction.SELL:
            existing = portfolio.get(decision.address)
            held = existing.amount if existing is not None else 0.0
            if existing is None or held < decision.amount:
                raise InsufficientHoldings(decision.address, decision.amount, held)

            existing.amount -= decision.amount
            if existing.amount == 0:
                del portfolio[decision.address]

            reference.amount += decision.amount * pair.price_in_reference_asset

        draft.history.append(
            TradeRecord(
                address=decision.address,
                symbol=decision.symbol or pair.symbol,
                action=decision.action,
                amount=decision.amount,
                price=decision.price_usd,
                reasoning=decision.reasoning,
            )
        )
        return draft

    def end(
        self,
        session: SessionState | None,
        live_prices: Mapping[str, float],
        reference_price_usd: float,
    ) -> SimulationReport:
        """Value every holding at live prices and build the PnL report.

        *live_prices* maps token address to current USD price. A holding
        with no usable entry is reported as a ``HoldingLookupError`` and left
        out of the totals. The reference asset is valued at
        *reference_price_usd*.
        """
        if session is None or not session.active:
            raise NoActiveSession()
        if not _is_positive(reference_price_usd):
            raise MarketDataUnavailable(
                f"Reference price must be a positive number, got {reference_price_usd!r}."
            )

        entries: list[HoldingPnL | HoldingLookupError] = []
        total_pnl_usd = 0.0

        reference = session.portfolio.get(session.reference_address)
        if reference is not None:
            pnl = (reference_price_usd - reference.average_cost) * reference.amount
            total_pnl_usd += pnl
            entries.append(
                HoldingPnL(
                    symbol=reference.symbol,
                    address=session.reference_address,
                    current_price=reference_price_usd,
                    average_cost=reference.average_cost,
                    amount=reference.amount,
                    pnl_usd=pnl,
                )
            )

        for address, holding in session.portfolio.items():
            if address == session.reference_address:
                continue
            price = live_prices.get(address)
            if not _is_positive(price):
                entries.append(HoldingLookupError(symbol=holding.symbol, address=address))
                continue

            pnl = (price - holding.average_cost) * holding.amount
            total_pnl_usd += pnl
            entries.append(
                HoldingPnL(
                    symbol=holding.symbol,
                    address=address,
                    current_price=price,
                    average_cost=holding.average_cost,
                    amount=holding.amount,
                    pnl_usd=pnl,
                )
            )

        report = SimulationReport(
            reference_price_usd=reference_price_usd,
            total_pnl_usd=total_pnl_usd,
            total_pnl_in_reference_asset=total_pnl_usd / reference_price_usd,
            holdings=entries,
            trades=list(session.history),
        )
        logger.info(
            "Session closed: total PnL $%.4f (%d holding(s), %d lookup failure(s)).",
            total_pnl_usd,
            len(entries),
            len(report.failed_lookups),
        )
        return report


def _is_positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0
