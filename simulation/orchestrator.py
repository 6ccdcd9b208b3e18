"""Trade orchestrator: validates requests and sequences gateway, oracle, ledger, store.

Lifecycle of a trade::

    validate address -> load session -> fetch pair -> ask oracle
        -> parse decision -> ledger.apply_decision -> persist

Network calls happen before the ledger runs; the store is written once, and
only after the ledger has returned a fully-applied session. Operations on the
same session key are serialized with an ``asyncio.Lock``.

An analysis fetches the pair and asks the oracle for an overview; no session
is involved and nothing is stored.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import defaultdict

from agents.base import DecisionOracle
from agents.parsing import parse_analysis, parse_decision
from api_client.llm.tracing import build_trace_entry
from api_client.market_data.base import MarketDataError, MarketDataGateway, PairNotFound
from models.analysis import TokenAnalysis
from models.portfolio import SessionState
from models.report import SimulationReport, TradeResult
from simulation.errors import (
    AlreadyActive,
    InvalidDecision,
    InvalidIdentifier,
    MarketDataUnavailable,
    NoActiveSession,
    SimulationError,
)
from simulation.ledger import PortfolioLedger
from simulation.session_store import SessionStore

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
DEFAULT_SESSION_KEY = "simulationState"


def normalize_address(raw: str) -> str:
    """Trim and lower-case *raw*, raising ``InvalidIdentifier`` unless it is a 0x address."""
    candidate = (raw or "").strip()
    if not ADDRESS_PATTERN.match(candidate):
        raise InvalidIdentifier(f"'{candidate}' is not a valid token address (0x + 40 hex characters).")
    return candidate.lower()


class TradeOrchestrator:
    """Drives start/trade/end for the single session stored under ``session_key``.

    Collaborators are injected: the gateway and oracle may be swapped for
    fakes, and the store decides where state lives between calls.
    """

    def __init__(
        self,
        ledger: PortfolioLedger,
        gateway: MarketDataGateway,
        oracle: DecisionOracle,
        store: SessionStore,
        session_key: str = DEFAULT_SESSION_KEY,
    ) -> None:
        self._ledger = ledger
        self._gateway = gateway
        self._oracle = oracle
        self._store = store
        self._session_key = session_key
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def reference_address(self) -> str:
        return self._ledger.reference_address

    def status(self) -> SessionState | None:
        """Return the stored session, or ``None`` when no simulation is running."""
        return self._store.get(self._session_key)

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def start_session(self) -> SessionState:
        """Open a session priced at the live reference rate and persist it.

        Raises ``AlreadyActive`` (carrying the running session) without any
        network call when the slot is occupied.
        """
        async with self._locks[self._session_key]:
            current = self._store.get(self._session_key)
            if current is not None and current.active:
                raise AlreadyActive(current)

            reference_price = await self._fetch_reference_price()
            session = self._ledger.start(reference_price, current)
            self._store.set(self._session_key, session)
            return session

    # ------------------------------------------------------------------
    # Trade
    # ------------------------------------------------------------------

    async def trade(self, raw_identifier: str) -> TradeResult:
        """Run one decision cycle for the token at *raw_identifier*.

        Every failure raises a ``SimulationError`` subclass and leaves the
        stored session exactly as it was.
        """
        address = normalize_address(raw_identifier)
        if address == self.reference_address:
            raise InvalidIdentifier("The reference asset itself cannot be traded.")

        async with self._locks[self._session_key]:
            session = self._store.get(self._session_key)
            if session is None or not session.active:
                raise NoActiveSession("Start a simulation before submitting tokens.")

            try:
                pair = await self._gateway.get_pair(address)
            except PairNotFound as exc:
                logger.warning("No tradable pair for %s: %s", address, exc)
                raise MarketDataUnavailable(str(exc)) from exc
            except MarketDataError as exc:
                logger.warning("Market data lookup failed for %s: %s", address, exc)
                raise MarketDataUnavailable(str(exc)) from exc

            try:
                raw_decision = await self._oracle.propose(pair, session.snapshot())
            except Exception as exc:
                logger.warning("Oracle failed for %s: %s", address, exc)
                raise InvalidDecision(f"Oracle failed to produce a decision: {exc}") from exc

            trace = build_trace_entry(
                oracle_name=self._oracle.name,
                model_name=self._oracle.model_name,
                prompt_id="trade_decision",
                raw_response=raw_decision,
            )

            try:
                decision = parse_decision(raw_decision, expected_address=address)
                updated = self._ledger.apply_decision(session, decision, pair)
            except SimulationError as exc:
                logger.warning("Trade for %s rejected (%s): %s", address, exc.code, exc)
                raise

            trace["parsed"] = decision.model_dump(mode="json", by_alias=True)
            self._store.set(self._session_key, updated)

        record = updated.history[-1]
        logger.info(
            "Trade %s %s %s at $%s applied; %d record(s) in history.",
            record.action.value,
            record.amount,
            record.symbol or address,
            record.price,
            len(updated.history),
        )
        return TradeResult(
            decision=decision,
            record=record,
            session=updated,
            raw_decision=raw_decision,
            oracle_trace=trace,
        )

    # ------------------------------------------------------------------
    # Analyze
    # ------------------------------------------------------------------

    async def analyze(self, raw_identifier: str) -> TokenAnalysis:
        """Ask the oracle for an overview of one token.

        Needs no session and never touches the store.
        """
        address = normalize_address(raw_identifier)
        if address == self.reference_address:
            raise InvalidIdentifier("The reference asset cannot be analyzed against itself.")

        try:
            pair = await self._gateway.get_pair(address)
        except MarketDataError as exc:
            logger.warning("Market data lookup failed for %s: %s", address, exc)
            raise MarketDataUnavailable(str(exc)) from exc

        try:
            raw_analysis = await self._oracle.analyze(pair)
        except Exception as exc:
            logger.warning("Oracle failed to analyze %s: %s", address, exc)
            raise InvalidDecision(f"Oracle failed to produce an analysis: {exc}") from exc

        analysis = parse_analysis(raw_analysis, pair)
        logger.info(
            "Analysis of %s: %s (confidence %.0f).",
            pair.symbol or address,
            analysis.recommendation.value,
            analysis.confidence,
        )
        return analysis

    # ------------------------------------------------------------------
    # End
    # ------------------------------------------------------------------

    async def end_session(self) -> SimulationReport:
        """Value the portfolio at live prices, then clear the session slot.

        Per-holding lookup failures are reported in the returned report and
        do not prevent the slot from being cleared. A failure to price the
        reference asset aborts and keeps the session.
        """
        async with self._locks[self._session_key]:
            session = self._store.get(self._session_key)
            if session is None or not session.active:
                raise NoActiveSession("Simulation is not active.")

            reference_price = await self._fetch_reference_price()

            live_prices: dict[str, float] = {}
            for address, holding in session.portfolio.items():
                if address == session.reference_address:
                    continue
                try:
                    pair = await self._gateway.get_pair(address)
                except MarketDataError as exc:
                    logger.warning(
                        "Price lookup failed for %s (%s): %s", holding.symbol, address, exc
                    )
                    continue
                live_prices[address] = pair.price_usd

            report = self._ledger.end(session, live_prices, reference_price)
            self._store.delete(self._session_key)
            return report

    async def aclose(self) -> None:
        await self._gateway.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_reference_price(self) -> float:
        try:
            return await self._gateway.get_reference_price()
        except MarketDataError as exc:
            logger.warning("Reference price lookup failed: %s", exc)
            raise MarketDataUnavailable(f"Could not price the reference asset: {exc}") from exc
