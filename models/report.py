"""Outcome models: the per-trade result and the end-of-session PnL report."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from models.decision import TradeDecision, TradeRecord
from models.portfolio import SessionState


class TradeResult(BaseModel):
    """Returned by the orchestrator once a trade has been applied and persisted."""

    decision: TradeDecision
    record: TradeRecord
    session: SessionState
    raw_decision: str = ""
    oracle_trace: dict[str, Any] = {}


class HoldingPnL(BaseModel):
    """Valuation of one holding at live price."""

    kind: Literal["priced"] = "priced"
    symbol: str
    address: str
    current_price: float
    average_cost: float
    amount: float
    pnl_usd: float


class HoldingLookupError(BaseModel):
    """A holding whose live price could not be fetched; excluded from the totals."""

    kind: Literal["error"] = "error"
    symbol: str
    address: str
    error: str = "Failed to fetch data"


HoldingEntry = Annotated[Union[HoldingPnL, HoldingLookupError], Field(discriminator="kind")]


class SimulationReport(BaseModel):
    """Profit/loss summary produced when a session ends.

    The reference asset is always listed first. Totals only include
    ``HoldingPnL`` entries.
    """

    reference_price_usd: float
    total_pnl_usd: float
    total_pnl_in_reference_asset: float
    holdings: list[HoldingEntry]
    trades: list[TradeRecord] = []

    @property
    def failed_lookups(self) -> list[HoldingLookupError]:
        return [h for h in self.holdings if isinstance(h, HoldingLookupError)]
