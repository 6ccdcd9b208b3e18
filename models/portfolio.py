"""Portfolio state models: holdings, the oracle-facing snapshot, and the session."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from models.decision import TradeRecord


class Holding(BaseModel):
    """A position in one asset, valued at its weighted-average USD cost."""

    symbol: str
    amount: float = Field(ge=0)
    average_cost: float = Field(ge=0)


class PortfolioSnapshot(BaseModel):
    """Read-only copy of the holdings (address -> Holding) shown to the oracle."""

    reference_address: str
    holdings: dict[str, Holding]

    def for_oracle(self) -> dict:
        """Payload embedded in the decision prompt, keyed by token address."""
        return {
            address: {
                "symbol": h.symbol,
                "amount": h.amount,
                "buyPrice": h.average_cost,
            }
            for address, h in self.holdings.items()
        }


class SessionState(BaseModel):
    """One simulation lifecycle from start to end.

    ``portfolio`` always contains the reference asset under
    ``reference_address``; every other entry has a strictly positive amount.
    ``history`` is append-only and used for audit only, never for PnL.
    """

    active: bool = True
    reference_address: str
    portfolio: dict[str, Holding]
    history: list[TradeRecord] = []
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def reference_holding(self) -> Holding:
        return self.portfolio[self.reference_address]

    def snapshot(self) -> PortfolioSnapshot:
        """Return a deep copy of the holdings, safe to hand to the oracle."""
        return PortfolioSnapshot(
            reference_address=self.reference_address,
            holdings={k: v.model_copy() for k, v in self.portfolio.items()}
        )
