"""Market data models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PairSnapshot(BaseModel):
    """Point-in-time read of a token traded against the reference asset.

    ``price_in_reference_asset`` is how many units of the reference asset one
    token costs; the ledger uses it to debit and credit the bankroll.
    ``price_usd`` is informational and used for cost basis by the oracle.
    """

    address: str
    symbol: str
    name: str = ""
    price_usd: float = Field(gt=0, allow_inf_nan=False)
    price_in_reference_asset: float = Field(gt=0, allow_inf_nan=False)
    liquidity_usd: float = 0.0
    volume: dict[str, float] = {}  # window ("m5", "h1", "h6", "h24") -> USD volume
    price_change: dict[str, float] = {}  # window -> percent change
    fdv: float | None = None
    market_cap: float | None = None
    chain_id: str = ""
    pair_address: str = ""

    def for_oracle(self) -> dict:
        """Payload embedded in the decision prompt."""
        return self.model_dump(exclude={"pair_address"})
