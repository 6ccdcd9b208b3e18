"""Oracle output and execution models: TradeAction, TradeDecision, TradeRecord."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TradeAction(str, Enum):
    """What the oracle wants done with the token. HOLD leaves the portfolio alone."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class TradeDecision(BaseModel):
    """A decision returned by the oracle, validated before it may touch the ledger.

    The wire format uses the camel-cased ``priceUsd`` key; numeric fields may
    arrive as numeric strings and are coerced. Non-finite or negative values
    are rejected, and BUY/SELL need a positive amount and price.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    address: str
    symbol: str = ""
    price_usd: float = Field(alias="priceUsd", ge=0, allow_inf_nan=False)
    action: TradeAction
    amount: float = Field(ge=0, allow_inf_nan=False)
    reasoning: str = ""

    @field_validator("address", mode="before")
    @classmethod
    def _normalize_address(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_trade_size(self) -> TradeDecision:
        if self.action is not TradeAction.HOLD:
            if self.amount <= 0:
                raise ValueError(f"{self.action.value} requires a positive amount, got {self.amount}.")
            if self.price_usd <= 0:
                raise ValueError(f"{self.action.value} requires a positive priceUsd, got {self.price_usd}.")
        return self


class TradeRecord(BaseModel):
    """Immutable history entry appended by the ledger for every applied decision."""

    model_config = ConfigDict(frozen=True)

    address: str
    symbol: str
    action: TradeAction
    amount: float
    price: float  # USD price quoted by the oracle
    reasoning: str = ""
    executed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

