"""Token analysis model: an oracle's overview of one token, outside any session."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.decision import TradeAction


class TokenAnalysis(BaseModel):
    """Overview plus a BUY/SELL/HOLD recommendation. Never applied to a portfolio."""

    model_config = ConfigDict(frozen=True)

    address: str = ""
    symbol: str = ""
    overview: str = Field(min_length=1)
    recommendation: TradeAction
    confidence: float = Field(ge=0, le=100, allow_inf_nan=False)
    reasoning: str = ""
    risks: list[str] = []
    opportunities: list[str] = []

    @field_validator("recommendation", mode="before")
    @classmethod
    def _normalize_recommendation(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value
