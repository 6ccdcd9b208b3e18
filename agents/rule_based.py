"""Deterministic momentum oracle (no API calls).

Used for offline runs and tests. It buys when the 24h price change is
strongly positive and the pool is liquid, sells the whole position when the
change turns negative, and holds otherwise. The same thresholds drive its
token analysis.
"""

from __future__ import annotations

import json

from agents.base import DecisionOracle
from agents.registry import register
from models.market import PairSnapshot
from models.portfolio import PortfolioSnapshot

_BUY_THRESHOLD_PCT = 5.0
_SELL_THRESHOLD_PCT = -5.0
_MIN_LIQUIDITY_USD = 50_000.0


@register("rule_based")
class RuleBasedOracle(DecisionOracle):
    """Momentum thresholds on the 24h price change; no API calls."""

    async def propose(self, pair: PairSnapshot, portfolio: PortfolioSnapshot) -> str:
        change = pair.price_change.get("h24", 0.0)
        held = portfolio.holdings.get(pair.address)
        reference = portfolio.holdings.get(portfolio.reference_address)
        reference_balance = reference.amount if reference is not None else 0.0

        action, amount = "HOLD", 0.0
        if held is not None and change <= _SELL_THRESHOLD_PCT:
            action, amount = "SELL", held.amount
            reasoning = f"24h change {change:.2f}% is below {_SELL_THRESHOLD_PCT}%; closing the position."
        elif change >= _BUY_THRESHOLD_PCT and pair.liquidity_usd >= _MIN_LIQUIDITY_USD:
            budget = reference_balance * self.config.max_position_fraction
            amount = budget / pair.price_in_reference_asset
            action = "BUY" if amount > 0 else "HOLD"
            reasoning = (
                f"24h change {change:.2f}% with ${pair.liquidity_usd:,.0f} liquidity; "
                f"spending {self.config.max_position_fraction:.0%} of the bankroll."
            )
        else:
            reasoning = f"24h change {change:.2f}% does not justify a trade."

        return json.dumps(
            {
                "address": pair.address,
                "symbol": pair.symbol,
                "priceUsd": pair.price_usd,
                "action": action,
                "amount": amount,
                "reasoning": reasoning,
            }
        )

    async def analyze(self, pair: PairSnapshot) -> str:
        change = pair.price_change.get("h24", 0.0)
        volume = pair.volume.get("h24", 0.0)
        liquid = pair.liquidity_usd >= _MIN_LIQUIDITY_USD

        if change >= _BUY_THRESHOLD_PCT and liquid:
            recommendation = "BUY"
        elif change <= _SELL_THRESHOLD_PCT:
            recommendation = "SELL"
        else:
            recommendation = "HOLD"

        risks, opportunities = [], []
        if not liquid:
            risks.append(f"Thin liquidity (${pair.liquidity_usd:,.0f}); large orders will move the price.")
        if change <= _SELL_THRESHOLD_PCT:
            risks.append(f"Falling {abs(change):.2f}% over 24h.")
        if change >= _BUY_THRESHOLD_PCT:
            opportunities.append(f"Up {change:.2f}% over 24h.")
        if liquid and volume >= pair.liquidity_usd:
            opportunities.append("24h volume exceeds pool liquidity; the market is active.")

        overview = (
            f"{pair.name or pair.symbol or pair.address} trades at ${pair.price_usd:,.6g} "
            f"with ${pair.liquidity_usd:,.0f} liquidity and ${volume:,.0f} 24h volume; "
            f"price changed {change:+.2f}% in 24h."
        )
        return json.dumps(
            {
                "overview": overview,
                "recommendation": recommendation,
                "confidence": min(100.0, 50.0 + abs(change) * 2),
                "reasoning": f"Momentum rule: buy above {_BUY_THRESHOLD_PCT}%, sell below {_SELL_THRESHOLD_PCT}%.",
                "risks": risks,
                "opportunities": opportunities,
            }
        )
