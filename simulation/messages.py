"""User-facing text for simulator events."""

from __future__ import annotations

import json

from models.analysis import TokenAnalysis
from models.portfolio import SessionState
from models.report import HoldingLookupError, SimulationReport, TradeResult
from simulation.errors import SimulationError


def start_message(session: SessionState) -> str:
    reference = session.reference_holding
    return (
        f"Simulation mode activated. You now have {reference.amount:g} {reference.symbol}.\n"
        "Please ONLY provide token addresses on Ethereum.\n"
        "I will analyze each and make corresponding trade decisions.\n"
        "You must type 'end simulation' to finish the simulation."
    )


def already_active_message() -> str:
    return (
        "Simulation mode is already active. You can input Ethereum token addresses "
        "to analyze and simulate trading, or type 'end simulation' to stop."
    )


def not_active_message() -> str:
    return "Simulation is not active. Start one with 'start simulation'."


def status_message(session: SessionState | None) -> str:
    if session is None:
        return not_active_message()
    lines = [f"Simulation active since {session.started_at:%Y-%m-%d %H:%M:%S %Z}.", "Portfolio:"]
    for address, holding in session.portfolio.items():
        lines.append(
            f"- {holding.symbol or address}: {holding.amount:.6f} @ ${holding.average_cost:.4f}"
        )
    lines.append(f"Trades so far: {len(session.history)}")
    return "\n".join(lines)


def trade_message(result: TradeResult) -> str:
    """The validated decision as pretty-printed JSON."""
    return json.dumps(result.decision.model_dump(mode="json", by_alias=True), indent=2)


_FAILURE_PREFIX = {
    "start": "Simulation not started",
    "trade": "Trade not applied",
    "analyze": "Analysis unavailable",
    "end": "Simulation not ended",
}


def error_message(exc: SimulationError, command: str = "trade") -> str:
    prefix = _FAILURE_PREFIX.get(command, "Command failed")
    return f"{prefix} ({exc.code}): {exc}"


def analysis_message(analysis: TokenAnalysis) -> str:
    """The analysis as pretty-printed JSON, without the echoed address."""
    return json.dumps(analysis.model_dump(mode="json", exclude={"address"}), indent=2)


def report_message(report: SimulationReport, reference_symbol: str = "ETH") -> str:
    """Render the end-of-session PnL summary."""
    holdings = []
    for entry in report.holdings:
        if isinstance(entry, HoldingLookupError):
            holdings.append(
                {"token": entry.symbol, "address": entry.address, "error": entry.error}
            )
        else:
            holdings.append(
                {
                    "token": entry.symbol,
                    "currentPrice": entry.current_price,
                    "buyPrice": entry.average_cost,
                    "amount": entry.amount,
                    "pnlUsd": f"{entry.pnl_usd:.4f}",
                }
            )

    return (
        "Simulation complete. Here is your profit/loss summary:\n\n"
        f"{reference_symbol}/USD Price: ${report.reference_price_usd:.4f}\n\n"
        "Total Net PnL:\n"
        f"- USD: ${report.total_pnl_usd:.4f}\n"
        f"- {reference_symbol}: {report.total_pnl_in_reference_asset} {reference_symbol}\n\n"
        "Detailed Holdings:\n"
        f"{json.dumps(holdings, indent=2)}"
    )
