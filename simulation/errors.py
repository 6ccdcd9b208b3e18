"""Typed failures raised by the ledger and the orchestrator.

None of these are fatal: each leaves the persisted session either untouched
or in its fully-applied post-transition state. ``code`` is a stable
identifier the presentation layer can switch on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.portfolio import SessionState


class SimulationError(Exception):
    """Base class for every recoverable simulator failure."""

    code = "simulation_error"


class AlreadyActive(SimulationError):
    """``start`` was called while a session is running."""

    code = "already_active"

    def __init__(self, session: SessionState | None = None) -> None:
        super().__init__("A simulation session is already active.")
        self.session = session


class NoActiveSession(SimulationError):
    code = "no_active_session"

    def __init__(self, message: str = "No simulation session is active.") -> None:
        super().__init__(message)


class InvalidIdentifier(SimulationError):
    code = "invalid_identifier"


class InvalidDecision(SimulationError):
    """The oracle's output could not be parsed or failed validation."""

    code = "invalid_decision"


class MarketDataUnavailable(SimulationError):
    code = "market_data_unavailable"


class InsufficientFunds(SimulationError):
    """A BUY would cost more of the reference asset than the portfolio holds."""

    code = "insufficient_funds"

    def __init__(self, required: float, available: float, symbol: str) -> None:
        super().__init__(
            f"Insufficient {symbol}: trade costs {required:.8f}, only {available:.8f} held."
        )
        self.required = required
        self.available = available


class InsufficientHoldings(SimulationError):
    """A SELL asks for more units than the portfolio holds (or none at all)."""

    code = "insufficient_holdings"

    def __init__(self, address: str, requested: float, held: float) -> None:
        super().__init__(
            f"Cannot sell {requested} of {address}: only {held} held."
        )
        self.address = address
        self.requested = requested
        self.held = held
