"""Abstract market data gateway.

The orchestrator depends on this interface only; concrete gateways are
injected at construction time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from models.market import PairSnapshot


class MarketDataError(RuntimeError):
    """The gateway could not produce data (transport, HTTP status, or payload shape)."""


class PairNotFound(MarketDataError):
    """The token has no tradable pair against the reference asset on the target chain."""


class MarketDataGateway(ABC):
    """Read-only price lookups for tokens and for the reference asset."""

    @abstractmethod
    async def get_pair(self, address: str) -> PairSnapshot:
        """Return the pair of *address* quoted against the reference asset.

        Raises ``PairNotFound`` if no such pair exists and ``MarketDataError``
        for any other failure.
        """

    @abstractmethod
    async def get_reference_price(self) -> float:
        """Return the reference asset's current USD price."""

    async def aclose(self) -> None:
        """Release network resources. Gateways without any may ignore this."""
