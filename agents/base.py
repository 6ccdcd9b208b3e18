"""Abstract base class for decision oracles.

Every oracle (LLM-backed, rule-based, etc.) implements this protocol so the
orchestrator can invoke them interchangeably.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from models.config import OracleConfig
from models.market import PairSnapshot
from models.portfolio import PortfolioSnapshot


class DecisionOracle(ABC):
    """Common interface for pluggable trade-decision sources.

    Lifecycle:
        1. ``check_config``: class-level validation run by the registry.
        2. ``__init__``: receive oracle config. Must not contact a provider.
        3. ``propose``: called once per trade request with the freshly
           fetched pair and a snapshot of the portfolio.
        4. ``analyze``: optional, called for a token overview outside any
           session.

    The oracle returns raw text. Parsing and validating it into a
    ``TradeDecision`` is the caller's job, so a misbehaving oracle can never
    hand the ledger an unchecked object.
    """

    #: Registry name, set by ``@register``.
    name: str = "oracle"

    def __init__(self, config: OracleConfig) -> None:
        self.config = config

    @classmethod
    def check_config(cls, config: OracleConfig) -> None:
        """Raise ``ValueError`` if *config* cannot drive this oracle."""

    @property
    def model_name(self) -> str:
        """Identifier recorded in trace entries."""
        return self.name

    @abstractmethod
    async def propose(self, pair: PairSnapshot, portfolio: PortfolioSnapshot) -> str:
        """Return a decision for *pair* as a JSON text blob.

        Expected keys: ``address``, ``symbol``, ``priceUsd``, ``action``
        (BUY/SELL/HOLD), ``amount`` and ``reasoning``.
        """

    async def analyze(self, pair: PairSnapshot) -> str:
        """Return an overview of *pair* with a recommendation, as JSON text.

        Expected keys: ``overview``, ``recommendation`` (BUY/SELL/HOLD),
        ``confidence`` (0-100), ``reasoning``, ``risks`` and ``opportunities``.
        """
        raise NotImplementedError(f"Oracle '{self.name}' does not analyze tokens.")
