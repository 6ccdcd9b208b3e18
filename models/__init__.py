"""Data models for the paper-trading simulator.

The ledger, orchestrator, gateway and oracles all import from models.
"""

from models.analysis import TokenAnalysis
from models.config import (
    MarketDataConfig,
    OracleConfig,
    ReferenceAssetConfig,
    SimulatorConfig,
    StoreConfig,
)
from models.decision import TradeAction, TradeDecision, TradeRecord
from models.market import PairSnapshot
from models.portfolio import Holding, PortfolioSnapshot, SessionState
from models.report import HoldingLookupError, HoldingPnL, SimulationReport, TradeResult

__all__ = [
    # config
    "MarketDataConfig",
    "OracleConfig",
    "ReferenceAssetConfig",
    "SimulatorConfig",
    "StoreConfig",
    # analysis
    "TokenAnalysis",
    # decision
    "TradeAction",
    "TradeDecision",
    "TradeRecord",
    # market
    "PairSnapshot",
    # portfolio
    "Holding",
    "PortfolioSnapshot",
    "SessionState",
    # report
    "HoldingLookupError",
    "HoldingPnL",
    "SimulationReport",
    "TradeResult",
]
