"""Simulator configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
orchestrator, the market data gateway, the decision oracles, and the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

WETH_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
UNISWAP_V3_WETH_USDC_POOL = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"


class ReferenceAssetConfig(BaseModel):
    """The asset that funds the bankroll and denominates every trade."""

    address: str = Field(
        default=WETH_ADDRESS,
        description="Token address of the reference asset (wrapped native coin).",
    )
    symbol: str = Field(default="WETH", description="Display symbol of the reference asset.")
    initial_amount: float = Field(
        default=10.0,
        gt=0,
        description="Units of the reference asset granted when a session starts.",
    )


class MarketDataConfig(BaseModel):
    """Configuration for the DexScreener market data gateway."""

    base_url: str = Field(
        default="https://api.dexscreener.com",
        description="DexScreener API root.",
    )
    chain_ids: list[str] = Field(
        default_factory=lambda: ["ethereum", "ethereumpow"],
        description="Chains on which a pair is accepted.",
    )
    reference_pair_chain: str = Field(
        default="ethereum",
        description="Chain of the pair used to price the reference asset in USD.",
    )
    reference_pair_address: str = Field(
        default=UNISWAP_V3_WETH_USDC_POOL,
        description="Pool used to price the reference asset in USD.",
    )
    timeout_seconds: float = Field(default=10.0, gt=0, description="HTTP timeout per request.")


class OracleConfig(BaseModel):
    """Configuration for the decision oracle."""

    oracle_system: str = Field(
        default="llm",
        description="Registered oracle name, e.g. 'llm' or 'rule_based'.",
    )
    llm_provider: str = Field(
        default="openai",
        description="LLM provider identifier, e.g. 'openai', 'anthropic'.",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model name, e.g. 'gpt-4o', 'claude-sonnet-4-20250514'.",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for the LLM.",
    )
    system_prompt_override: str | None = Field(
        default=None,
        description="Optional override for the oracle's system prompt.",
    )
    max_position_fraction: float = Field(
        default=0.2,
        gt=0,
        le=1,
        description="Share of the reference balance the rule-based oracle spends per BUY.",
    )


class StoreConfig(BaseModel):
    """Where the single active session is kept between operations."""

    backend: Literal["memory", "file"] = "file"
    path: str = Field(default=".simulation", description="Directory used by the file backend.")
    session_key: str = Field(default="simulationState", description="Key of the session slot.")


class SimulatorConfig(BaseModel):
    """Top-level configuration, loaded from YAML."""

    reference_asset: ReferenceAssetConfig = Field(default_factory=ReferenceAssetConfig)
    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    output_dir: str = Field(
        default="results",
        description="Directory where ended-session reports are written.",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulatorConfig:
        """Load and validate a ``SimulatorConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
