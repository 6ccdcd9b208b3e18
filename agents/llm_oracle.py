"""LLM decision oracle: one chat model asked for a JSON trade decision.

The model receives the pair data and the current portfolio in its prompt and
must answer with a single JSON object. The raw text is returned untouched;
``agents.parsing.parse_decision`` turns it into a ``TradeDecision``.

The same model also answers standalone token analysis requests
(``analyze``), parsed by ``agents.parsing.parse_analysis``.
"""

from __future__ import annotations

import json
import logging

from langchain_core.messages import HumanMessage, SystemMessage

from agents.base import DecisionOracle
from agents.registry import register
from models.config import OracleConfig
from models.market import PairSnapshot
from models.portfolio import PortfolioSnapshot

logger = logging.getLogger(__name__)

# Default system prompt, can be overridden via config.
_DEFAULT_SYSTEM_PROMPT = """\
You are a token trading agent running a paper-trading simulation. Your target \
is to maximize profit measured in the reference asset before the simulation \
ends. Analyse the token pair data together with the current portfolio and pick \
the most profitable action. Do not go all-in on a single token.

Guidelines:
- BUY spends the reference asset at the pair's native price; make sure the \
portfolio holds enough of it.
- SELL only tokens already held, and never more than the held amount.
- HOLD when the data does not justify a trade; use amount 0.
"""

_RESPONSE_FORMAT = """\
You must return ONLY the final decision as a JSON object in the following format:
{{
  "address": "{address}",
  "symbol": "{symbol}",
  "priceUsd": {price_usd},
  "action": "BUY" | "SELL" | "HOLD",
  "amount": number,
  "reasoning": string
}}"""

_ANALYST_SYSTEM_PROMPT = """\
You are a token analyst. You review on-chain market data for Ethereum tokens \
and give a concise, evidence-based assessment. You never invent figures that \
are not in the data.
"""

_ANALYSIS_FORMAT = """\
First, give a comprehensive overview of the token's current state: price, \
liquidity, volume, recent trends, and any indicators of risk or strength. \
Then, based on that overview, recommend whether to BUY, SELL or HOLD it.

You must return ONLY a JSON object in the following format:
{
  "overview": string,
  "recommendation": "BUY" | "SELL" | "HOLD",
  "confidence": number (0-100),
  "reasoning": string,
  "risks": string[],
  "opportunities": string[]
}"""

SUPPORTED_PROVIDERS = ("openai", "anthropic")


def _create_llm(config: OracleConfig):
    """Instantiate the appropriate LangChain chat model from config."""
    provider = config.llm_provider.lower()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.llm_model,
            temperature=config.temperature,
        )
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.llm_model,
            temperature=config.temperature,
        )
    else:
        raise ValueError(
            f"Unsupported LLM provider '{provider}'. "
            f"Supported: {', '.join(repr(p) for p in SUPPORTED_PROVIDERS)}."
        )


def build_decision_prompt(pair: PairSnapshot, portfolio: PortfolioSnapshot) -> str:
    """User prompt carrying the pair data, the portfolio, and the answer format."""
    return (
        "Token Pair Data:\n"
        f"```json\n{json.dumps(pair.for_oracle(), indent=2)}\n```\n\n"
        "Portfolio (token address -> holding):\n"
        f"```json\n{json.dumps(portfolio.for_oracle(), indent=2)}\n```\n\n"
        + _RESPONSE_FORMAT.format(
            address=pair.address,
            symbol=pair.symbol,
            price_usd=pair.price_usd,
        )
    )


def build_analysis_prompt(pair: PairSnapshot) -> str:
    """User prompt for a standalone token overview."""
    return (
        "Token Data:\n"
        f"```json\n{json.dumps(pair.for_oracle(), indent=2)}\n```\n\n"
        + _ANALYSIS_FORMAT
    )


@register("llm")
class LLMDecisionOracle(DecisionOracle):
    """Asks a single chat model for a BUY/SELL/HOLD decision."""

    def __init__(self, config: OracleConfig) -> None:
        super().__init__(config)
        self._llm = None
        self._system_prompt = config.system_prompt_override or _DEFAULT_SYSTEM_PROMPT

    @classmethod
    def check_config(cls, config: OracleConfig) -> None:
        if config.llm_provider.lower() not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported LLM provider '{config.llm_provider}'. "
                f"Supported: {', '.join(repr(p) for p in SUPPORTED_PROVIDERS)}."
            )
        if not config.llm_model.strip():
            raise ValueError("oracle.llm_model must name a model.")

    @property
    def model_name(self) -> str:
        return f"{self.config.llm_provider}:{self.config.llm_model}"

    async def propose(self, pair: PairSnapshot, portfolio: PortfolioSnapshot) -> str:
        text = await self._ask(self._system_prompt, build_decision_prompt(pair, portfolio))
        logger.debug("LLM decision for %s: %s", pair.address, text)
        return text

    async def analyze(self, pair: PairSnapshot) -> str:
        text = await self._ask(_ANALYST_SYSTEM_PROMPT, build_analysis_prompt(pair))
        logger.debug("LLM analysis for %s: %s", pair.address, text)
        return text

    async def _ask(self, system_prompt: str, user_prompt: str) -> str:
        # Created lazily; constructing the oracle must not need provider credentials.
        if self._llm is None:
            self._llm = _create_llm(self.config)
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        response = await self._llm.ainvoke(messages)
        return _message_text(response.content)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _message_text(content) -> str:
    """Flatten a chat message's content (plain string or list of content blocks)."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
