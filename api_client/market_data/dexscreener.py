"""DexScreener market data gateway.

Token pairs come from ``/latest/dex/tokens/{address}``; the first pair on an
accepted chain whose quote token is the reference asset wins. The reference
asset's USD price comes from a fixed pool via
``/latest/dex/pairs/{chain}/{pair}``.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx
from pydantic import ValidationError

from api_client.market_data.base import MarketDataError, MarketDataGateway, PairNotFound
from models.config import MarketDataConfig, ReferenceAssetConfig
from models.market import PairSnapshot

logger = logging.getLogger(__name__)

_WINDOWS = ("m5", "h1", "h6", "h24")


class DexScreenerGateway(MarketDataGateway):
    def __init__(
        self,
        config: MarketDataConfig | None = None,
        reference: ReferenceAssetConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or MarketDataConfig()
        self._reference_address = (reference or ReferenceAssetConfig()).address.lower()
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def get_pair(self, address: str) -> PairSnapshot:
        address = address.lower()
        data = await self._get_json(f"/latest/dex/tokens/{address}")

        pairs = data.get("pairs") or []
        if not isinstance(pairs, list):
            raise MarketDataError(f"Unexpected 'pairs' field for {address}: {type(pairs).__name__}.")
        if not pairs:
            raise PairNotFound(f"No trading pairs found for {address}.")

        accepted_chains = set(self._config.chain_ids)
        for pair in pairs:
            if not isinstance(pair, dict):
                continue
            quote = pair.get("quoteToken") or {}
            if not isinstance(quote, dict):
                continue
            if (
                pair.get("chainId") in accepted_chains
                and str(quote.get("address", "")).lower() == self._reference_address
            ):
                return _to_snapshot(pair, address)

        raise PairNotFound(
            f"No pair against the reference asset on {', '.join(sorted(accepted_chains))} for {address}."
        )

    async def get_reference_price(self) -> float:
        path = (
            f"/latest/dex/pairs/{self._config.reference_pair_chain}/"
            f"{self._config.reference_pair_address}"
        )
        data = await self._get_json(path)
        pair = data.get("pair")
        if not pair and isinstance(data.get("pairs"), list) and data["pairs"]:
            pair = data["pairs"][0]
        if not isinstance(pair, dict) or not pair:
            raise MarketDataError(f"Reference pair {self._config.reference_pair_address} not found.")
        return _parse_price(pair.get("priceUsd"), "priceUsd")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str) -> dict[str, Any]:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise MarketDataError(
                f"DexScreener returned HTTP {exc.response.status_code} for {path}."
            ) from exc
        except httpx.HTTPError as exc:
            raise MarketDataError(f"DexScreener request failed for {path}: {exc}") from exc
        except ValueError as exc:
            raise MarketDataError(f"DexScreener returned invalid JSON for {path}.") from exc

        if not isinstance(payload, dict):
            raise MarketDataError(f"Unexpected DexScreener payload for {path}: {type(payload).__name__}.")
        logger.debug("GET %s -> %d pair(s)", path, len(payload.get("pairs") or []))
        return payload


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _parse_price(value: Any, field: str) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError) as exc:
        raise MarketDataError(f"Pair field '{field}' is not a number: {value!r}.") from exc
    if not math.isfinite(price) or price <= 0:
        raise MarketDataError(f"Pair field '{field}' must be positive, got {price}.")
    return price


def _optional_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _windowed(raw: dict[str, Any] | None) -> dict[str, float]:
    raw = raw or {}
    out: dict[str, float] = {}
    for window in _WINDOWS:
        value = _optional_float(raw.get(window))
        if value is not None:
            out[window] = value
    return out


def _to_snapshot(pair: dict[str, Any], address: str) -> PairSnapshot:
    try:
        base = pair.get("baseToken") or {}
        liquidity = pair.get("liquidity") or {}
        return PairSnapshot(
            address=address,
            symbol=base.get("symbol") or "",
            name=base.get("name") or "",
            price_usd=_parse_price(pair.get("priceUsd"), "priceUsd"),
            price_in_reference_asset=_parse_price(pair.get("priceNative"), "priceNative"),
            liquidity_usd=_optional_float(liquidity.get("usd")) or 0.0,
            volume=_windowed(pair.get("volume")),
            price_change=_windowed(pair.get("priceChange")),
            fdv=_optional_float(pair.get("fdv")),
            market_cap=_optional_float(pair.get("marketCap")),
            chain_id=pair.get("chainId") or "",
            pair_address=pair.get("pairAddress") or "",
        )
    except (AttributeError, TypeError, ValidationError) as exc:
        raise MarketDataError(f"Malformed DexScreener pair for {address}: {exc}") from exc
