from __future__ import annotations

import asyncio

import httpx
import pytest

from api_client.market_data.base import MarketDataError, PairNotFound
from api_client.market_data.dexscreener import DexScreenerGateway
from models.config import UNISWAP_V3_WETH_USDC_POOL, WETH_ADDRESS, MarketDataConfig

TOKEN = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"


def _pair(chain: str = "ethereum", quote: str = WETH_ADDRESS, native: str = "0.0035", usd: str = "7.23") -> dict:
    return {
        "chainId": chain,
        "pairAddress": "0xpair",
        "baseToken": {"name": "Uniswap", "symbol": "UNI", "address": TOKEN},
        "quoteToken": {"name": "Wrapped Ether", "symbol": "WETH", "address": quote},
        "priceNative": native,
        "priceUsd": usd,
        "liquidity": {"usd": 2_500_000.5, "base": 100, "quote": 200},
        "volume": {"m5": 10, "h1": 100, "h6": 600, "h24": 2400},
        "priceChange": {"h1": -0.4, "h24": 3.1},
        "fdv": 7_230_000_000,
        "marketCap": 4_300_000_000,
    }


def _gateway(handler) -> DexScreenerGateway:
    return DexScreenerGateway(
        MarketDataConfig(base_url="https://api.dexscreener.test"),
        transport=httpx.MockTransport(handler),
    )


def test_get_pair_picks_reference_quoted_pair_on_accepted_chain() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(
            200,
            json={
                "pairs": [
                    _pair(chain="bsc"),
                    _pair(quote="0xdac17f958d2ee523a2206206994597c13d831ec7"),
                    _pair(native="0.0036", usd="7.50"),
                ]
            },
        )

    async def scenario():
        gateway = _gateway(handler)
        try:
            return await gateway.get_pair(TOKEN.upper().replace("0X", "0x"))
        finally:
            await gateway.aclose()

    snapshot = asyncio.run(scenario())

    assert seen == [f"/latest/dex/tokens/{TOKEN}"]
    assert snapshot.address == TOKEN
    assert snapshot.symbol == "UNI"
    assert snapshot.name == "Uniswap"
    assert snapshot.price_usd == 7.5
    assert snapshot.price_in_reference_asset == 0.0036
    assert snapshot.liquidity_usd == 2_500_000.5
    assert snapshot.volume == {"m5": 10, "h1": 100, "h6": 600, "h24": 2400}
    assert snapshot.price_change == {"h1": -0.4, "h24": 3.1}
    assert snapshot.chain_id == "ethereum"


def test_ethereumpow_pairs_are_accepted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pairs": [_pair(chain="ethereumpow")]})

    snapshot = asyncio.run(_gateway(handler).get_pair(TOKEN))
    assert snapshot.chain_id == "ethereumpow"


@pytest.mark.parametrize(
    "payload",
    [
        {"pairs": []},
        {"pairs": None},
        {"pairs": [_pair(chain="solana")]},
    ],
)
def test_get_pair_not_found(payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(PairNotFound):
        asyncio.run(_gateway(handler).get_pair(TOKEN))


def test_http_error_is_market_data_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(MarketDataError) as excinfo:
        asyncio.run(_gateway(handler).get_pair(TOKEN))
    assert not isinstance(excinfo.value, PairNotFound)
    assert "503" in str(excinfo.value)


def test_transport_error_is_market_data_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MarketDataError):
        asyncio.run(_gateway(handler).get_pair(TOKEN))


def test_invalid_json_is_market_data_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with pytest.raises(MarketDataError):
        asyncio.run(_gateway(handler).get_pair(TOKEN))


def test_non_numeric_price_is_market_data_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pairs": [_pair(native="n/a")]})

    with pytest.raises(MarketDataError):
        asyncio.run(_gateway(handler).get_pair(TOKEN))


def test_get_reference_price() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"pair": {"priceUsd": "2101.37"}})

    price = asyncio.run(_gateway(handler).get_reference_price())

    assert price == 2101.37
    assert seen == [f"/latest/dex/pairs/ethereum/{UNISWAP_V3_WETH_USDC_POOL}"]


def test_get_reference_price_missing_pair() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pair": None, "pairs": None})

    with pytest.raises(MarketDataError):
        asyncio.run(_gateway(handler).get_reference_price())


def test_null_token_fields_become_empty_strings() -> None:
    pair = _pair()
    pair["baseToken"] = {"name": None, "symbol": None, "address": TOKEN}
    pair["pairAddress"] = None

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pairs": [pair]})

    snapshot = asyncio.run(_gateway(handler).get_pair(TOKEN))
    assert snapshot.symbol == ""
    assert snapshot.name == ""
    assert snapshot.pair_address == ""


@pytest.mark.parametrize(
    "field, value",
    [
        ("baseToken", "UNI"),
        ("liquidity", [1, 2]),
        ("volume", "lots"),
    ],
)
def test_malformed_pair_fields_are_market_data_error(field, value) -> None:
    pair = _pair()
    pair[field] = value

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pairs": [pair]})

    with pytest.raises(MarketDataError):
        asyncio.run(_gateway(handler).get_pair(TOKEN))


def test_non_object_pair_entries_are_skipped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pairs": ["garbage", 7, _pair()]})

    snapshot = asyncio.run(_gateway(handler).get_pair(TOKEN))
    assert snapshot.symbol == "UNI"


def test_non_list_pairs_is_market_data_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"pairs": {"chainId": "ethereum"}})

    with pytest.raises(MarketDataError):
        asyncio.run(_gateway(handler).get_pair(TOKEN))
