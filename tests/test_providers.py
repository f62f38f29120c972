from __future__ import annotations

from typing import Any

import pytest

from solfolio.common.exceptions.base import PermanentProviderError, UnsupportedAssetError
from solfolio.core.types import SOL_MINT, USDC_MINT, ErrorCode
from solfolio.infra.providers import (
    BirdeyeProvider,
    CoinGeckoProvider,
    CryptoCompareProvider,
    JupiterProvider,
)

UNKNOWN_MINT = "Unknown1111111111111111111111111111111111111"


class _StubHttp:
    """경로별 고정 응답을 돌려주는 HTTP 클라이언트"""

    def __init__(self, responses: dict[str, Any]) -> None:
        self._responses = responses
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def get_json(self, path: str, params: dict[str, Any] | None = None, headers=None) -> Any:
        self.calls.append((path, params))
        return self._responses.get(path)

    async def close(self) -> None:
        return None


@pytest.mark.asyncio
async def test_birdeye_current_price() -> None:
    http = _StubHttp(
        {"/defi/price": {"success": True, "data": {"value": 151.2, "updateUnixTime": 1700}}}
    )
    provider = BirdeyeProvider(http)  # type: ignore[arg-type]

    result = await provider.get_price(SOL_MINT)

    assert result.price == 151.2
    assert result.observed_at == 1700
    assert http.calls[0][1] == {"address": SOL_MINT}


@pytest.mark.asyncio
async def test_birdeye_unsuccessful_payload_is_no_data() -> None:
    provider = BirdeyeProvider(_StubHttp({"/defi/price": {"success": False}}))  # type: ignore[arg-type]

    with pytest.raises(PermanentProviderError) as exc_info:
        await provider.get_price(SOL_MINT)

    assert exc_info.value.error_code == ErrorCode.NO_DATA


@pytest.mark.asyncio
async def test_birdeye_historical_picks_closest_point() -> None:
    ts = 1_700_000_000
    http = _StubHttp(
        {
            "/defi/history_price": {
                "success": True,
                "data": {
                    "items": [
                        {"unixTime": ts - 900, "value": 10.0},
                        {"unixTime": ts + 120, "value": 11.0},
                        {"unixTime": ts + 1800, "value": 12.0},
                    ]
                },
            }
        }
    )
    provider = BirdeyeProvider(http)  # type: ignore[arg-type]

    result = await provider.get_historical_price(SOL_MINT, ts)

    assert result.price == 11.0
    params = http.calls[0][1]
    assert params["time_from"] == ts - 3600
    assert params["time_to"] == ts + 3600


@pytest.mark.asyncio
async def test_birdeye_historical_too_far_is_no_data() -> None:
    ts = 1_700_000_000
    http = _StubHttp(
        {
            "/defi/history_price": {
                "success": True,
                "data": {"items": [{"unixTime": ts - 10_000, "value": 10.0}]},
            }
        }
    )

    with pytest.raises(PermanentProviderError):
        await BirdeyeProvider(http).get_historical_price(SOL_MINT, ts)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_birdeye_malformed_price_is_invalid_response() -> None:
    http = _StubHttp({"/defi/price": {"success": True, "data": {"value": "n/a"}}})

    with pytest.raises(PermanentProviderError) as exc_info:
        await BirdeyeProvider(http).get_price(SOL_MINT)  # type: ignore[arg-type]

    assert exc_info.value.error_code == ErrorCode.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_jupiter_price_and_metadata() -> None:
    http = _StubHttp(
        {
            "/price/v2": {"data": {SOL_MINT: {"id": SOL_MINT, "price": "149.5"}}},
            f"/tokens/v1/token/{USDC_MINT}": {
                "address": USDC_MINT,
                "symbol": "USDC",
                "name": "USD Coin",
                "decimals": 6,
                "logoURI": "https://logo",
            },
        }
    )
    provider = JupiterProvider(http)  # type: ignore[arg-type]

    price = await provider.get_price(SOL_MINT)
    metadata = await provider.get_metadata(USDC_MINT)

    assert price.price == 149.5
    assert metadata.symbol == "USDC"
    assert metadata.decimals == 6
    assert metadata.logo_uri == "https://logo"
    assert metadata.source_id == "jupiter"
    assert provider.supports_historical is False


@pytest.mark.asyncio
async def test_jupiter_missing_price_is_no_data() -> None:
    provider = JupiterProvider(_StubHttp({"/price/v2": {"data": {SOL_MINT: None}}}))  # type: ignore[arg-type]

    with pytest.raises(PermanentProviderError) as exc_info:
        await provider.get_price(SOL_MINT)

    assert exc_info.value.error_code == ErrorCode.NO_DATA


@pytest.mark.asyncio
async def test_coingecko_maps_mint_to_coin_id() -> None:
    http = _StubHttp(
        {"/simple/price": {"solana": {"usd": 150.0, "last_updated_at": 1_700_000_000}}}
    )
    provider = CoinGeckoProvider(http)  # type: ignore[arg-type]

    result = await provider.get_price(SOL_MINT)

    assert result.price == 150.0
    assert result.observed_at == 1_700_000_000
    assert http.calls[0][1]["ids"] == "solana"


@pytest.mark.asyncio
async def test_coingecko_unknown_mint_is_unsupported() -> None:
    http = _StubHttp({})
    provider = CoinGeckoProvider(http)  # type: ignore[arg-type]

    with pytest.raises(UnsupportedAssetError):
        await provider.get_price(UNKNOWN_MINT)

    assert http.calls == []


@pytest.mark.asyncio
async def test_coingecko_historical_uses_utc_date() -> None:
    http = _StubHttp(
        {"/coins/solana/history": {"market_data": {"current_price": {"usd": 20.5}}}}
    )
    provider = CoinGeckoProvider(http)  # type: ignore[arg-type]

    # 2023-11-14T22:13:20Z
    result = await provider.get_historical_price(SOL_MINT, 1_700_000_000)

    assert result.price == 20.5
    assert http.calls[0][1]["date"] == "14-11-2023"


@pytest.mark.asyncio
async def test_cryptocompare_uses_symbol() -> None:
    http = _StubHttp({"/price": {"USD": 1.0002}})
    provider = CryptoCompareProvider(http)  # type: ignore[arg-type]

    result = await provider.get_price(USDC_MINT, symbol="usdc")

    assert result.price == 1.0002
    assert http.calls[0][1] == {"fsym": "USDC", "tsyms": "USD"}


@pytest.mark.asyncio
async def test_cryptocompare_without_symbol_is_unsupported() -> None:
    provider = CryptoCompareProvider(_StubHttp({}))  # type: ignore[arg-type]

    with pytest.raises(UnsupportedAssetError):
        await provider.get_price(UNKNOWN_MINT)


@pytest.mark.asyncio
async def test_cryptocompare_error_body_is_permanent() -> None:
    http = _StubHttp({"/pricehistorical": {"Response": "Error", "Message": "market does not exist"}})
    provider = CryptoCompareProvider(http)  # type: ignore[arg-type]

    with pytest.raises(PermanentProviderError) as exc_info:
        await provider.get_historical_price(UNKNOWN_MINT, 1_700_000_000, symbol="XYZ")

    assert "market does not exist" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unsupported_operations_raise() -> None:
    provider = JupiterProvider(_StubHttp({}))  # type: ignore[arg-type]

    with pytest.raises(UnsupportedAssetError):
        await provider.get_historical_price(SOL_MINT, 1_700_000_000)
