from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from solfolio.core.dto.internal.price import ProviderPriceDomain, TokenMetadataDomain
from solfolio.core.types import BONK_MINT, JITOSOL_MINT, MSOL_MINT, SOL_MINT, USDC_MINT, USDT_MINT
from solfolio.infra.http.http_client import ProviderHttpClient
from solfolio.infra.providers.base import PriceProvider

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

# Solana 민트 주소 → CoinGecko 코인 ID
DEFAULT_COIN_IDS: dict[str, str] = {
    SOL_MINT: "solana",
    USDC_MINT: "usd-coin",
    USDT_MINT: "tether",
    MSOL_MINT: "msol",
    BONK_MINT: "bonk",
    JITOSOL_MINT: "jito-staked-sol",
}


def coingecko_base_url(api_key: str | None) -> str:
    return COINGECKO_PRO_BASE_URL if api_key else COINGECKO_BASE_URL


def coingecko_headers(api_key: str | None) -> dict[str, str]:
    return {"x-cg-pro-api-key": api_key} if api_key else {}


class CoinGeckoProvider(PriceProvider):
    """CoinGecko: 주소→코인ID 매핑이 있는 토큰만 지원"""

    provider_id = "coingecko"
    supports_historical = True
    supports_metadata = True

    def __init__(
        self, http: ProviderHttpClient, coin_ids: Mapping[str, str] | None = None
    ) -> None:
        super().__init__(http)
        self._coin_ids = {**DEFAULT_COIN_IDS, **(coin_ids or {})}

    def coin_id(self, address: str) -> str:
        coin_id = self._coin_ids.get(address)
        if coin_id is None:
            raise self.unsupported(address, "coingecko id")
        return coin_id

    async def get_price(self, address: str, *, symbol: str | None = None) -> ProviderPriceDomain:
        coin_id = self.coin_id(address)
        payload = await self._http.get_json(
            "/simple/price",
            params={"ids": coin_id, "vs_currencies": "usd", "include_last_updated_at": "true"},
        )

        def _extract(p: Any) -> ProviderPriceDomain | None:
            entry = p.get(coin_id) or {}
            if entry.get("usd") is None:
                return None
            return ProviderPriceDomain(
                price=float(entry["usd"]), observed_at=entry.get("last_updated_at")
            )

        quote = self.parse(payload, _extract)
        if quote is None:
            raise self.no_data(address, "price")
        return quote

    async def get_historical_price(
        self, address: str, timestamp: float, *, symbol: str | None = None
    ) -> ProviderPriceDomain:
        coin_id = self.coin_id(address)
        # CoinGecko history API는 일 단위 (dd-mm-yyyy, UTC 00:00 기준)
        date = datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%d-%m-%Y")
        payload = await self._http.get_json(
            f"/coins/{coin_id}/history", params={"date": date, "localization": "false"}
        )

        def _extract(p: Any) -> float | None:
            market_data = p.get("market_data") or {}
            return (market_data.get("current_price") or {}).get("usd")

        price = self.parse(payload, _extract)
        if price is None:
            raise self.no_data(address, "historical price")
        return ProviderPriceDomain(price=float(price), observed_at=timestamp)

    async def get_metadata(self, address: str) -> TokenMetadataDomain:
        coin_id = self.coin_id(address)
        payload = await self._http.get_json(
            f"/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "false",
                "community_data": "false",
                "developer_data": "false",
            },
        )

        def _extract(p: Any) -> TokenMetadataDomain:
            platform = (p.get("detail_platforms") or {}).get("solana") or {}
            return TokenMetadataDomain(
                address=address,
                symbol=str(p["symbol"]).upper(),
                name=p.get("name") or p["symbol"],
                decimals=int(platform.get("decimal_place") or 0),
                logo_uri=(p.get("image") or {}).get("small"),
                source_id=self.provider_id,
            )

        return self.parse(payload, _extract)
