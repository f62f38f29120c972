from __future__ import annotations

from typing import Any

from solfolio.core.dto.internal.price import ProviderPriceDomain, TokenMetadataDomain
from solfolio.core.dto.io._base import ProviderResponseDTO
from solfolio.infra.providers.base import PriceProvider

BIRDEYE_BASE_URL = "https://public-api.birdeye.so"

# 과거 가격 조회 시 요청 구간(±1h)과 허용 오차(2h)
HISTORY_WINDOW_SECONDS = 3600
HISTORY_MAX_DISTANCE_SECONDS = 7200
HISTORY_RESOLUTION = "15m"


class _BirdeyePrice(ProviderResponseDTO):
    value: float
    updateUnixTime: float | None = None


class _BirdeyeHistoryItem(ProviderResponseDTO):
    unixTime: float
    value: float


class _BirdeyeMeta(ProviderResponseDTO):
    address: str | None = None
    symbol: str
    name: str = ""
    decimals: int = 0
    logo_uri: str | None = None


def birdeye_headers(api_key: str | None) -> dict[str, str]:
    headers = {"x-chain": "solana"}
    if api_key:
        headers["X-API-KEY"] = api_key
    return headers


class BirdeyeProvider(PriceProvider):
    """Birdeye: 현재가, 과거가(15분봉), 토큰 메타데이터"""

    provider_id = "birdeye"
    supports_historical = True
    supports_metadata = True

    async def get_price(self, address: str, *, symbol: str | None = None) -> ProviderPriceDomain:
        payload = await self._http.get_json("/defi/price", params={"address": address})
        data = self._data(payload, address, "price")
        parsed = self.parse(data, _BirdeyePrice.model_validate)
        return ProviderPriceDomain(price=parsed.value, observed_at=parsed.updateUnixTime)

    async def get_historical_price(
        self, address: str, timestamp: float, *, symbol: str | None = None
    ) -> ProviderPriceDomain:
        ts = int(timestamp)
        payload = await self._http.get_json(
            "/defi/history_price",
            params={
                "address": address,
                "address_type": "token",
                "type": HISTORY_RESOLUTION,
                "time_from": ts - HISTORY_WINDOW_SECONDS,
                "time_to": ts + HISTORY_WINDOW_SECONDS,
            },
        )
        data = self._data(payload, address, "historical price")
        items = self.parse(
            data, lambda d: [_BirdeyeHistoryItem.model_validate(i) for i in d.get("items") or []]
        )
        if not items:
            raise self.no_data(address, "historical price")

        closest = min(items, key=lambda item: abs(item.unixTime - ts))
        if abs(closest.unixTime - ts) > HISTORY_MAX_DISTANCE_SECONDS:
            raise self.no_data(address, "historical price")
        return ProviderPriceDomain(price=closest.value, observed_at=closest.unixTime)

    async def get_metadata(self, address: str) -> TokenMetadataDomain:
        payload = await self._http.get_json(
            "/defi/v3/token/meta-data/single", params={"address": address}
        )
        data = self._data(payload, address, "metadata")
        meta = self.parse(data, _BirdeyeMeta.model_validate)
        return TokenMetadataDomain(
            address=address,
            symbol=meta.symbol,
            name=meta.name or meta.symbol,
            decimals=meta.decimals,
            logo_uri=meta.logo_uri,
            source_id=self.provider_id,
        )

    def _data(self, payload: Any, address: str, what: str) -> Any:
        # {"success": true, "data": {...}} 형식
        if not isinstance(payload, dict) or not payload.get("success") or not payload.get("data"):
            raise self.no_data(address, what)
        return payload["data"]
