from __future__ import annotations

from typing import Any

from solfolio.common.exceptions.base import PermanentProviderError
from solfolio.core.dto.internal.price import ProviderPriceDomain
from solfolio.core.types import ErrorCode
from solfolio.infra.providers.base import PriceProvider

CRYPTOCOMPARE_BASE_URL = "https://min-api.cryptocompare.com/data"


def cryptocompare_headers(api_key: str | None) -> dict[str, str]:
    return {"authorization": f"Apikey {api_key}"} if api_key else {}


class CryptoCompareProvider(PriceProvider):
    """CryptoCompare: 심볼 기반 조회 (민트 주소를 모름)"""

    provider_id = "cryptocompare"
    supports_historical = True
    keyed_by_symbol = True

    async def get_price(self, address: str, *, symbol: str | None = None) -> ProviderPriceDomain:
        fsym = self._require_symbol(address, symbol)
        payload = await self._http.get_json("/price", params={"fsym": fsym, "tsyms": "USD"})
        self._raise_on_error(payload, address)
        usd = self.parse(payload, lambda p: p.get("USD"))
        if usd is None:
            raise self.no_data(address, "price")
        return ProviderPriceDomain(price=float(usd))

    async def get_historical_price(
        self, address: str, timestamp: float, *, symbol: str | None = None
    ) -> ProviderPriceDomain:
        fsym = self._require_symbol(address, symbol)
        payload = await self._http.get_json(
            "/pricehistorical", params={"fsym": fsym, "tsyms": "USD", "ts": int(timestamp)}
        )
        self._raise_on_error(payload, address)
        usd = self.parse(payload, lambda p: (p.get(fsym) or {}).get("USD"))
        # 존재하지 않는 시점은 0을 돌려주므로 가격 없음으로 취급
        if not usd:
            raise self.no_data(address, "historical price")
        return ProviderPriceDomain(price=float(usd), observed_at=timestamp)

    def _require_symbol(self, address: str, symbol: str | None) -> str:
        if not symbol:
            raise self.unsupported(address, "symbol")
        return symbol.upper()

    def _raise_on_error(self, payload: Any, address: str) -> None:
        if isinstance(payload, dict) and payload.get("Response") == "Error":
            raise PermanentProviderError(
                provider_id=self.provider_id,
                message=str(payload.get("Message") or f"error response for {address}"),
                error_code=ErrorCode.BAD_REQUEST,
            )
