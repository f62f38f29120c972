from __future__ import annotations

from typing import Any

from pydantic import Field

from solfolio.core.dto.internal.price import ProviderPriceDomain, TokenMetadataDomain
from solfolio.core.dto.io._base import ProviderResponseDTO
from solfolio.infra.providers.base import PriceProvider

JUPITER_BASE_URL = "https://lite-api.jup.ag"


class _JupiterToken(ProviderResponseDTO):
    address: str
    symbol: str
    name: str = ""
    decimals: int = 0
    logo_uri: str | None = Field(None, alias="logoURI")


class JupiterProvider(PriceProvider):
    """Jupiter: 현재가(Price API v2) + 토큰 리스트 메타데이터. 과거가는 없음"""

    provider_id = "jupiter"
    supports_metadata = True

    async def get_price(self, address: str, *, symbol: str | None = None) -> ProviderPriceDomain:
        payload = await self._http.get_json("/price/v2", params={"ids": address})

        def _extract(p: Any) -> float | None:
            entry = (p.get("data") or {}).get(address) or {}
            raw = entry.get("price")
            return float(raw) if raw is not None else None

        price = self.parse(payload, _extract)
        if price is None:
            raise self.no_data(address, "price")
        return ProviderPriceDomain(price=price)

    async def get_metadata(self, address: str) -> TokenMetadataDomain:
        payload: Any = await self._http.get_json(f"/tokens/v1/token/{address}")
        if not payload:
            raise self.no_data(address, "metadata")
        token = self.parse(payload, _JupiterToken.model_validate)
        return TokenMetadataDomain(
            address=address,
            symbol=token.symbol,
            name=token.name or token.symbol,
            decimals=token.decimals,
            logo_uri=token.logo_uri,
            source_id=self.provider_id,
        )
