"""가격/메타데이터 공급자 어댑터 인터페이스.

어댑터는 공급자별 응답 형식을 경계에서 정규화하여
ProviderPriceDomain / TokenMetadataDomain만 반환하고,
실패는 항상 ProviderError 계층으로 올립니다.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Callable, TypeVar

from solfolio.common.exceptions.base import PermanentProviderError, UnsupportedAssetError
from solfolio.core.dto.internal.price import ProviderPriceDomain, TokenMetadataDomain
from solfolio.core.types import PARSE_EXCEPTIONS, ErrorCode
from solfolio.infra.http.http_client import ProviderHttpClient

T = TypeVar("T")


class PriceProvider(ABC):
    """가격 공급자 공통 베이스

    capability 플래그가 False인 연산은 엔진이 호출하지 않습니다.
    keyed_by_symbol=True인 공급자는 민트 주소 대신 심볼로 조회합니다.
    """

    provider_id: str = ""
    supports_price: bool = True
    supports_historical: bool = False
    supports_metadata: bool = False
    keyed_by_symbol: bool = False

    def __init__(self, http: ProviderHttpClient) -> None:
        self._http = http

    async def get_price(self, address: str, *, symbol: str | None = None) -> ProviderPriceDomain:
        raise self.unsupported(address, "current price")

    async def get_historical_price(
        self, address: str, timestamp: float, *, symbol: str | None = None
    ) -> ProviderPriceDomain:
        raise self.unsupported(address, "historical price")

    async def get_metadata(self, address: str) -> TokenMetadataDomain:
        raise self.unsupported(address, "metadata")

    async def close(self) -> None:
        await self._http.close()

    def unsupported(self, address: str, what: str) -> UnsupportedAssetError:
        return UnsupportedAssetError(
            provider_id=self.provider_id, message=f"{what} not available for {address}"
        )

    def no_data(self, address: str, what: str) -> PermanentProviderError:
        return PermanentProviderError(
            provider_id=self.provider_id,
            message=f"no {what} data for {address}",
            error_code=ErrorCode.NO_DATA,
        )

    def parse(self, payload: Any, parser: Callable[[Any], T]) -> T:
        """응답 파싱. 형식 오류는 INVALID_RESPONSE 영구 오류로 변환"""
        try:
            return parser(payload)
        except PermanentProviderError:
            raise
        except PARSE_EXCEPTIONS as exc:
            raise PermanentProviderError(
                provider_id=self.provider_id,
                message=f"unexpected response shape: {type(exc).__name__}: {exc}",
                error_code=ErrorCode.INVALID_RESPONSE,
                original_exception=exc,
            ) from exc
