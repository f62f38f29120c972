"""수집기(Collector) 공통 베이스.

수집기는 한 플랫폼의 온체인 포지션을 PositionRecordDTO 리스트로 매핑하는 얇은 어댑터입니다.
execute()는 경계 밖으로 예외를 전파하지 않고, 내부 오류는 로그 후 빈 리스트로 매핑합니다.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.price import PriceQuoteDomain
from solfolio.core.dto.io.position import AssetDTO, PositionRecordDTO
from solfolio.core.types import SOLANA_NETWORK_ID, PlatformType

logger = PipelineLogger.get_logger("collector", "collectors")


class BaseCollector(ABC):
    collector_id: str = ""
    network_id: str = SOLANA_NETWORK_ID
    platform_id: str = ""
    platform_type: PlatformType = PlatformType.WALLET

    async def execute(self, owner: str) -> list[PositionRecordDTO]:
        try:
            return await self._collect(owner)
        except Exception as exc:
            logger.error(
                "수집기 실행 실패, 빈 결과 반환",
                collector_id=self.collector_id,
                owner=owner,
                error=f"{type(exc).__name__}: {exc}",
            )
            return []

    @abstractmethod
    async def _collect(self, owner: str) -> list[PositionRecordDTO]: ...

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.collector_id,
            "network_id": self.network_id,
            "platform_id": self.platform_id,
            "platform_type": str(self.platform_type),
        }


def build_asset(
    *,
    address: str,
    amount: float,
    decimals: int,
    quote: PriceQuoteDomain | None,
    symbol: str = "UNKNOWN",
    name: str = "",
) -> AssetDTO:
    """수량 + 가격 견적 → 자산 DTO. 가격이 없으면 가치 0"""
    price = quote.price_usd if quote else None
    return AssetDTO(
        address=address,
        symbol=symbol,
        name=name or symbol,
        amount=max(0.0, amount),
        decimals=decimals,
        price_usd=price,
        value_usd=max(0.0, amount * price) if price is not None else 0.0,
        price_source=quote.source_id if quote else None,
        is_price_approximate=quote.is_approximate if quote else False,
    )
