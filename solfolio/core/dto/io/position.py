"""수집기가 만들어내는 포지션 레코드 DTO."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from solfolio.core.dto.io._base import BaseIOModelDTO
from solfolio.core.types import PlatformType


class AssetDTO(BaseIOModelDTO):
    """포지션을 구성하는 개별 자산."""

    address: str = Field(..., description="토큰 민트 주소")
    symbol: str = Field("UNKNOWN", description="토큰 심볼")
    name: str = Field("", description="토큰 이름")
    amount: float = Field(..., ge=0, description="UI 단위 수량")
    decimals: int = Field(0, ge=0)
    price_usd: float | None = Field(None, ge=0, description="단가 (없으면 미해석)")
    value_usd: float = Field(0.0, ge=0)
    price_source: str | None = None
    is_price_approximate: bool = False


class PositionRecordDTO(BaseIOModelDTO):
    """포트폴리오 요소 하나. 코어는 value_usd만 합산합니다."""

    network_id: str
    platform_id: str
    type: PlatformType
    label: str
    name: str = ""
    value_usd: float = Field(0.0, ge=0)
    assets: tuple[AssetDTO, ...] = ()
    attributes: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)
