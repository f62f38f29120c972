"""도메인 공통 타입 정의 모듈 (Enum, 상수, 별칭)."""

from __future__ import annotations

from enum import StrEnum
from typing import Callable, Final, TypeAlias

# 시간 소스 (epoch seconds). 테스트에서 주입하여 sleep 없이 시간을 진행시킵니다.
Clock: TypeAlias = Callable[[], float]


class CircuitState(StrEnum):
    """서킷브레이커 상태"""

    CLOSED = "closed"  # 정상: 모든 요청 허용
    OPEN = "open"  # 차단: 리셋 윈도우 동안 요청 거부
    HALF_OPEN = "half_open"  # 회복 테스트: probe_ratio 중 1회만 허용


class CollectorStatus(StrEnum):
    """수집기 실행 결과 상태"""

    SUCCESS = "success"
    ERROR = "error"


class PlatformType(StrEnum):
    """포지션 플랫폼 분류"""

    WALLET = "wallet"
    STAKING = "staking"
    LIQUIDITY_POOL = "liquidity_pool"
    LENDING = "lending"
    FARMING = "farming"
    NFT = "nft"
    MULTIPLE = "multiple"


class CacheNamespace(StrEnum):
    """캐시 키 네임스페이스 (키 접두사)"""

    PRICE = "price"
    HISTORICAL = "historical"
    METADATA = "metadata"
    SYMBOL = "symbol"
    WALLET = "wallet"


SOLANA_NETWORK_ID: Final[str] = "solana"

# 스냅샷으로 영속화되는 네임스페이스 (수집기 결과는 제외)
PERSISTED_NAMESPACES: Final[tuple[str, ...]] = (
    CacheNamespace.PRICE.value,
    CacheNamespace.HISTORICAL.value,
    CacheNamespace.METADATA.value,
    CacheNamespace.SYMBOL.value,
)
