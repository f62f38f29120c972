from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from solfolio.core.types import CacheNamespace


@dataclass(slots=True, repr=False, eq=False, match_args=False, kw_only=True)
class CacheEntryDomain:
    """캐시 엔트리. value는 캐시가 소유하며 입출력 시 깊은 복사됩니다."""

    value: Any
    written_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        # 경과 시간이 ttl 이상이면 만료 (경계값 포함)
        return now - self.written_at >= self.ttl

    def to_snapshot(self, encoded_value: Any) -> dict[str, Any]:
        return {"value": encoded_value, "written_at": self.written_at, "ttl": self.ttl}


class CacheKeyBuilder:
    """네임스페이스별 캐시 키 빌더."""

    @staticmethod
    def namespace_of(key: str) -> str:
        return key.split(":", 1)[0]

    @staticmethod
    def current_price(address: str, now: float, bucket_seconds: float) -> str:
        # 같은 시간 버킷 안에서는 동일 키 → 버킷이 바뀌면 자연스럽게 새 키
        bucket = math.floor(now / bucket_seconds) if bucket_seconds > 0 else int(now)
        return f"{CacheNamespace.PRICE}:{address}:{bucket}"

    @staticmethod
    def historical_price(address: str, timestamp: float) -> str:
        return f"{CacheNamespace.HISTORICAL}:{address}:{int(timestamp)}"

    @staticmethod
    def metadata(address: str) -> str:
        return f"{CacheNamespace.METADATA}:{address}"

    @staticmethod
    def symbol(address: str) -> str:
        return f"{CacheNamespace.SYMBOL}:{address}"

    @staticmethod
    def collector_result(collector_id: str, owner: str) -> str:
        return f"{CacheNamespace.WALLET}:{collector_id}:{owner}"
