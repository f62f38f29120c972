from __future__ import annotations

from dataclasses import dataclass

PLACEHOLDER_SOURCE = "none"


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class ProviderPriceDomain:
    """공급자 어댑터가 정규화해 반환하는 가격 응답.

    - observed_at이 없으면 엔진이 호출 시각으로 채웁니다.
    """

    price: float
    observed_at: float | None = None
    confidence: float = 1.0


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class PriceQuoteDomain:
    """해석된 가격 견적(불변).

    - 공급자 호출 성공, 스테이블코인 페그, 근사 폴백 중 하나로 생성됩니다.
    - is_approximate=True이면 정확한 시점 가격이 아니라는 뜻입니다.
    """

    address: str
    price_usd: float
    confidence: float
    source_id: str
    observed_at: float
    is_approximate: bool = False
    symbol: str | None = None

    def to_dict(self) -> dict[str, str | float | bool | None]:
        return {
            "address": self.address,
            "price_usd": self.price_usd,
            "confidence": self.confidence,
            "source_id": self.source_id,
            "observed_at": self.observed_at,
            "is_approximate": self.is_approximate,
            "symbol": self.symbol,
        }


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class TokenMetadataDomain:
    """토큰 메타데이터. source_id == "none"이면 플레이스홀더."""

    address: str
    symbol: str
    name: str
    decimals: int
    source_id: str
    logo_uri: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.source_id == PLACEHOLDER_SOURCE

    @classmethod
    def placeholder(cls, address: str) -> TokenMetadataDomain:
        """모든 메타데이터 공급자가 실패했을 때의 기본값."""
        short = f"{address[:4]}...{address[-4:]}" if len(address) > 8 else address
        return cls(
            address=address,
            symbol="UNKNOWN",
            name=f"Token {short}",
            decimals=0,
            source_id=PLACEHOLDER_SOURCE,
        )

