from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

LAMPORTS_PER_SOL = 1_000_000_000


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class TokenBalanceDomain:
    """SPL 토큰 계정 잔고."""

    account: str
    mint: str
    amount: float  # UI 단위 (decimals 반영)
    decimals: int
    raw_amount: str


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class NativeBalanceDomain:
    lamports: int

    @property
    def sol(self) -> float:
        return self.lamports / LAMPORTS_PER_SOL


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class ProgramAccountDomain:
    """프로그램 소유 계정 (jsonParsed data 포함)."""

    pubkey: str
    lamports: int
    data: dict[str, Any] = field(default_factory=dict)
