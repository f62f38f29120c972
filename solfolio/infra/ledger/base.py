from __future__ import annotations

from abc import ABC, abstractmethod

from solfolio.core.dto.internal.ledger import (
    NativeBalanceDomain,
    ProgramAccountDomain,
    TokenBalanceDomain,
)


class LedgerQuery(ABC):
    """온체인 원장 조회 인터페이스 (수집기가 사용)"""

    @abstractmethod
    async def get_token_balances(self, owner: str) -> list[TokenBalanceDomain]: ...

    @abstractmethod
    async def get_native_balance(self, owner: str) -> NativeBalanceDomain: ...

    @abstractmethod
    async def get_program_positions(
        self, owner: str, program_id: str, *, owner_offset: int = 12
    ) -> list[ProgramAccountDomain]: ...

    async def close(self) -> None:
        return None
