from __future__ import annotations

from typing import Any

from solfolio.application.price_engine import PriceResolutionEngine
from solfolio.collectors.base import BaseCollector, build_asset
from solfolio.core.dto.internal.ledger import LAMPORTS_PER_SOL, ProgramAccountDomain
from solfolio.core.dto.io.position import PositionRecordDTO
from solfolio.core.types import SOL_MINT, STAKE_PROGRAM_ID, PlatformType
from solfolio.infra.ledger.base import LedgerQuery

# 스테이크 계정 레이아웃: meta.authorized.staker=12, withdrawer=44
WITHDRAWER_OFFSET = 44


class NativeStakeCollector(BaseCollector):
    """네이티브 스테이크 계정 수집기 (owner가 출금 권한자인 계정)"""

    collector_id = "native-stake-solana"
    platform_id = "native-stake"
    platform_type = PlatformType.STAKING

    def __init__(
        self,
        ledger: LedgerQuery,
        engine: PriceResolutionEngine,
        owner_offset: int = WITHDRAWER_OFFSET,
    ) -> None:
        self._ledger = ledger
        self._engine = engine
        self._owner_offset = owner_offset

    async def _collect(self, owner: str) -> list[PositionRecordDTO]:
        accounts = await self._ledger.get_program_positions(
            owner, STAKE_PROGRAM_ID, owner_offset=self._owner_offset
        )
        accounts = [a for a in accounts if a.lamports > 0]
        if not accounts:
            return []

        sol_quote = await self._engine.get_current_price(SOL_MINT)
        records: list[PositionRecordDTO] = []
        for account in accounts:
            asset = build_asset(
                address=SOL_MINT,
                amount=account.lamports / LAMPORTS_PER_SOL,
                decimals=9,
                quote=sol_quote,
                symbol="SOL",
                name="Solana",
            )
            records.append(
                PositionRecordDTO(
                    network_id=self.network_id,
                    platform_id=self.platform_id,
                    type=self.platform_type,
                    label="Staked",
                    name="Native Stake",
                    value_usd=asset.value_usd,
                    assets=(asset,),
                    attributes=_delegation(account),
                    data={"stake_account": account.pubkey},
                )
            )
        return records


def _delegation(account: ProgramAccountDomain) -> dict[str, Any]:
    info = account.data.get("info") or {}
    delegation = (info.get("stake") or {}).get("delegation") or {}
    return {
        "state": account.data.get("type", "unknown"),
        "validator": delegation.get("voter"),
        "activation_epoch": delegation.get("activationEpoch"),
        "deactivation_epoch": delegation.get("deactivationEpoch"),
    }
