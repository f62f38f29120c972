from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from solfolio.application.price_engine import PriceResolutionEngine
from solfolio.collectors.base import BaseCollector, build_asset
from solfolio.core.dto.io.position import PositionRecordDTO
from solfolio.core.types import BSOL_MINT, JITOSOL_MINT, MSOL_MINT, PlatformType
from solfolio.infra.ledger.base import LedgerQuery


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class LiquidStakingTokenDomain:
    """유동 스테이킹 토큰(LST) 정의"""

    mint: str
    symbol: str
    platform_id: str
    label: str


DEFAULT_LIQUID_STAKING_TOKENS: dict[str, LiquidStakingTokenDomain] = {
    MSOL_MINT: LiquidStakingTokenDomain(
        mint=MSOL_MINT, symbol="mSOL", platform_id="marinade", label="Marinade Staked SOL"
    ),
    JITOSOL_MINT: LiquidStakingTokenDomain(
        mint=JITOSOL_MINT, symbol="JitoSOL", platform_id="jito", label="Jito Staked SOL"
    ),
    BSOL_MINT: LiquidStakingTokenDomain(
        mint=BSOL_MINT, symbol="bSOL", platform_id="blazestake", label="BlazeStake Staked SOL"
    ),
}


class LiquidStakingCollector(BaseCollector):
    """LST 보유량 수집기 (Marinade, Jito, BlazeStake)"""

    collector_id = "liquid-staking-solana"
    platform_id = "liquid-staking"
    platform_type = PlatformType.STAKING

    def __init__(
        self,
        ledger: LedgerQuery,
        engine: PriceResolutionEngine,
        tokens: Mapping[str, LiquidStakingTokenDomain] | None = None,
    ) -> None:
        self._ledger = ledger
        self._engine = engine
        self._tokens = dict(DEFAULT_LIQUID_STAKING_TOKENS if tokens is None else tokens)

    @property
    def mints(self) -> frozenset[str]:
        return frozenset(self._tokens)

    async def _collect(self, owner: str) -> list[PositionRecordDTO]:
        balances = [
            b
            for b in await self._ledger.get_token_balances(owner)
            if b.mint in self._tokens and b.amount > 0
        ]
        if not balances:
            return []

        quotes = await self._engine.get_batch_prices(b.mint for b in balances)
        records: list[PositionRecordDTO] = []
        for balance in balances:
            token = self._tokens[balance.mint]
            asset = build_asset(
                address=balance.mint,
                amount=balance.amount,
                decimals=balance.decimals,
                quote=quotes.get(balance.mint),
                symbol=token.symbol,
                name=token.label,
            )
            records.append(
                PositionRecordDTO(
                    network_id=self.network_id,
                    platform_id=token.platform_id,
                    type=self.platform_type,
                    label="Liquid Staking",
                    name=token.label,
                    value_usd=asset.value_usd,
                    assets=(asset,),
                    data={"account": balance.account},
                )
            )
        return records
