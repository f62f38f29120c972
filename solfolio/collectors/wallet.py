from __future__ import annotations

import asyncio
from typing import Any, Iterable

from solfolio.application.price_engine import PriceResolutionEngine
from solfolio.collectors.base import BaseCollector, build_asset
from solfolio.common.exceptions.base import ProviderError
from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.ledger import NativeBalanceDomain, TokenBalanceDomain
from solfolio.core.dto.io.position import AssetDTO, PositionRecordDTO
from solfolio.core.types import SOL_MINT, PlatformType
from solfolio.infra.ledger.base import LedgerQuery

logger = PipelineLogger.get_logger("wallet_collector", "collectors")


class WalletCollector(BaseCollector):
    """지갑 잔고 (SOL + SPL 토큰) 수집기"""

    collector_id = "wallet-solana"
    platform_id = "wallet"
    platform_type = PlatformType.MULTIPLE

    def __init__(
        self,
        ledger: LedgerQuery,
        engine: PriceResolutionEngine,
        exclude_mints: Iterable[str] = (),
    ) -> None:
        self._ledger = ledger
        self._engine = engine
        # 다른 수집기가 담당하는 민트 (이중 계산 방지)
        self._exclude_mints = frozenset(exclude_mints)

    async def _collect(self, owner: str) -> list[PositionRecordDTO]:
        native_result, tokens_result = await asyncio.gather(
            self._ledger.get_native_balance(owner),
            self._ledger.get_token_balances(owner),
            return_exceptions=True,
        )
        if isinstance(native_result, BaseException) and isinstance(tokens_result, BaseException):
            raise native_result

        native = self._unwrap(native_result, NativeBalanceDomain(lamports=0), owner, "native")
        tokens: list[TokenBalanceDomain] = self._unwrap(tokens_result, [], owner, "tokens")
        tokens = [
            t for t in tokens if t.amount > 0 and t.mint not in self._exclude_mints
        ]

        addresses = [SOL_MINT, *(t.mint for t in tokens)]
        quotes = await self._engine.get_batch_prices(addresses)
        metadata = await asyncio.gather(
            *(self._engine.get_token_metadata(t.mint) for t in tokens)
        )

        assets: list[AssetDTO] = []
        if native.lamports > 0:
            assets.append(
                build_asset(
                    address=SOL_MINT,
                    amount=native.sol,
                    decimals=9,
                    quote=quotes.get(SOL_MINT),
                    symbol="SOL",
                    name="Solana",
                )
            )
        for token, meta in zip(tokens, metadata):
            assets.append(
                build_asset(
                    address=token.mint,
                    amount=token.amount,
                    decimals=token.decimals,
                    quote=quotes.get(token.mint),
                    symbol=meta.symbol,
                    name=meta.name,
                )
            )

        if not assets:
            return []

        assets.sort(key=lambda a: a.value_usd, reverse=True)
        return [
            PositionRecordDTO(
                network_id=self.network_id,
                platform_id=self.platform_id,
                type=self.platform_type,
                label="Wallet",
                name="Wallet",
                value_usd=sum(a.value_usd for a in assets),
                assets=tuple(assets),
                attributes={"token_count": len(tokens)},
            )
        ]

    def _unwrap(self, result: Any, default: Any, owner: str, part: str) -> Any:
        if isinstance(result, ProviderError):
            logger.warning("지갑 부분 조회 실패", owner=owner, part=part, error=str(result))
            return default
        if isinstance(result, BaseException):
            raise result
        return result
