from __future__ import annotations

import asyncio
from typing import Iterable

from solfolio.application.price_engine import PriceResolutionEngine
from solfolio.common.logger import PipelineLogger
from solfolio.core.types import POPULAR_TOKENS

logger = PipelineLogger.get_logger("price_refresher", "application")


class PriceRefresher:
    """인기 토큰 현재가를 주기적으로 해석해 캐시를 데워두는 스케줄 태스크"""

    def __init__(
        self,
        engine: PriceResolutionEngine,
        addresses: Iterable[str] = POPULAR_TOKENS,
        *,
        interval: float = 600.0,
        initial_delay: float = 1.0,
    ) -> None:
        self._engine = engine
        self._addresses = list(dict.fromkeys(addresses))
        self._interval = interval
        self._initial_delay = initial_delay
        self._task: asyncio.Task | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        if self._is_running:
            return
        self._is_running = True
        self._task = asyncio.create_task(self._refresh_loop(), name="price-refresher")
        logger.info(
            "인기 토큰 가격 갱신 시작", tokens=len(self._addresses), interval=self._interval
        )

    async def stop(self) -> None:
        self._is_running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("인기 토큰 가격 갱신 중지")

    async def refresh_once(self) -> int:
        """모든 인기 토큰을 한 번 해석하고 성공 개수를 반환"""
        results = await asyncio.gather(
            *(self._engine.get_current_price(address) for address in self._addresses),
            return_exceptions=True,
        )
        succeeded = 0
        for address, result in zip(self._addresses, results):
            if isinstance(result, BaseException):
                logger.error("인기 토큰 가격 갱신 오류", address=address, error=str(result))
            elif result is not None:
                succeeded += 1
        logger.info("인기 토큰 가격 갱신 완료", succeeded=succeeded, total=len(self._addresses))
        return succeeded

    async def _refresh_loop(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while self._is_running:
            try:
                await self.refresh_once()
            except Exception as exc:
                logger.error("가격 갱신 루프 오류", error=str(exc), exc_info=True)
            await asyncio.sleep(self._interval)
