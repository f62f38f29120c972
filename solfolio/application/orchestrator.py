"""
수집기 오케스트레이터

- 모든 수집기를 동시에 실행 (서로 독립)
- 수집기별 타임아웃 + 실패 격리: 실패는 리포트에만 남고 실행은 계속됨
- 모든 수집기가 settle된 뒤(fan-in 배리어) 스냅샷 조립
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Any, Sequence

from solfolio.application.collector_registry import CollectorRegistry
from solfolio.collectors.base import BaseCollector
from solfolio.common.exceptions.exception_rule import classify_exception
from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.cache import CacheKeyBuilder
from solfolio.core.dto.internal.orchestrator import (
    CollectorOutcomeDomain,
    PortfolioSnapshotDomain,
)
from solfolio.core.dto.io.position import PositionRecordDTO
from solfolio.core.types import Clock, CollectorStatus
from solfolio.infra.cache.cache_store import TTLCacheStore

logger = PipelineLogger.get_logger("orchestrator", "application")

CollectorRun = tuple[CollectorOutcomeDomain, list[PositionRecordDTO]]


class FetcherOrchestrator:
    """수집기 fan-out / fan-in 오케스트레이터"""

    def __init__(
        self,
        registry: CollectorRegistry,
        cache: TTLCacheStore | None = None,
        *,
        collector_timeout: float = 20.0,
        result_ttl: float = 300.0,
        clock: Clock = time.time,
        monotonic: Clock = time.monotonic,
    ) -> None:
        if collector_timeout <= 0:
            raise ValueError("collector_timeout must be positive")
        self._registry = registry
        self._cache = cache
        self._collector_timeout = collector_timeout
        self._result_ttl = result_ttl
        self._clock = clock
        self._monotonic = monotonic

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    async def run(
        self, collectors: Sequence[BaseCollector], owner: str
    ) -> PortfolioSnapshotDomain:
        """주어진 수집기들을 동시에 실행하고 스냅샷을 조립합니다."""
        ids = [c.collector_id for c in collectors]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate collector ids in run: {ids}")

        captured_at = self._clock()
        started = self._monotonic()
        logger.info("수집 시작", owner=owner, collectors=len(collectors))

        # 각 _run_one은 예외를 던지지 않음 → gather가 곧 fan-in 배리어
        runs: list[CollectorRun] = await asyncio.gather(
            *(self._run_one(collector, owner) for collector in collectors)
        )

        elements: list[PositionRecordDTO] = []
        report: dict[str, CollectorOutcomeDomain] = {}
        for outcome, items in runs:
            report[outcome.collector_id] = outcome
            if outcome.succeeded:
                elements.extend(items)

        total = sum(_element_value(e) for e in elements)
        duration_ms = (self._monotonic() - started) * 1000
        failed = sum(1 for o in report.values() if not o.succeeded)
        logger.info(
            "수집 완료",
            owner=owner,
            elements=len(elements),
            failed=failed,
            total_value_usd=round(total, 2),
            duration_ms=round(duration_ms, 1),
        )
        return PortfolioSnapshotDomain(
            owner=owner,
            captured_at=captured_at,
            total_value_usd=total,
            elements=tuple(elements),
            per_collector_report=report,
            duration_ms=duration_ms,
        )

    async def fetch_all(self, owner: str) -> PortfolioSnapshotDomain:
        return await self.run(self._registry.all(), owner)

    async def fetch_network(self, owner: str, network_id: str) -> PortfolioSnapshotDomain:
        return await self.run(self._registry.by_network(network_id), owner)

    async def fetch_one(self, collector_id: str, owner: str) -> list[PositionRecordDTO]:
        """단일 수집기 실행. 미등록 ID는 CollectorNotFoundError"""
        collector = self._registry.get(collector_id)
        outcome, items = await self._run_one(collector, owner)
        return items if outcome.succeeded else []

    def list_collectors(self) -> list[dict[str, Any]]:
        return self._registry.describe()

    async def _run_one(self, collector: BaseCollector, owner: str) -> CollectorRun:
        collector_id = collector.collector_id
        cache_key = CacheKeyBuilder.collector_result(collector_id, owner)
        started = self._monotonic()

        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return (
                    CollectorOutcomeDomain(
                        collector_id=collector_id,
                        status=CollectorStatus.SUCCESS,
                        duration_ms=(self._monotonic() - started) * 1000,
                        item_count=len(cached),
                        from_cache=True,
                    ),
                    list(cached),
                )

        try:
            items = await asyncio.wait_for(
                collector.execute(owner), timeout=self._collector_timeout
            )
        except asyncio.TimeoutError as exc:
            return self._failure(
                collector_id,
                started,
                exc,
                message=f"timed out after {self._collector_timeout}s",
            )
        except Exception as exc:
            return self._failure(collector_id, started, exc)

        items = list(items or [])
        duration_ms = (self._monotonic() - started) * 1000
        if items and self._cache is not None:
            self._cache.set(cache_key, items, self._result_ttl)
        logger.debug(
            "수집기 완료",
            collector_id=collector_id,
            count=len(items),
            duration_ms=round(duration_ms, 1),
        )
        return (
            CollectorOutcomeDomain(
                collector_id=collector_id,
                status=CollectorStatus.SUCCESS,
                duration_ms=duration_ms,
                item_count=len(items),
            ),
            items,
        )

    def _failure(
        self,
        collector_id: str,
        started: float,
        exc: BaseException,
        message: str | None = None,
    ) -> CollectorRun:
        _, code, _ = classify_exception(exc, "collector")
        error_message = message or f"{type(exc).__name__}: {exc}"
        logger.warning(
            "수집기 실패 (격리됨)",
            collector_id=collector_id,
            error=error_message,
            error_code=str(code),
        )
        return (
            CollectorOutcomeDomain(
                collector_id=collector_id,
                status=CollectorStatus.ERROR,
                duration_ms=(self._monotonic() - started) * 1000,
                error_message=error_message,
                error_code=str(code),
            ),
            [],
        )


def _element_value(element: PositionRecordDTO) -> float:
    value = element.value_usd
    return value if math.isfinite(value) else 0.0
