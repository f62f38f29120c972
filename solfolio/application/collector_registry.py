"""
수집기 레지스트리

FetcherOrchestrator에서 수집기 목록 관리 책임을 분리합니다.
"""

from __future__ import annotations

from typing import Any, Iterable

from solfolio.collectors.base import BaseCollector
from solfolio.common.exceptions.base import CollectorNotFoundError
from solfolio.common.logger import PipelineLogger

logger = PipelineLogger.get_logger("collector_registry", "application")


class CollectorRegistry:
    """수집기 ID → 수집기 (등록 순서 유지, 중복 ID 금지)"""

    def __init__(self, collectors: Iterable[BaseCollector] = ()) -> None:
        self._collectors: dict[str, BaseCollector] = {}
        for collector in collectors:
            self.register(collector)

    def register(self, collector: BaseCollector) -> None:
        if collector.collector_id in self._collectors:
            raise ValueError(f"duplicate collector id: {collector.collector_id}")
        self._collectors[collector.collector_id] = collector
        logger.info(
            "수집기 등록",
            collector_id=collector.collector_id,
            platform_id=collector.platform_id,
        )

    def unregister(self, collector_id: str) -> BaseCollector | None:
        return self._collectors.pop(collector_id, None)

    def get(self, collector_id: str) -> BaseCollector:
        collector = self._collectors.get(collector_id)
        if collector is None:
            raise CollectorNotFoundError(collector_id)
        return collector

    def by_network(self, network_id: str) -> list[BaseCollector]:
        return [c for c in self._collectors.values() if c.network_id == network_id]

    def all(self) -> list[BaseCollector]:
        return list(self._collectors.values())

    def describe(self) -> list[dict[str, Any]]:
        return [c.describe() for c in self._collectors.values()]

    def __len__(self) -> int:
        return len(self._collectors)

    def __contains__(self, collector_id: str) -> bool:
        return collector_id in self._collectors
