from __future__ import annotations

import asyncio
import contextlib
import copy
import threading
import time
import zlib
from typing import Any, Iterable

from solfolio.common.logger import PipelineLogger
from solfolio.common.serde import decode_snapshot_value, encode_snapshot_value
from solfolio.core.dto.internal.cache import CacheEntryDomain, CacheKeyBuilder
from solfolio.core.types import PERSISTED_NAMESPACES, Clock
from solfolio.infra.cache.snapshot_store import SnapshotStore

logger = PipelineLogger.get_logger("cache_store", "cache")


class TTLCacheStore:
    """키별 TTL을 갖는 인메모리 캐시 + 주기적 정리/스냅샷.

    - get: 없거나 만료(경과 >= ttl)면 None. 내부 오류도 None (fail-empty)
    - set: 무조건 덮어쓰기, written_at 갱신. None 저장은 삭제로 처리
    - 락 스트라이핑: 키 해시로 고른 스트라이프 락만 잡음
    - 값은 저장/조회 시 깊은 복사되어 호출자와 공유되지 않음
    """

    def __init__(
        self,
        *,
        snapshot_store: SnapshotStore | None = None,
        sweep_interval: float = 1800.0,
        snapshot_interval: float = 300.0,
        persist_namespaces: Iterable[str] = PERSISTED_NAMESPACES,
        lock_stripes: int = 64,
        clock: Clock = time.time,
    ) -> None:
        self._entries: dict[str, CacheEntryDomain] = {}
        self._stripes = [threading.Lock() for _ in range(max(1, lock_stripes))]
        self._snapshot_store = snapshot_store
        self._sweep_interval = sweep_interval
        self._snapshot_interval = snapshot_interval
        self._persist_namespaces = frozenset(persist_namespaces)
        self._clock = clock

        self._sweeper_task: asyncio.Task | None = None
        self._snapshot_task: asyncio.Task | None = None
        self._running = False

    # ------------------------------------------------------------------
    # 기본 연산
    # ------------------------------------------------------------------
    def _lock_for(self, key: str) -> threading.Lock:
        return self._stripes[zlib.crc32(key.encode()) % len(self._stripes)]

    def get(self, key: str) -> Any | None:
        try:
            with self._lock_for(key):
                entry = self._entries.get(key)
                if entry is None:
                    return None
                if entry.is_expired(self._clock()):
                    del self._entries[key]
                    return None
                return copy.deepcopy(entry.value)
        except (copy.Error, TypeError, RecursionError) as exc:
            logger.warning("캐시 조회 실패, miss로 처리", key=key, error=str(exc))
            return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        if value is None:
            self.delete(key)
            return
        try:
            stored = copy.deepcopy(value)
        except (copy.Error, TypeError, RecursionError) as exc:
            logger.warning("캐시 저장 실패, 쓰기 무시", key=key, error=str(exc))
            return
        entry = CacheEntryDomain(value=stored, written_at=self._clock(), ttl=float(ttl))
        with self._lock_for(key):
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock_for(key):
            self._entries.pop(key, None)

    def invalidate_expired(self) -> int:
        """만료된 엔트리를 모두 제거하고 제거 개수를 반환합니다."""
        now = self._clock()
        removed = 0
        for key in list(self._entries):
            with self._lock_for(key):
                entry = self._entries.get(key)
                if entry is not None and entry.is_expired(now):
                    del self._entries[key]
                    removed += 1
        if removed:
            logger.info("만료 캐시 정리", removed=removed, remaining=len(self._entries))
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    # ------------------------------------------------------------------
    # 스냅샷
    # ------------------------------------------------------------------
    def export_entries(self) -> dict[str, dict[str, Any]]:
        """영속 대상 네임스페이스의 유효 엔트리를 JSON 호환 dict로 변환"""
        now = self._clock()
        exported: dict[str, dict[str, Any]] = {}
        for key in list(self._entries):
            if CacheKeyBuilder.namespace_of(key) not in self._persist_namespaces:
                continue
            with self._lock_for(key):
                entry = self._entries.get(key)
                if entry is None or entry.is_expired(now):
                    continue
                try:
                    exported[key] = entry.to_snapshot(encode_snapshot_value(entry.value))
                except TypeError as exc:
                    logger.debug("스냅샷 불가 값 건너뜀", key=key, error=str(exc))
        return exported

    def import_entries(self, raw_entries: dict[str, Any]) -> int:
        """스냅샷 dict를 캐시에 적재. 이미 만료된 엔트리는 버림"""
        now = self._clock()
        loaded = 0
        for key, raw in raw_entries.items():
            try:
                entry = CacheEntryDomain(
                    value=decode_snapshot_value(raw["value"]),
                    written_at=float(raw["written_at"]),
                    ttl=float(raw["ttl"]),
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("손상된 스냅샷 엔트리 무시", key=key, error=str(exc))
                continue
            if entry.is_expired(now):
                continue
            with self._lock_for(key):
                self._entries[key] = entry
            loaded += 1
        return loaded

    async def load_snapshot(self) -> int:
        if self._snapshot_store is None:
            return 0
        raw_entries = await self._snapshot_store.load()
        loaded = self.import_entries(raw_entries)
        logger.info("캐시 스냅샷 로드", loaded=loaded, total=len(raw_entries))
        return loaded

    async def save_snapshot(self) -> int:
        if self._snapshot_store is None:
            return 0
        exported = self.export_entries()
        await self._snapshot_store.save(exported)
        logger.debug("캐시 스냅샷 저장", saved=len(exported))
        return len(exported)

    # ------------------------------------------------------------------
    # 라이프사이클
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """스냅샷 복원 후 정리/스냅샷 태스크 시작"""
        if self._running:
            return
        self._running = True
        try:
            await self.load_snapshot()
        except Exception as exc:
            # 스냅샷 백엔드 장애는 콜드 스타트로 처리
            logger.error("캐시 스냅샷 로드 실패, 콜드 스타트", error=str(exc), exc_info=True)

        self._sweeper_task = asyncio.create_task(self._sweep_loop(), name="cache-sweeper")
        if self._snapshot_store is not None:
            self._snapshot_task = asyncio.create_task(
                self._snapshot_loop(), name="cache-snapshot"
            )
        logger.info(
            "캐시 시작",
            sweep_interval=self._sweep_interval,
            snapshot=self._snapshot_store is not None,
        )

    async def stop(self) -> None:
        """태스크 중지 후 마지막 스냅샷 저장"""
        if not self._running:
            return
        self._running = False

        for task in (self._sweeper_task, self._snapshot_task):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._sweeper_task = None
        self._snapshot_task = None

        try:
            await self.save_snapshot()
        except Exception as exc:
            logger.error("종료 시 캐시 스냅샷 저장 실패", error=str(exc), exc_info=True)
        logger.info("캐시 중지")

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._sweep_interval)
            self.invalidate_expired()

    async def _snapshot_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._snapshot_interval)
            try:
                await self.save_snapshot()
            except Exception as exc:
                # 스냅샷은 best-effort: 실패해도 다음 주기에 재시도
                logger.warning("캐시 스냅샷 저장 실패", error=str(exc))
