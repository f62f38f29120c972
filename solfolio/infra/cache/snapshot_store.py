"""캐시 스냅샷 백엔드 (파일 / Redis).

스냅샷 형식은 평면 JSON 객체입니다:
    {"<key>": {"value": <encoded>, "written_at": <epoch>, "ttl": <seconds>}, ...}
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import orjson

from solfolio.common.logger import PipelineLogger
from solfolio.common.serde import to_bytes
from solfolio.infra.cache.cache_client import RedisConnectionManager

logger = PipelineLogger.get_logger("snapshot_store", "cache")


class SnapshotStore(ABC):
    """캐시 스냅샷 저장소 인터페이스"""

    @abstractmethod
    async def load(self) -> dict[str, Any]:
        """스냅샷 로드. 없거나 읽을 수 없으면 빈 dict (콜드 스타트)"""

    @abstractmethod
    async def save(self, entries: dict[str, Any]) -> None:
        """스냅샷 전체 교체 저장"""


class FileSnapshotStore(SnapshotStore):
    """로컬 JSON 파일 스냅샷 (원자적 교체 저장)"""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, entries: dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_sync, entries)

    def _load_sync(self) -> dict[str, Any]:
        if not self._path.exists():
            logger.info("스냅샷 파일 없음, 콜드 스타트", path=str(self._path))
            return {}
        try:
            data = orjson.loads(self._path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.error("스냅샷 파일 읽기 실패, 콜드 스타트", path=str(self._path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            logger.error("스냅샷 형식 오류, 콜드 스타트", path=str(self._path))
            return {}
        return data

    def _save_sync(self, entries: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_bytes(to_bytes(entries, indent=True))
        os.replace(tmp_path, self._path)


class RedisSnapshotStore(SnapshotStore):
    """Redis 단일 키 스냅샷 (여러 인스턴스가 같은 웜 캐시로 시작할 때 사용)"""

    def __init__(
        self, manager: RedisConnectionManager, key: str = "solfolio:cache:snapshot"
    ) -> None:
        self._manager = manager
        self._key = key

    async def load(self) -> dict[str, Any]:
        raw = await self._manager.client.get(self._key)
        if raw is None:
            logger.info("Redis 스냅샷 없음, 콜드 스타트", key=self._key)
            return {}
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            logger.error("Redis 스냅샷 디코딩 실패, 콜드 스타트", key=self._key, error=str(exc))
            return {}
        return data if isinstance(data, dict) else {}

    async def save(self, entries: dict[str, Any]) -> None:
        await self._manager.client.set(self._key, to_bytes(entries))
