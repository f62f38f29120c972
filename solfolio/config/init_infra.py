from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping, Sequence

import aiohttp

from solfolio.application.price_engine import PriceResolutionEngine
from solfolio.application.price_refresher import PriceRefresher
from solfolio.common.logger import PipelineLogger
from solfolio.config.settings import CacheSettings, PriceSettings, RedisSettings
from solfolio.infra.cache.cache_client import RedisConnectionManager
from solfolio.infra.cache.cache_store import TTLCacheStore
from solfolio.infra.cache.snapshot_store import (
    FileSnapshotStore,
    RedisSnapshotStore,
    SnapshotStore,
)
from solfolio.infra.http.http_client import build_client_session
from solfolio.infra.providers.base import PriceProvider

logger = PipelineLogger.get_logger("init_infra", "config")


@asynccontextmanager
async def init_redis(
    settings: RedisSettings, cache_settings: CacheSettings
) -> AsyncIterator[RedisConnectionManager | None]:
    """Redis 초기화 및 정리 (스냅샷 백엔드가 redis일 때만 연결)"""
    if cache_settings.snapshot_backend != "redis":
        yield None
        return
    manager = RedisConnectionManager(settings.url, socket_timeout=settings.connection_timeout)
    await manager.initialize()
    yield manager
    await manager.close()


@asynccontextmanager
async def init_http_session(timeout: float) -> AsyncIterator[aiohttp.ClientSession]:
    """공급자/RPC가 공유하는 aiohttp 세션"""
    session = build_client_session(timeout=timeout)
    yield session
    await session.close()


def build_snapshot_store(
    settings: CacheSettings, redis_manager: RedisConnectionManager | None
) -> SnapshotStore | None:
    if settings.snapshot_backend == "file":
        return FileSnapshotStore(settings.snapshot_path)
    if settings.snapshot_backend == "redis" and redis_manager is not None:
        return RedisSnapshotStore(redis_manager, key=settings.snapshot_redis_key)
    return None


@asynccontextmanager
async def init_cache(
    settings: CacheSettings, snapshot_store: SnapshotStore | None
) -> AsyncIterator[TTLCacheStore]:
    """캐시 시작(스냅샷 복원 + 정리 태스크) 및 종료(최종 스냅샷)"""
    cache = TTLCacheStore(
        snapshot_store=snapshot_store,
        sweep_interval=settings.sweep_interval_sec,
        snapshot_interval=settings.snapshot_interval_sec,
        lock_stripes=settings.lock_stripes,
    )
    await cache.start()
    yield cache
    await cache.stop()


@asynccontextmanager
async def init_price_refresher(
    engine: PriceResolutionEngine, settings: PriceSettings
) -> AsyncIterator[PriceRefresher]:
    """인기 토큰 가격 갱신 태스크"""
    refresher = PriceRefresher(
        engine,
        settings.popular_tokens,
        interval=settings.refresh_interval_sec,
        initial_delay=settings.refresh_initial_delay_sec,
    )
    if settings.refresh_enabled:
        await refresher.start()
    yield refresher
    await refresher.stop()


def select_providers(
    order: Sequence[str], available: Mapping[str, PriceProvider]
) -> list[PriceProvider]:
    """설정된 우선순위대로 공급자 목록 구성. 모르는 ID는 경고 후 무시"""
    selected: list[PriceProvider] = []
    for provider_id in order:
        provider = available.get(provider_id)
        if provider is None:
            logger.warning("알 수 없는 가격 공급자 ID 무시", provider_id=provider_id)
            continue
        selected.append(provider)
    return selected
