from __future__ import annotations

from pathlib import Path

import pytest

from solfolio.config.init_infra import (
    build_snapshot_store,
    init_cache,
    init_price_refresher,
    init_redis,
    select_providers,
)
from solfolio.config.settings import CacheSettings, PriceSettings, RedisSettings
from solfolio.infra.cache.cache_store import TTLCacheStore
from solfolio.infra.cache.snapshot_store import FileSnapshotStore
from tests.factory_builders import FakeProvider


def test_select_providers_follows_order_and_skips_unknown() -> None:
    available = {
        "birdeye": FakeProvider("birdeye", price=1.0),
        "jupiter": FakeProvider("jupiter", price=1.0),
    }

    selected = select_providers(["jupiter", "nope", "birdeye"], available)

    assert [p.provider_id for p in selected] == ["jupiter", "birdeye"]


def test_build_snapshot_store_by_backend(tmp_path: Path) -> None:
    file_settings = CacheSettings(snapshot_backend="file", snapshot_path=str(tmp_path / "s.json"))
    none_settings = CacheSettings(snapshot_backend="none")

    assert isinstance(build_snapshot_store(file_settings, None), FileSnapshotStore)
    assert build_snapshot_store(none_settings, None) is None
    assert build_snapshot_store(CacheSettings(snapshot_backend="redis"), None) is None


@pytest.mark.asyncio
async def test_init_redis_is_noop_for_file_backend() -> None:
    async with init_redis(RedisSettings(), CacheSettings(snapshot_backend="file")) as manager:
        assert manager is None


@pytest.mark.asyncio
async def test_init_cache_starts_and_persists(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    settings = CacheSettings(snapshot_path=str(path))

    async with init_cache(settings, FileSnapshotStore(path)) as cache:
        assert isinstance(cache, TTLCacheStore)
        cache.set("symbol:abc", "ABC", ttl=60)

    assert path.exists()


@pytest.mark.asyncio
async def test_init_price_refresher_respects_enabled_flag() -> None:
    settings = PriceSettings(refresh_enabled=False)

    async with init_price_refresher(object(), settings) as refresher:  # type: ignore[arg-type]
        assert refresher.is_running is False
