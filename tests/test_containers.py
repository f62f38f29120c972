from __future__ import annotations

import inspect
from typing import Any

import pytest

from solfolio.application.orchestrator import FetcherOrchestrator
from solfolio.config.containers import ApplicationContainer
from solfolio.config.settings import CacheSettings, PriceSettings


async def _resolve(value: Any) -> Any:
    return await value if inspect.isawaitable(value) else value


@pytest.mark.asyncio
async def test_container_wires_orchestrator_with_default_collectors() -> None:
    container = ApplicationContainer()
    no_snapshot = CacheSettings(snapshot_backend="none")
    container.infra.cache_config.override(no_snapshot)
    container.cache_config.override(no_snapshot)
    container.price_config.override(
        PriceSettings(refresh_enabled=False, provider_order=["jupiter", "unknown"])
    )

    await _resolve(container.init_resources())
    try:
        orchestrator = await _resolve(container.orchestrator())
        engine = await _resolve(container.price_engine())

        assert isinstance(orchestrator, FetcherOrchestrator)
        assert [c["id"] for c in orchestrator.list_collectors()] == [
            "wallet-solana",
            "liquid-staking-solana",
            "native-stake-solana",
        ]
        assert engine.provider_ids == ["jupiter"]
    finally:
        await _resolve(container.shutdown_resources())
