from __future__ import annotations

import asyncio

import pytest

from solfolio.application.price_refresher import PriceRefresher
from solfolio.core.dto.internal.price import PriceQuoteDomain


class _StubEngine:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def get_current_price(self, address: str) -> PriceQuoteDomain | None:
        self.calls.append(address)
        if address == "missing":
            return None
        if address == "broken":
            raise RuntimeError("engine bug")
        return PriceQuoteDomain(
            address=address, price_usd=1.0, confidence=1.0, source_id="stub", observed_at=0.0
        )


@pytest.mark.asyncio
async def test_refresh_once_counts_successes() -> None:
    engine = _StubEngine()
    refresher = PriceRefresher(engine, ["a", "missing", "broken", "b", "a"])  # type: ignore[arg-type]

    succeeded = await refresher.refresh_once()

    assert succeeded == 2
    assert engine.calls == ["a", "missing", "broken", "b"]


@pytest.mark.asyncio
async def test_start_runs_loop_until_stopped() -> None:
    engine = _StubEngine()
    refresher = PriceRefresher(engine, ["a"], interval=0.01, initial_delay=0)  # type: ignore[arg-type]

    await refresher.start()
    assert refresher.is_running
    await asyncio.sleep(0.05)
    await refresher.stop()

    assert not refresher.is_running
    assert len(engine.calls) >= 2
    calls = len(engine.calls)
    await asyncio.sleep(0.03)
    assert len(engine.calls) == calls
