from __future__ import annotations

import pytest

from solfolio.application.collector_registry import CollectorRegistry
from solfolio.application.orchestrator import FetcherOrchestrator
from solfolio.common.exceptions.base import CollectorNotFoundError
from solfolio.core.types import CollectorStatus, ErrorCode
from solfolio.infra.cache.cache_store import TTLCacheStore
from tests.factory_builders import FakeClock, FakeCollector

OWNER = "Owner11111111111111111111111111111111111111"


def _orchestrator(
    collectors: list[FakeCollector],
    *,
    cache: TTLCacheStore | None = None,
    timeout: float = 1.0,
    clock: FakeClock | None = None,
) -> FetcherOrchestrator:
    return FetcherOrchestrator(
        CollectorRegistry(collectors),
        cache,
        collector_timeout=timeout,
        clock=clock or FakeClock(),
    )


@pytest.mark.asyncio
async def test_one_raising_collector_is_isolated() -> None:
    collectors = [
        FakeCollector("c1", values=[10.0]),
        FakeCollector("c2", values=[5.0, 2.5]),
        FakeCollector("boom", error=RuntimeError("exploded"), bypass_guard=True),
        FakeCollector("c4", values=[1.0]),
    ]
    orchestrator = _orchestrator(collectors)

    snapshot = await orchestrator.fetch_all(OWNER)

    assert len(snapshot.per_collector_report) == 4
    failed = snapshot.per_collector_report["boom"]
    assert failed.status == CollectorStatus.ERROR
    assert failed.error_code == ErrorCode.COLLECTOR_FAILED
    assert "exploded" in failed.error_message
    assert snapshot.total_value_usd == 18.5
    assert len(snapshot.elements) == 4
    assert snapshot.per_collector_report["c2"].item_count == 2


@pytest.mark.asyncio
async def test_hanging_collector_times_out_without_blocking_others() -> None:
    collectors = [FakeCollector(f"ok{i}", values=[1.0]) for i in range(4)]
    collectors.append(FakeCollector("slow", values=[100.0], delay=5.0))
    orchestrator = _orchestrator(collectors, timeout=0.05)

    snapshot = await orchestrator.fetch_all(OWNER)

    statuses = [o.status for o in snapshot.per_collector_report.values()]
    assert statuses.count(CollectorStatus.SUCCESS) == 4
    assert statuses.count(CollectorStatus.ERROR) == 1
    slow = snapshot.per_collector_report["slow"]
    assert slow.error_code == ErrorCode.COLLECTOR_TIMEOUT
    assert slow.error_message == "timed out after 0.05s"
    assert snapshot.total_value_usd == 4.0
    assert snapshot.duration_ms < 5000


@pytest.mark.asyncio
async def test_guarded_collector_failure_maps_to_empty_success() -> None:
    orchestrator = _orchestrator([FakeCollector("quiet", error=RuntimeError("swallowed"))])

    snapshot = await orchestrator.fetch_all(OWNER)

    outcome = snapshot.per_collector_report["quiet"]
    assert outcome.succeeded
    assert outcome.item_count == 0
    assert snapshot.total_value_usd == 0.0


@pytest.mark.asyncio
async def test_empty_registry_produces_empty_snapshot() -> None:
    clock = FakeClock(start=42.0)
    orchestrator = _orchestrator([], clock=clock)

    snapshot = await orchestrator.fetch_all(OWNER)

    assert snapshot.owner == OWNER
    assert snapshot.captured_at == 42.0
    assert snapshot.total_value_usd == 0.0
    assert snapshot.elements == ()
    assert snapshot.per_collector_report == {}


@pytest.mark.asyncio
async def test_run_rejects_duplicate_collector_ids() -> None:
    orchestrator = _orchestrator([])

    with pytest.raises(ValueError):
        await orchestrator.run([FakeCollector("dup"), FakeCollector("dup")], OWNER)


def test_registry_rejects_duplicate_ids() -> None:
    with pytest.raises(ValueError):
        CollectorRegistry([FakeCollector("dup"), FakeCollector("dup")])


def test_non_positive_timeout_is_rejected() -> None:
    with pytest.raises(ValueError):
        _orchestrator([], timeout=0)


@pytest.mark.asyncio
async def test_fetch_one_runs_single_collector() -> None:
    target = FakeCollector("target", values=[3.0])
    other = FakeCollector("other")
    orchestrator = _orchestrator([target, other])

    elements = await orchestrator.fetch_one("target", OWNER)

    assert [e.value_usd for e in elements] == [3.0]
    assert other.calls == 0


@pytest.mark.asyncio
async def test_fetch_one_unknown_id_raises() -> None:
    orchestrator = _orchestrator([FakeCollector("known")])

    with pytest.raises(CollectorNotFoundError):
        await orchestrator.fetch_one("missing", OWNER)


@pytest.mark.asyncio
async def test_fetch_one_failure_returns_empty() -> None:
    orchestrator = _orchestrator(
        [FakeCollector("boom", error=RuntimeError("x"), bypass_guard=True)]
    )

    assert await orchestrator.fetch_one("boom", OWNER) == []


@pytest.mark.asyncio
async def test_fetch_network_filters_collectors() -> None:
    collectors = [
        FakeCollector("sol", values=[1.0]),
        FakeCollector("eth", values=[2.0], network_id="ethereum"),
    ]
    orchestrator = _orchestrator(collectors)

    snapshot = await orchestrator.fetch_network(OWNER, "solana")

    assert list(snapshot.per_collector_report) == ["sol"]
    assert collectors[1].calls == 0


@pytest.mark.asyncio
async def test_results_are_cached_per_collector_and_owner() -> None:
    clock = FakeClock()
    cache = TTLCacheStore(clock=clock)
    collector = FakeCollector("c1", values=[7.0])
    orchestrator = _orchestrator([collector], cache=cache, clock=clock)

    await orchestrator.fetch_all(OWNER)
    snapshot = await orchestrator.fetch_all(OWNER)

    assert collector.calls == 1
    assert snapshot.per_collector_report["c1"].from_cache is True
    assert snapshot.total_value_usd == 7.0

    clock.advance(300)
    await orchestrator.fetch_all(OWNER)
    assert collector.calls == 2


@pytest.mark.asyncio
async def test_empty_results_are_not_cached() -> None:
    cache = TTLCacheStore(clock=FakeClock())
    collector = FakeCollector("c1", values=[])
    orchestrator = _orchestrator([collector], cache=cache)

    await orchestrator.fetch_all(OWNER)
    await orchestrator.fetch_all(OWNER)

    assert collector.calls == 2


@pytest.mark.asyncio
async def test_snapshot_to_dict_shape() -> None:
    orchestrator = _orchestrator(
        [
            FakeCollector("c1", values=[1.5]),
            FakeCollector("boom", error=RuntimeError("x"), bypass_guard=True),
        ]
    )

    payload = (await orchestrator.fetch_all(OWNER)).to_dict()

    assert payload["owner"] == OWNER
    assert payload["total_value_usd"] == 1.5
    assert payload["elements"][0]["platform_id"] == "c1"
    assert payload["collector_reports"]["c1"]["status"] == "success"
    assert payload["collector_reports"]["c1"]["count"] == 1
    assert payload["collector_reports"]["boom"]["status"] == "error"
    assert payload["collector_reports"]["boom"]["error_code"] == "collector_failed"


def test_list_collectors_describes_registry() -> None:
    orchestrator = _orchestrator([FakeCollector("c1")])

    described = orchestrator.list_collectors()

    assert described == [
        {"id": "c1", "network_id": "solana", "platform_id": "c1", "platform_type": "wallet"}
    ]
