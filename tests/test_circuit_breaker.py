from __future__ import annotations

from solfolio.common.exceptions.circuit_breaker import CircuitBreakerRegistry
from solfolio.core.dto.internal.circuit import CircuitBreakerConfig
from solfolio.core.types import CircuitState
from tests.factory_builders import FakeClock


def _registry(clock: FakeClock, **config: float) -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(default_config=CircuitBreakerConfig(**config), clock=clock)


def _open(registry: CircuitBreakerRegistry, provider_id: str, failures: int = 5) -> None:
    for _ in range(failures):
        registry.report_failure(provider_id)


def test_unknown_provider_is_closed_and_allowed() -> None:
    registry = _registry(FakeClock())

    assert registry.get_state("birdeye") == CircuitState.CLOSED
    assert registry.can_request("birdeye") is True


def test_opens_exactly_at_threshold() -> None:
    registry = _registry(FakeClock())

    _open(registry, "birdeye", failures=4)
    assert registry.get_state("birdeye") == CircuitState.CLOSED

    registry.report_failure("birdeye")
    assert registry.get_state("birdeye") == CircuitState.OPEN
    assert registry.can_request("birdeye") is False


def test_success_in_closed_decrements_failures() -> None:
    registry = _registry(FakeClock())

    _open(registry, "jupiter", failures=4)
    registry.report_success("jupiter")
    registry.report_failure("jupiter")

    # 4 - 1 + 1 = 4 → 아직 CLOSED
    assert registry.get_state("jupiter") == CircuitState.CLOSED
    assert registry.describe("jupiter")["consecutive_failures"] == 4


def test_open_blocks_until_reset_window_elapses() -> None:
    clock = FakeClock()
    registry = _registry(clock)
    _open(registry, "birdeye")

    clock.advance(60.0)
    assert registry.can_request("birdeye") is False
    assert registry.get_state("birdeye") == CircuitState.OPEN

    clock.advance(0.5)
    registry.can_request("birdeye")
    assert registry.get_state("birdeye") == CircuitState.HALF_OPEN


def test_half_open_allows_one_in_three_checks() -> None:
    clock = FakeClock()
    registry = _registry(clock)
    _open(registry, "birdeye")
    clock.advance(61.0)

    decisions = [registry.can_request("birdeye") for _ in range(6)]

    # 전환을 일으킨 첫 확인도 카운트에 포함
    assert decisions == [False, False, True, False, False, True]


def test_success_in_half_open_closes_and_resets() -> None:
    clock = FakeClock()
    registry = _registry(clock)
    _open(registry, "birdeye")
    clock.advance(61.0)
    for _ in range(3):
        registry.can_request("birdeye")

    registry.report_success("birdeye")

    assert registry.get_state("birdeye") == CircuitState.CLOSED
    assert registry.describe("birdeye")["consecutive_failures"] == 0
    assert registry.can_request("birdeye") is True


def test_failure_in_half_open_reopens() -> None:
    clock = FakeClock()
    registry = _registry(clock)
    _open(registry, "birdeye")
    clock.advance(61.0)
    registry.can_request("birdeye")

    registry.report_failure("birdeye")

    assert registry.get_state("birdeye") == CircuitState.OPEN
    assert registry.can_request("birdeye") is False


def test_providers_do_not_share_state() -> None:
    registry = _registry(FakeClock())

    _open(registry, "birdeye")

    assert registry.get_state("birdeye") == CircuitState.OPEN
    assert registry.can_request("jupiter") is True


def test_overrides_apply_per_provider() -> None:
    registry = CircuitBreakerRegistry(
        overrides={"cryptocompare": CircuitBreakerConfig(failure_threshold=2)},
        clock=FakeClock(),
    )

    _open(registry, "cryptocompare", failures=2)
    _open(registry, "birdeye", failures=2)

    assert registry.get_state("cryptocompare") == CircuitState.OPEN
    assert registry.get_state("birdeye") == CircuitState.CLOSED


def test_force_open_and_reset() -> None:
    registry = _registry(FakeClock())

    registry.force_open("coingecko")
    assert registry.can_request("coingecko") is False

    assert registry.reset("coingecko") is True
    assert registry.get_state("coingecko") == CircuitState.CLOSED
    assert registry.reset("unknown") is False


def test_can_request_fails_open_on_internal_error(monkeypatch) -> None:
    registry = _registry(FakeClock())

    def _boom(provider_id: str, config: CircuitBreakerConfig | None = None) -> None:
        raise RuntimeError("registry broken")

    monkeypatch.setattr(registry, "register", _boom)

    assert registry.can_request("birdeye") is True


def test_describe_tracks_metrics() -> None:
    clock = FakeClock()
    registry = _registry(clock)
    registry.report_success("birdeye")
    _open(registry, "birdeye")
    clock.advance(10.0)

    snapshot = registry.describe("birdeye")

    assert snapshot["state"] == "open"
    assert snapshot["success_calls"] == 1
    assert snapshot["failed_calls"] == 5
    assert snapshot["success_rate"] == 1 / 6
    assert snapshot["total_time_open"] == 10.0
    assert set(registry.describe_all()) == {"birdeye"}
    assert registry.describe("unknown") is None
