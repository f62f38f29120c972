"""
공급자별 인메모리 서킷브레이커 레지스트리

3-State Finite State Machine:
- CLOSED: 정상 동작 (요청 허용)
- OPEN: 장애 감지 (리셋 윈도우 동안 요청 차단)
- HALF_OPEN: 회복 테스트 (probe_ratio 번 확인 중 1번만 허용)

특징:
- 공급자 ID당 상태 하나, 상태마다 개별 락 (서로 다른 공급자는 락을 공유하지 않음)
- OPEN → HALF_OPEN 전환은 타이머 없이 다음 can_request 호출 시 지연 평가
- 권고용: 호출자에게 예외를 던지지 않으며 내부 오류 시 요청을 허용(fail-open)
"""

from __future__ import annotations

import threading
import time
from typing import Any

from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.circuit import CircuitBreakerConfig, ProviderCircuitDomain
from solfolio.core.types import CircuitState, Clock

logger = PipelineLogger.get_logger("circuit_breaker", "core")


class CircuitBreakerRegistry:
    """공급자별 서킷브레이커 레지스트리

    Example:
        >>> breakers = CircuitBreakerRegistry()
        >>> if breakers.can_request("birdeye"):
        ...     try:
        ...         price = await birdeye.get_price(mint)
        ...         breakers.report_success("birdeye")
        ...     except ProviderError:
        ...         breakers.report_failure("birdeye")
    """

    def __init__(
        self,
        default_config: CircuitBreakerConfig | None = None,
        overrides: dict[str, CircuitBreakerConfig] | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._default_config = default_config or CircuitBreakerConfig()
        self._overrides = dict(overrides or {})
        self._clock = clock
        self._circuits: dict[str, ProviderCircuitDomain] = {}
        # 레지스트리 락은 서킷 생성에만 사용
        self._registry_lock = threading.Lock()

    def register(
        self, provider_id: str, config: CircuitBreakerConfig | None = None
    ) -> ProviderCircuitDomain:
        """공급자 서킷을 생성(또는 기존 서킷 반환)합니다."""
        circuit = self._circuits.get(provider_id)
        if circuit is not None:
            return circuit

        with self._registry_lock:
            circuit = self._circuits.get(provider_id)
            if circuit is None:
                circuit = ProviderCircuitDomain(
                    provider_id=provider_id,
                    config=config or self._overrides.get(provider_id, self._default_config),
                )
                self._circuits[provider_id] = circuit
            return circuit

    def can_request(self, provider_id: str) -> bool:
        """요청 허용 여부 확인 (상태 전환 포함)"""
        try:
            circuit = self.register(provider_id)
            with circuit.lock:
                circuit.total_checks += 1
                now = self._clock()

                if circuit.state == CircuitState.OPEN:
                    last_failure = circuit.last_failure_at or 0.0
                    if now - last_failure <= circuit.config.reset_window_seconds:
                        return False
                    self._transition(circuit, CircuitState.HALF_OPEN, now)

                if circuit.state == CircuitState.HALF_OPEN:
                    circuit.half_open_checks += 1
                    return circuit.half_open_checks % max(1, circuit.config.probe_ratio) == 0

                return True
        except Exception as exc:
            # 브레이커 자체 장애로 공급자 호출을 막지 않음 (fail-open)
            logger.error(
                "서킷브레이커 확인 실패, 요청 허용",
                provider_id=provider_id,
                error=str(exc),
                exc_info=True,
            )
            return True

    def report_success(self, provider_id: str) -> None:
        """성공 기록: HALF_OPEN/OPEN → CLOSED, CLOSED에서는 실패 카운터 1 감소"""
        circuit = self.register(provider_id)
        with circuit.lock:
            now = self._clock()
            circuit.success_calls += 1
            circuit.last_success_at = now

            if circuit.state in (CircuitState.HALF_OPEN, CircuitState.OPEN):
                circuit.consecutive_failures = 0
                self._transition(circuit, CircuitState.CLOSED, now)
            else:
                circuit.consecutive_failures = max(0, circuit.consecutive_failures - 1)

    def report_failure(self, provider_id: str) -> None:
        """실패 기록: 연속 실패가 임계값에 도달하면 OPEN"""
        circuit = self.register(provider_id)
        with circuit.lock:
            now = self._clock()
            circuit.failed_calls += 1
            circuit.consecutive_failures += 1
            circuit.last_failure_at = now

            if (
                circuit.state != CircuitState.OPEN
                and circuit.consecutive_failures >= circuit.config.failure_threshold
            ):
                self._transition(circuit, CircuitState.OPEN, now)

    def get_state(self, provider_id: str) -> CircuitState:
        """현재 상태 조회 (전환을 일으키지 않음)"""
        circuit = self._circuits.get(provider_id)
        return circuit.state if circuit else CircuitState.CLOSED

    def force_open(self, provider_id: str) -> None:
        """수동으로 OPEN 전환 (운영/테스트용)"""
        circuit = self.register(provider_id)
        with circuit.lock:
            now = self._clock()
            circuit.last_failure_at = now
            circuit.consecutive_failures = max(
                circuit.consecutive_failures, circuit.config.failure_threshold
            )
            if circuit.state != CircuitState.OPEN:
                self._transition(circuit, CircuitState.OPEN, now)

    def reset(self, provider_id: str) -> bool:
        """서킷 초기화. 등록되지 않은 공급자면 False"""
        circuit = self._circuits.get(provider_id)
        if circuit is None:
            return False
        with circuit.lock:
            now = self._clock()
            if circuit.state == CircuitState.OPEN and circuit.last_opened_at is not None:
                circuit.total_time_open += now - circuit.last_opened_at
            circuit.state = CircuitState.CLOSED
            circuit.consecutive_failures = 0
            circuit.half_open_checks = 0
            circuit.last_failure_at = None
        logger.info("서킷 초기화", provider_id=provider_id)
        return True

    def describe(self, provider_id: str) -> dict[str, Any] | None:
        """진단용 상태/메트릭 조회"""
        circuit = self._circuits.get(provider_id)
        if circuit is None:
            return None
        with circuit.lock:
            now = self._clock()
            total_calls = circuit.success_calls + circuit.failed_calls
            time_open = circuit.total_time_open
            if circuit.state == CircuitState.OPEN and circuit.last_opened_at is not None:
                time_open += now - circuit.last_opened_at
            return {
                "provider_id": circuit.provider_id,
                "state": circuit.state.value,
                "consecutive_failures": circuit.consecutive_failures,
                "last_failure_at": circuit.last_failure_at,
                "last_success_at": circuit.last_success_at,
                "half_open_checks": circuit.half_open_checks,
                "total_checks": circuit.total_checks,
                "success_calls": circuit.success_calls,
                "failed_calls": circuit.failed_calls,
                "success_rate": (circuit.success_calls / total_calls) if total_calls else None,
                "last_opened_at": circuit.last_opened_at,
                "total_time_open": time_open,
            }

    def describe_all(self) -> dict[str, dict[str, Any]]:
        result: dict[str, dict[str, Any]] = {}
        for provider_id in list(self._circuits):
            snapshot = self.describe(provider_id)
            if snapshot is not None:
                result[provider_id] = snapshot
        return result

    def _transition(
        self, circuit: ProviderCircuitDomain, new_state: CircuitState, now: float
    ) -> None:
        """상태 전환 + 메트릭 갱신 (circuit.lock 보유 상태에서 호출)"""
        old_state = circuit.state
        if old_state == new_state:
            return

        if old_state == CircuitState.OPEN and circuit.last_opened_at is not None:
            circuit.total_time_open += now - circuit.last_opened_at

        circuit.state = new_state

        if new_state == CircuitState.OPEN:
            circuit.last_opened_at = now
            logger.warning(
                "서킷 OPEN 전환",
                provider_id=circuit.provider_id,
                failures=circuit.consecutive_failures,
                reset_window=circuit.config.reset_window_seconds,
            )
        elif new_state == CircuitState.HALF_OPEN:
            circuit.half_open_checks = 0
            logger.info("서킷 HALF_OPEN 전환", provider_id=circuit.provider_id)
        else:
            circuit.half_open_checks = 0
            logger.info("서킷 CLOSED 전환 (복구)", provider_id=circuit.provider_id)
