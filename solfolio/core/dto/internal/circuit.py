from __future__ import annotations

import threading
from dataclasses import dataclass, field

from solfolio.core.types import CircuitState


@dataclass(frozen=True, slots=True)
class CircuitBreakerConfig:
    """서킷브레이커 설정"""

    failure_threshold: int = 5  # 연속 실패 임계값
    reset_window_seconds: float = 60.0  # OPEN 유지 시간 (마지막 실패 기준)
    probe_ratio: int = 3  # HALF_OPEN에서 N번 확인 중 1번만 허용


@dataclass(slots=True, eq=False, repr=False, match_args=False, kw_only=True)
class ProviderCircuitDomain:
    """공급자별 서킷 상태(가변).

    - 레지스트리 수명 동안 공급자 ID당 하나만 존재합니다.
    - 상태 변경은 반드시 lock을 잡은 상태에서 수행합니다.
    """

    provider_id: str
    config: CircuitBreakerConfig
    state: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    last_failure_at: float | None = None
    last_success_at: float | None = None
    half_open_checks: int = 0

    # 메트릭
    total_checks: int = 0
    success_calls: int = 0
    failed_calls: int = 0
    last_opened_at: float | None = None
    total_time_open: float = 0.0

    lock: threading.Lock = field(default_factory=threading.Lock)
