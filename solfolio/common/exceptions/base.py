"""공급자/수집기 경계에서 사용하는 구조화된 예외 계층.

ProviderError
├── TransientProviderError   (재시도 대상: 네트워크, 타임아웃, 5xx)
│   └── RateLimitedError     (429, Retry-After 존중)
└── PermanentProviderError   (재시도 불필요: 4xx, 파싱 실패)
    └── UnsupportedAssetError (공급자가 해당 자산을 모름)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from solfolio.core.types import ErrorCode


@dataclass(slots=True, eq=False)
class ProviderError(Exception):
    """외부 공급자 호출 실패의 공통 베이스."""

    provider_id: str
    message: str
    status: int | None = None
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    retryable: bool = False
    original_exception: BaseException | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        status = f" (HTTP {self.status})" if self.status is not None else ""
        return f"[{self.provider_id}] {self.message}{status}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "message": self.message,
            "status": self.status,
            "error_code": str(self.error_code),
            "retryable": self.retryable,
            "original_exception": (
                type(self.original_exception).__name__ if self.original_exception else None
            ),
        }


@dataclass(slots=True, eq=False)
class TransientProviderError(ProviderError):
    error_code: ErrorCode = ErrorCode.PROVIDER_UNAVAILABLE
    retryable: bool = True


@dataclass(slots=True, eq=False)
class RateLimitedError(TransientProviderError):
    error_code: ErrorCode = ErrorCode.RATE_LIMITED
    retry_after: float | None = None


@dataclass(slots=True, eq=False)
class PermanentProviderError(ProviderError):
    error_code: ErrorCode = ErrorCode.BAD_REQUEST
    retryable: bool = False


@dataclass(slots=True, eq=False)
class UnsupportedAssetError(PermanentProviderError):
    error_code: ErrorCode = ErrorCode.UNSUPPORTED_ASSET


class CollectorNotFoundError(LookupError):
    """등록되지 않은 수집기 ID 조회"""

    def __init__(self, collector_id: str) -> None:
        super().__init__(f"collector not found: {collector_id}")
        self.collector_id = collector_id
