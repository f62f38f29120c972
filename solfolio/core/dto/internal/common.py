from __future__ import annotations

from dataclasses import dataclass

from solfolio.core.types import ErrorCategory, ExceptionGroup, RuleKind


@dataclass(slots=True, repr=False, eq=False, match_args=False, kw_only=True)
class RetryPolicyDomain:
    """HTTP 재시도/백오프 정책(도메인)."""

    max_attempts: int = 3
    initial_backoff: float = 0.3
    max_backoff: float = 5.0
    backoff_multiplier: float = 2.0
    jitter: float = 0.1  # +/- 10%


@dataclass(
    slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True
)
class RuleDomain:
    """예외 분류 규칙(도메인)

    kinds: 규칙이 적용될 경계 종류 ("provider", "ledger", "collector", "cache")
    exc:   매칭할 예외 타입(단일 타입 또는 타입 튜플)
    result: (ErrorDomain, ErrorCode, retryable)
    """

    kinds: RuleKind
    exc: ExceptionGroup
    result: ErrorCategory
