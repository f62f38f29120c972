from __future__ import annotations

import asyncio
from typing import TypeAlias

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from solfolio.common.exceptions.base import CollectorNotFoundError, ProviderError
from solfolio.core.dto.internal.common import RuleDomain
from solfolio.core.types import (
    NETWORK_EXCEPTIONS,
    PARSE_EXCEPTIONS,
    ErrorCategory,
    ErrorCode,
    ErrorDomain,
)

# 경계 종류 → 도메인 (구조화된 ProviderError 분류 시 사용)
_DOMAIN_BY_KIND: dict[str, ErrorDomain] = {
    "provider": ErrorDomain.PROVIDER,
    "ledger": ErrorDomain.LEDGER,
    "collector": ErrorDomain.COLLECTOR,
    "cache": ErrorDomain.CACHE,
}

# 1) asyncio 규칙 (취소/타임아웃은 네트워크 규칙보다 먼저 평가)
RULES_ASYNCIO: list[RuleDomain] = [
    RuleDomain(
        kinds=("provider", "ledger", "collector", "cache"),
        exc=asyncio.CancelledError,
        result=(ErrorDomain.ORCHESTRATOR, ErrorCode.UNKNOWN_ERROR, False),
    ),
    RuleDomain(
        kinds=("provider", "ledger"),
        exc=asyncio.TimeoutError,
        result=(ErrorDomain.PROVIDER, ErrorCode.PROVIDER_TIMEOUT, True),
    ),
    RuleDomain(
        kinds=("collector",),
        exc=asyncio.TimeoutError,
        result=(ErrorDomain.COLLECTOR, ErrorCode.COLLECTOR_TIMEOUT, False),
    ),
]

# 2) Redis 규칙 (스냅샷 백엔드, 구체 -> 포괄)
RULES_REDIS: list[RuleDomain] = [
    RuleDomain(
        kinds=("cache",),
        exc=(RedisConnectionError, RedisTimeoutError),
        result=(ErrorDomain.CACHE, ErrorCode.CACHE_ERROR, True),
    ),
    RuleDomain(
        kinds=("cache",),
        exc=RedisError,
        result=(ErrorDomain.CACHE, ErrorCode.CACHE_ERROR, False),
    ),
]

# 3) 네트워크 규칙
RULES_NETWORK: list[RuleDomain] = [
    RuleDomain(
        kinds=("provider", "ledger"),
        exc=NETWORK_EXCEPTIONS,
        result=(ErrorDomain.PROVIDER, ErrorCode.PROVIDER_UNAVAILABLE, True),
    ),
    RuleDomain(
        kinds=("cache",),
        exc=OSError,
        result=(ErrorDomain.CACHE, ErrorCode.CACHE_ERROR, False),
    ),
]

# 4) 역직렬화/파싱 규칙 (모든 경계 공통)
RULES_PARSE: list[RuleDomain] = [
    RuleDomain(
        kinds=("provider", "ledger", "cache"),
        exc=PARSE_EXCEPTIONS,
        result=(ErrorDomain.DESERIALIZATION, ErrorCode.INVALID_RESPONSE, False),
    ),
]

# 5) 오케스트레이터/수집기 규칙 (가장 포괄적인 Exception은 마지막)
RULES_COLLECTOR: list[RuleDomain] = [
    RuleDomain(
        kinds=("collector",),
        exc=CollectorNotFoundError,
        result=(ErrorDomain.ORCHESTRATOR, ErrorCode.COLLECTOR_NOT_FOUND, False),
    ),
    RuleDomain(
        kinds=("collector",),
        exc=Exception,
        result=(ErrorDomain.COLLECTOR, ErrorCode.COLLECTOR_FAILED, False),
    ),
]

# 전체 규칙 (구체 -> 포괄 순서를 유지하며 결합)
# 주의: 매칭 우선순위를 보장하기 위해 선언 순서를 유지합니다.
RULES_FOR_PROVIDER: list[RuleDomain] = [*RULES_ASYNCIO, *RULES_NETWORK, *RULES_PARSE]
RULES_FOR_CACHE: list[RuleDomain] = [*RULES_ASYNCIO, *RULES_REDIS, *RULES_NETWORK, *RULES_PARSE]
RULES_FOR_COLLECTOR: list[RuleDomain] = [*RULES_ASYNCIO, *RULES_COLLECTOR]

RuleDict: TypeAlias = dict[str, list[RuleDomain]]
RULES_BY_KIND: RuleDict = {
    "provider": RULES_FOR_PROVIDER,
    "ledger": RULES_FOR_PROVIDER,
    "collector": RULES_FOR_COLLECTOR,
    "cache": RULES_FOR_CACHE,
}


def classify_exception(err: BaseException, kind: str) -> ErrorCategory:
    """예외 → (ErrorDomain, ErrorCode, retryable) 분류기 (규칙 테이블 기반)

    - 구조화된 ProviderError는 자신이 가진 코드/재시도 여부를 그대로 사용합니다.
    - 그 외에는 "구체 → 포괄" 순서로 선언된 규칙을 순서대로 평가합니다.
    """
    if isinstance(err, ProviderError):
        domain = _DOMAIN_BY_KIND.get(kind, ErrorDomain.PROVIDER)
        return (domain, err.error_code, err.retryable)

    for rule in RULES_BY_KIND.get(kind, []):
        if kind in rule.kinds and isinstance(err, rule.exc):
            return rule.result

    # 알 수 없는 경우 기본값
    return (ErrorDomain.UNKNOWN, ErrorCode.UNKNOWN_ERROR, False)


def classify_http_status(status: int) -> tuple[ErrorCode, bool]:
    """HTTP 상태 코드 → (ErrorCode, retryable)

    - 429: 레이트 리밋 (재시도)
    - 408 / 5xx: 일시 장애 (재시도)
    - 404: 데이터 없음
    - 그 외 4xx: 잘못된 요청 (재시도 안 함)
    """
    if status == 429:
        return ErrorCode.RATE_LIMITED, True
    if status == 408:
        return ErrorCode.PROVIDER_TIMEOUT, True
    if status >= 500:
        return ErrorCode.PROVIDER_UNAVAILABLE, True
    if status == 404:
        return ErrorCode.NO_DATA, False
    return ErrorCode.BAD_REQUEST, False
