"""트라이/캐치 블록에서 사용할 예외 타입 정의 모듈.

광범위한 Exception 사용을 지양하고, 의도한 예외만 명시적으로 처리하기 위해 사용합니다.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Final, TypeAlias

import aiohttp
import orjson
from pydantic import ValidationError


class ErrorDomain(StrEnum):
    """에러 도메인 분류"""

    PROVIDER = "provider"
    LEDGER = "ledger"
    COLLECTOR = "collector"
    CACHE = "cache"
    DESERIALIZATION = "deserialization"
    ORCHESTRATOR = "orchestrator"
    UNKNOWN = "unknown"


class ErrorCode(StrEnum):
    """에러 코드 분류"""

    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    UNSUPPORTED_ASSET = "unsupported_asset"
    NO_DATA = "no_data"
    INVALID_RESPONSE = "invalid_response"
    COLLECTOR_FAILED = "collector_failed"
    COLLECTOR_TIMEOUT = "collector_timeout"
    COLLECTOR_NOT_FOUND = "collector_not_found"
    CACHE_ERROR = "cache_error"
    UNKNOWN_ERROR = "unknown_error"


# ----------------------------------------------------------------------------
# Exception Constants
# ----------------------------------------------------------------------------

# 1. 네트워크/연결 관련 예외 (재시도 대상)
# - aiohttp.ClientConnectionError: 연결 거부/리셋
# - asyncio.TimeoutError: 요청 시간 초과 (ClientTimeout 포함)
# - OSError: 소켓 레벨 에러
NETWORK_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    OSError,
)

# 2. 응답 파싱 관련 예외 (재시도 불필요)
PARSE_EXCEPTIONS: Final[tuple[type[BaseException], ...]] = (
    orjson.JSONDecodeError,
    ValidationError,
    ValueError,
    TypeError,
    KeyError,
    IndexError,
    AttributeError,
)


ErrorCategory: TypeAlias = tuple[ErrorDomain, ErrorCode, bool]
ExceptionGroup: TypeAlias = type[BaseException] | tuple[type[BaseException], ...]
RuleKind: TypeAlias = tuple[str, ...]
