"""외부 공급자 HTTP 전송 계층 (aiohttp + 재시도/백오프).

- 요청마다 ClientTimeout 적용
- 일시 장애(네트워크, 타임아웃, 5xx, 429)는 지수 백오프로 재시도
- 그 외 4xx, 디코딩 실패는 즉시 실패
- 모든 실패는 ProviderError 계층으로 정규화
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping

import aiohttp
import orjson

from solfolio.common.exceptions.base import (
    PermanentProviderError,
    ProviderError,
    RateLimitedError,
    TransientProviderError,
)
from solfolio.common.exceptions.exception_rule import classify_exception, classify_http_status
from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.common import RetryPolicyDomain
from solfolio.core.services.backoff import compute_next_backoff
from solfolio.core.types import NETWORK_EXCEPTIONS, ErrorCode

logger = PipelineLogger.get_logger("http_client", "infra")

Sleep = Callable[[float], Awaitable[Any]]


def build_client_session(
    timeout: float = 10.0, limit: int = 100, limit_per_host: int = 20
) -> aiohttp.ClientSession:
    """공유 ClientSession 생성 (커넥션 풀 + 기본 타임아웃)"""
    connector = aiohttp.TCPConnector(limit=limit, limit_per_host=limit_per_host, ttl_dns_cache=300)
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout),
    )


class ProviderHttpClient:
    """공급자 하나에 바인딩된 JSON HTTP 클라이언트.

    session을 주입받으면 소유하지 않으며(close 시 닫지 않음),
    주입이 없으면 첫 요청 시 직접 생성합니다.
    """

    def __init__(
        self,
        provider_id: str,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = 5.0,
        retry_policy: RetryPolicyDomain | None = None,
        session: aiohttp.ClientSession | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.provider_id = provider_id
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._retry_policy = retry_policy or RetryPolicyDomain()
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = build_client_session(timeout=self._timeout.total or 10.0)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None if self._owns_session else self._session

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def get_json(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.request_json("GET", path, params=params, headers=headers)

    async def post_json(
        self,
        path: str,
        payload: Any,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self.request_json("POST", path, payload=payload, headers=headers)

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """재시도 정책을 적용한 JSON 요청"""
        max_attempts = max(1, self._retry_policy.max_attempts)
        for attempt in range(max_attempts):
            try:
                return await self._request_once(
                    method, path, params=params, payload=payload, headers=headers
                )
            except TransientProviderError as exc:
                if attempt + 1 >= max_attempts:
                    logger.warning(
                        "공급자 요청 재시도 소진",
                        provider_id=self.provider_id,
                        path=path,
                        attempts=attempt + 1,
                        error=str(exc),
                    )
                    raise
                delay = compute_next_backoff(self._retry_policy, attempt)
                if isinstance(exc, RateLimitedError) and exc.retry_after is not None:
                    delay = max(delay, min(exc.retry_after, self._retry_policy.max_backoff))
                logger.debug(
                    "공급자 요청 재시도",
                    provider_id=self.provider_id,
                    path=path,
                    attempt=attempt + 1,
                    delay=round(delay, 3),
                    error=str(exc),
                )
                await self._sleep(delay)
        raise AssertionError("unreachable")

    async def _request_once(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None,
        payload: Any,
        headers: Mapping[str, str] | None,
    ) -> Any:
        session = await self._ensure_session()
        merged_headers = {"Accept": "application/json", **self._headers, **(headers or {})}
        data: bytes | None = None
        if payload is not None:
            data = orjson.dumps(payload)
            merged_headers["Content-Type"] = "application/json"

        try:
            async with session.request(
                method,
                self._url(path),
                params=dict(params) if params else None,
                data=data,
                headers=merged_headers,
                timeout=self._timeout,
            ) as response:
                body = await response.read()
                status = response.status
                if status >= 400:
                    raise self._status_error(status, body, response.headers)
        except ProviderError:
            raise
        except NETWORK_EXCEPTIONS as exc:
            _, code, _ = classify_exception(exc, "provider")
            raise TransientProviderError(
                provider_id=self.provider_id,
                message=f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
                error_code=code,
                original_exception=exc,
            ) from exc
        except aiohttp.ClientError as exc:
            # 리다이렉트 초과, 잘못된 URL 등 재시도해도 같은 결과인 클라이언트 오류
            raise PermanentProviderError(
                provider_id=self.provider_id,
                message=f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__,
                original_exception=exc,
            ) from exc

        try:
            return orjson.loads(body) if body else None
        except orjson.JSONDecodeError as exc:
            raise PermanentProviderError(
                provider_id=self.provider_id,
                message="invalid JSON response",
                status=status,
                error_code=ErrorCode.INVALID_RESPONSE,
                original_exception=exc,
            ) from exc

    def _status_error(
        self, status: int, body: bytes, headers: Mapping[str, str]
    ) -> ProviderError:
        code, retryable = classify_http_status(status)
        message = body[:200].decode("utf-8", errors="replace") or f"HTTP {status}"
        if code == ErrorCode.RATE_LIMITED:
            return RateLimitedError(
                provider_id=self.provider_id,
                message=message,
                status=status,
                retry_after=_parse_retry_after(headers.get("Retry-After")),
            )
        if retryable:
            return TransientProviderError(
                provider_id=self.provider_id, message=message, status=status, error_code=code
            )
        return PermanentProviderError(
            provider_id=self.provider_id, message=message, status=status, error_code=code
        )


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None
