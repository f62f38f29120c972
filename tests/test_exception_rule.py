from __future__ import annotations

import asyncio

import aiohttp
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from solfolio.common.exceptions.base import (
    CollectorNotFoundError,
    PermanentProviderError,
    RateLimitedError,
    TransientProviderError,
    UnsupportedAssetError,
)
from solfolio.common.exceptions.exception_rule import classify_exception, classify_http_status
from solfolio.core.types import ErrorCode, ErrorDomain


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (429, (ErrorCode.RATE_LIMITED, True)),
        (408, (ErrorCode.PROVIDER_TIMEOUT, True)),
        (503, (ErrorCode.PROVIDER_UNAVAILABLE, True)),
        (404, (ErrorCode.NO_DATA, False)),
        (401, (ErrorCode.BAD_REQUEST, False)),
    ],
)
def test_classify_http_status(status: int, expected: tuple[ErrorCode, bool]) -> None:
    assert classify_http_status(status) == expected


def test_structured_provider_error_keeps_own_code() -> None:
    err = RateLimitedError(provider_id="birdeye", message="slow down", status=429)

    assert classify_exception(err, "provider") == (
        ErrorDomain.PROVIDER,
        ErrorCode.RATE_LIMITED,
        True,
    )
    assert classify_exception(err, "ledger")[0] == ErrorDomain.LEDGER


def test_provider_timeout_is_retryable() -> None:
    assert classify_exception(asyncio.TimeoutError(), "provider") == (
        ErrorDomain.PROVIDER,
        ErrorCode.PROVIDER_TIMEOUT,
        True,
    )


def test_network_error_is_provider_unavailable() -> None:
    err = aiohttp.ClientConnectionError("reset by peer")

    assert classify_exception(err, "provider") == (
        ErrorDomain.PROVIDER,
        ErrorCode.PROVIDER_UNAVAILABLE,
        True,
    )


def test_parse_error_is_not_retryable() -> None:
    assert classify_exception(KeyError("data"), "provider") == (
        ErrorDomain.DESERIALIZATION,
        ErrorCode.INVALID_RESPONSE,
        False,
    )


def test_collector_rules() -> None:
    assert classify_exception(asyncio.TimeoutError(), "collector")[1] == ErrorCode.COLLECTOR_TIMEOUT
    assert (
        classify_exception(CollectorNotFoundError("x"), "collector")[1]
        == ErrorCode.COLLECTOR_NOT_FOUND
    )
    assert classify_exception(RuntimeError("boom"), "collector")[1] == ErrorCode.COLLECTOR_FAILED


def test_cache_rules_distinguish_redis_connection_errors() -> None:
    assert classify_exception(RedisConnectionError("down"), "cache") == (
        ErrorDomain.CACHE,
        ErrorCode.CACHE_ERROR,
        True,
    )
    assert classify_exception(ResponseError("WRONGTYPE"), "cache")[2] is False


def test_unknown_exception_falls_back() -> None:
    assert classify_exception(RuntimeError("?"), "provider") == (
        ErrorDomain.UNKNOWN,
        ErrorCode.UNKNOWN_ERROR,
        False,
    )


def test_provider_error_hierarchy_defaults() -> None:
    transient = TransientProviderError(provider_id="jupiter", message="502", status=502)
    permanent = PermanentProviderError(provider_id="jupiter", message="bad")
    unsupported = UnsupportedAssetError(provider_id="coingecko", message="no id")

    assert transient.retryable is True
    assert str(transient) == "[jupiter] 502 (HTTP 502)"
    assert permanent.retryable is False
    assert unsupported.error_code == ErrorCode.UNSUPPORTED_ASSET
    assert isinstance(unsupported, PermanentProviderError)
    assert transient.to_dict()["error_code"] == "provider_unavailable"
