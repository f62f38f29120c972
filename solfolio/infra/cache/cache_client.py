from __future__ import annotations

import redis.asyncio as redis
from redis.asyncio import Redis

from solfolio.common.logger import PipelineLogger

logger = PipelineLogger.get_logger("redis", "cache_client")


class RedisConnectionManager:
    """Redis connection manager (async).

    Use initialize() before accessing client.
    """

    def __init__(self, url: str, socket_timeout: float = 5.0) -> None:
        self._url = url
        self._socket_timeout = socket_timeout
        self._redis: Redis | None = None

    async def initialize(self) -> None:
        if self._redis is None:
            logger.info(f"Redis 연결 시도: {self._url}")
            self._redis = redis.from_url(url=self._url, socket_timeout=self._socket_timeout)
            await self._redis.ping()
            logger.info("Redis 연결 성공")

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis 연결 종료")

    @property
    def client(self) -> Redis:
        if self._redis is None:
            raise RuntimeError("RedisConnectionManager is not initialized")
        return self._redis
