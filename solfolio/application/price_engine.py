"""다중 소스 가격 해석 엔진.

흐름 (현재가):
    1. 시간 버킷 캐시 키 조회 → 적중 시 공급자 호출 없음
    2. 우선순위 순서로 공급자 순회
       - capability 없음 / 심볼 미해석 / 서킷 차단 → 건너뜀
       - 호출 성공 + 양수 가격 → 성공 보고, 캐시 기록 후 반환
       - 실패 / 타임아웃 / 0 이하 가격 → 실패 보고, 다음 공급자
    3. 모두 실패 → None

과거가는 정확한 값(긴 TTL) → 스테이블코인 페그 → 현재가 근사(짧은 TTL) 순으로 폴백합니다.
"""

from __future__ import annotations

import asyncio
import math
import time
import weakref
from dataclasses import replace
from typing import Awaitable, Callable, Iterable, Mapping, Sequence

from solfolio.common.exceptions.base import ProviderError
from solfolio.common.exceptions.circuit_breaker import CircuitBreakerRegistry
from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.cache import CacheKeyBuilder
from solfolio.core.dto.internal.price import (
    PriceQuoteDomain,
    ProviderPriceDomain,
    TokenMetadataDomain,
)
from solfolio.core.types import KNOWN_SYMBOLS, USD_STABLECOINS, Clock
from solfolio.infra.cache.cache_store import TTLCacheStore
from solfolio.infra.providers.base import PriceProvider

logger = PipelineLogger.get_logger("price_engine", "application")

STABLECOIN_SOURCE = "default-stablecoin"

ProviderCall = Callable[[PriceProvider, str | None], Awaitable[ProviderPriceDomain]]


class PriceResolutionEngine:
    """공급자 우선순위 + 서킷브레이커 + 캐시를 묶은 가격 해석기"""

    def __init__(
        self,
        providers: Sequence[PriceProvider],
        breakers: CircuitBreakerRegistry,
        cache: TTLCacheStore,
        *,
        metadata_order: Iterable[str] | None = None,
        price_ttl: float = 900.0,
        historical_ttl: float = 7 * 86400.0,
        approximate_ttl: float = 1800.0,
        metadata_ttl: float = 86400.0,
        symbol_ttl: float = 7 * 86400.0,
        approximation_enabled: bool = True,
        approximation_confidence: float = 0.5,
        stablecoin_peg_enabled: bool = True,
        stablecoins: Iterable[str] = USD_STABLECOINS,
        known_symbols: Mapping[str, str] | None = None,
        call_timeout: float = 10.0,
        batch_size: int = 10,
        clock: Clock = time.time,
    ) -> None:
        self._providers = list(providers)
        self._breakers = breakers
        self._cache = cache
        self._metadata_providers = self._order_metadata_providers(metadata_order)

        self._price_ttl = price_ttl
        self._historical_ttl = historical_ttl
        self._approximate_ttl = approximate_ttl
        self._metadata_ttl = metadata_ttl
        self._symbol_ttl = symbol_ttl
        self._approximation_enabled = approximation_enabled
        self._approximation_confidence = approximation_confidence
        self._stablecoin_peg_enabled = stablecoin_peg_enabled
        self._stablecoins = frozenset(stablecoins)
        self._known_symbols = dict(KNOWN_SYMBOLS if known_symbols is None else known_symbols)
        self._call_timeout = call_timeout
        self._batch_size = max(1, batch_size)
        self._clock = clock

        # 같은 키의 동시 해석을 하나로 합침 (single-flight)
        self._key_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

        for provider in self._providers:
            self._breakers.register(provider.provider_id)

    @property
    def provider_ids(self) -> list[str]:
        return [provider.provider_id for provider in self._providers]

    def _order_metadata_providers(self, order: Iterable[str] | None) -> list[PriceProvider]:
        capable = [p for p in self._providers if p.supports_metadata]
        if order is None:
            return capable
        by_id = {p.provider_id: p for p in capable}
        return [by_id[provider_id] for provider_id in order if provider_id in by_id]

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._key_locks[key] = lock
        return lock

    # ------------------------------------------------------------------
    # 현재가
    # ------------------------------------------------------------------
    async def get_current_price(
        self, address: str, *, force_refresh: bool = False
    ) -> PriceQuoteDomain | None:
        key = CacheKeyBuilder.current_price(address, self._clock(), self._price_ttl)
        if not force_refresh:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        async with self._lock_for(key):
            if not force_refresh:
                cached = self._cache.get(key)
                if cached is not None:
                    return cached

            quote = await self._cascade(
                address,
                capability="supports_price",
                call=lambda provider, symbol: provider.get_price(address, symbol=symbol),
            )
            if quote is None:
                logger.warning("모든 공급자에서 현재가 해석 실패", address=address)
                return None

            self._cache.set(key, quote, self._price_ttl)
            return quote

    # ------------------------------------------------------------------
    # 과거가
    # ------------------------------------------------------------------
    async def get_historical_price(
        self, address: str, timestamp: float, *, force_refresh: bool = False
    ) -> PriceQuoteDomain | None:
        key = CacheKeyBuilder.historical_price(address, timestamp)
        if not force_refresh:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        async with self._lock_for(key):
            if not force_refresh:
                cached = self._cache.get(key)
                if cached is not None:
                    return cached

            quote = await self._cascade(
                address,
                capability="supports_historical",
                call=lambda provider, symbol: provider.get_historical_price(
                    address, timestamp, symbol=symbol
                ),
            )
            if quote is not None:
                self._cache.set(key, quote, self._historical_ttl)
                return quote

            quote = await self._fallback_historical(address, timestamp)
            if quote is not None:
                # 근사값은 짧은 TTL로만 보관
                self._cache.set(key, quote, self._approximate_ttl)
            return quote

    async def _fallback_historical(
        self, address: str, timestamp: float
    ) -> PriceQuoteDomain | None:
        if self._stablecoin_peg_enabled and address in self._stablecoins:
            logger.info("스테이블코인 기본가 사용", address=address, timestamp=timestamp)
            return PriceQuoteDomain(
                address=address,
                price_usd=1.0,
                confidence=1.0,
                source_id=STABLECOIN_SOURCE,
                observed_at=self._clock(),
                is_approximate=True,
                symbol=self._known_symbols.get(address),
            )

        if not self._approximation_enabled:
            return None

        current = await self.get_current_price(address)
        if current is None:
            logger.warning("과거가 근사 실패 (현재가 없음)", address=address, timestamp=timestamp)
            return None

        logger.info(
            "과거가를 현재가로 근사",
            address=address,
            timestamp=timestamp,
            source_id=current.source_id,
        )
        return replace(
            current,
            is_approximate=True,
            confidence=current.confidence * self._approximation_confidence,
        )

    # ------------------------------------------------------------------
    # 배치
    # ------------------------------------------------------------------
    async def get_batch_prices(
        self, addresses: Iterable[str]
    ) -> dict[str, PriceQuoteDomain | None]:
        unique = list(dict.fromkeys(addresses))
        results: dict[str, PriceQuoteDomain | None] = {}
        for start in range(0, len(unique), self._batch_size):
            chunk = unique[start : start + self._batch_size]
            quotes = await asyncio.gather(*(self.get_current_price(a) for a in chunk))
            results.update(zip(chunk, quotes))
        return results

    # ------------------------------------------------------------------
    # 메타데이터 / 심볼
    # ------------------------------------------------------------------
    async def get_token_metadata(self, address: str) -> TokenMetadataDomain:
        """메타데이터 공급자 순회. 모두 실패하면 플레이스홀더(캐시하지 않음)"""
        key = CacheKeyBuilder.metadata(address)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        for provider in self._metadata_providers:
            if not self._breakers.can_request(provider.provider_id):
                continue
            try:
                metadata = await asyncio.wait_for(
                    provider.get_metadata(address), timeout=self._call_timeout
                )
            except (ProviderError, asyncio.TimeoutError) as exc:
                self._breakers.report_failure(provider.provider_id)
                logger.debug(
                    "메타데이터 조회 실패",
                    provider_id=provider.provider_id,
                    address=address,
                    error=str(exc),
                )
                continue
            except Exception as exc:
                # 어댑터 버그 등 비정형 예외도 공급자 실패로 취급 (CancelledError는 전파)
                self._breakers.report_failure(provider.provider_id)
                logger.error(
                    "메타데이터 조회 중 예기치 않은 오류",
                    provider_id=provider.provider_id,
                    address=address,
                    error=f"{type(exc).__name__}: {exc}",
                    exc_info=True,
                )
                continue
            self._breakers.report_success(provider.provider_id)
            self._cache.set(key, metadata, self._metadata_ttl)
            return metadata

        return TokenMetadataDomain.placeholder(address)

    async def resolve_symbol(self, address: str) -> str | None:
        known = self._known_symbols.get(address)
        if known is not None:
            return known

        key = CacheKeyBuilder.symbol(address)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        metadata = await self.get_token_metadata(address)
        if metadata.is_placeholder or not metadata.symbol:
            return None
        self._cache.set(key, metadata.symbol, self._symbol_ttl)
        return metadata.symbol

    # ------------------------------------------------------------------
    # 공급자 순회
    # ------------------------------------------------------------------
    async def _cascade(
        self, address: str, *, capability: str, call: ProviderCall
    ) -> PriceQuoteDomain | None:
        for provider in self._providers:
            provider_id = provider.provider_id
            if not getattr(provider, capability):
                continue

            symbol: str | None = None
            if provider.keyed_by_symbol:
                symbol = await self.resolve_symbol(address)
                if symbol is None:
                    logger.debug("심볼 미해석으로 건너뜀", provider_id=provider_id, address=address)
                    continue
            else:
                symbol = self._known_symbols.get(address)

            if not self._breakers.can_request(provider_id):
                logger.debug("서킷 차단으로 건너뜀", provider_id=provider_id, address=address)
                continue

            try:
                result = await asyncio.wait_for(call(provider, symbol), timeout=self._call_timeout)
            except (ProviderError, asyncio.TimeoutError) as exc:
                self._breakers.report_failure(provider_id)
                logger.warning(
                    "공급자 가격 조회 실패",
                    provider_id=provider_id,
                    address=address,
                    error=str(exc) or type(exc).__name__,
                )
                continue
            except Exception as exc:
                self._breakers.report_failure(provider_id)
                logger.error(
                    "공급자 호출 중 예기치 않은 오류",
                    provider_id=provider_id,
                    address=address,
                    error=f"{type(exc).__name__}: {exc}",
                    exc_info=True,
                )
                continue

            if not _is_valid_price(result.price):
                self._breakers.report_failure(provider_id)
                logger.warning(
                    "유효하지 않은 가격 응답",
                    provider_id=provider_id,
                    address=address,
                    price=result.price,
                )
                continue

            self._breakers.report_success(provider_id)
            return PriceQuoteDomain(
                address=address,
                price_usd=float(result.price),
                confidence=max(0.0, result.confidence),
                source_id=provider_id,
                observed_at=result.observed_at or self._clock(),
                is_approximate=False,
                symbol=symbol,
            )
        return None


def _is_valid_price(price: float) -> bool:
    return isinstance(price, (int, float)) and math.isfinite(price) and price > 0
