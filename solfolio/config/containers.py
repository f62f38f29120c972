"""
Dependency Injection Containers

아키텍처:
- InfrastructureContainer: 캐시, HTTP 세션, Redis, 서킷브레이커 + Settings 주입
- PriceSourceContainer: 가격 공급자 어댑터 (공급자 ID → 인스턴스)
- ApplicationContainer: 최상위 컨테이너 (가격 엔진, 원장, 수집기, 오케스트레이터)

주요 패턴:
- Resource Provider: async init/shutdown 자동 관리 (캐시 태스크, 세션, 갱신 태스크)
- Object Provider: settings.py 인스턴스 주입
- Dict Provider: 설정된 우선순위로 공급자 선택

사용 예시:
    container = ApplicationContainer()
    await container.init_resources()
    orchestrator = await container.orchestrator()
    ...
    await container.shutdown_resources()
"""

from dependency_injector import containers, providers

from solfolio.application.collector_registry import CollectorRegistry
from solfolio.application.orchestrator import FetcherOrchestrator
from solfolio.application.price_engine import PriceResolutionEngine
from solfolio.collectors.liquid_staking import (
    DEFAULT_LIQUID_STAKING_TOKENS,
    LiquidStakingCollector,
)
from solfolio.collectors.native_stake import NativeStakeCollector
from solfolio.collectors.wallet import WalletCollector
from solfolio.common.exceptions.circuit_breaker import CircuitBreakerRegistry
from solfolio.config.init_infra import (
    build_snapshot_store,
    init_cache,
    init_http_session,
    init_price_refresher,
    init_redis,
    select_providers,
)
from solfolio.config.settings import (
    cache_settings,
    circuit_breaker_settings,
    ledger_settings,
    orchestrator_settings,
    price_settings,
    provider_settings,
    redis_settings,
)
from solfolio.core.dto.internal.circuit import CircuitBreakerConfig
from solfolio.core.dto.internal.common import RetryPolicyDomain
from solfolio.infra.http.http_client import ProviderHttpClient
from solfolio.infra.ledger.solana_rpc import SolanaRpcLedger
from solfolio.infra.providers.birdeye import BIRDEYE_BASE_URL, BirdeyeProvider, birdeye_headers
from solfolio.infra.providers.coingecko import (
    CoinGeckoProvider,
    coingecko_base_url,
    coingecko_headers,
)
from solfolio.infra.providers.cryptocompare import (
    CRYPTOCOMPARE_BASE_URL,
    CryptoCompareProvider,
    cryptocompare_headers,
)
from solfolio.infra.providers.jupiter import JUPITER_BASE_URL, JupiterProvider


# ========================================
# 1. Infrastructure Container (인프라 레이어)
# ========================================
class InfrastructureContainer(containers.DeclarativeContainer):
    """인프라 컨테이너

    - 캐시 / HTTP 세션 / Redis는 Resource로 라이프사이클 관리
    - 서킷브레이커 레지스트리는 컨테이너 단위 싱글톤 (전역 변수 아님)
    """

    cache_config = providers.Object(cache_settings)
    circuit_config = providers.Object(circuit_breaker_settings)
    provider_config = providers.Object(provider_settings)
    redis_config = providers.Object(redis_settings)

    redis_manager = providers.Resource(
        init_redis, settings=redis_config, cache_settings=cache_config
    )

    snapshot_store = providers.Singleton(
        build_snapshot_store, settings=cache_config, redis_manager=redis_manager
    )

    cache = providers.Resource(init_cache, settings=cache_config, snapshot_store=snapshot_store)

    http_session = providers.Resource(
        init_http_session, timeout=provider_config.provided.request_timeout_sec
    )

    breaker_config = providers.Singleton(
        CircuitBreakerConfig,
        failure_threshold=circuit_config.provided.failure_threshold,
        reset_window_seconds=circuit_config.provided.reset_window_sec,
        probe_ratio=circuit_config.provided.probe_ratio,
    )

    breakers = providers.Singleton(CircuitBreakerRegistry, default_config=breaker_config)


# ========================================
# 2. Price Source Container (공급자 어댑터)
# ========================================
class PriceSourceContainer(containers.DeclarativeContainer):
    """가격/메타데이터 공급자 어댑터

    각 어댑터는 공유 세션을 쓰는 자신만의 ProviderHttpClient를 가집니다.
    """

    provider_config = providers.Object(provider_settings)
    http_session = providers.Dependency()

    retry_policy = providers.Singleton(
        RetryPolicyDomain,
        max_attempts=provider_config.provided.retry_max_attempts,
        initial_backoff=provider_config.provided.retry_initial_backoff_sec,
        max_backoff=provider_config.provided.retry_max_backoff_sec,
        backoff_multiplier=provider_config.provided.retry_backoff_multiplier,
        jitter=provider_config.provided.retry_jitter,
    )

    birdeye = providers.Singleton(
        BirdeyeProvider,
        http=providers.Factory(
            ProviderHttpClient,
            provider_id="birdeye",
            base_url=BIRDEYE_BASE_URL,
            headers=providers.Callable(birdeye_headers, provider_config.provided.birdeye_api_key),
            timeout=provider_config.provided.request_timeout_sec,
            retry_policy=retry_policy,
            session=http_session,
        ),
    )

    jupiter = providers.Singleton(
        JupiterProvider,
        http=providers.Factory(
            ProviderHttpClient,
            provider_id="jupiter",
            base_url=JUPITER_BASE_URL,
            timeout=provider_config.provided.request_timeout_sec,
            retry_policy=retry_policy,
            session=http_session,
        ),
    )

    coingecko = providers.Singleton(
        CoinGeckoProvider,
        http=providers.Factory(
            ProviderHttpClient,
            provider_id="coingecko",
            base_url=providers.Callable(
                coingecko_base_url, provider_config.provided.coingecko_api_key
            ),
            headers=providers.Callable(
                coingecko_headers, provider_config.provided.coingecko_api_key
            ),
            timeout=provider_config.provided.request_timeout_sec,
            retry_policy=retry_policy,
            session=http_session,
        ),
    )

    cryptocompare = providers.Singleton(
        CryptoCompareProvider,
        http=providers.Factory(
            ProviderHttpClient,
            provider_id="cryptocompare",
            base_url=CRYPTOCOMPARE_BASE_URL,
            headers=providers.Callable(
                cryptocompare_headers, provider_config.provided.cryptocompare_api_key
            ),
            timeout=provider_config.provided.request_timeout_sec,
            retry_policy=retry_policy,
            session=http_session,
        ),
    )

    available = providers.Dict(
        birdeye=birdeye,
        jupiter=jupiter,
        coingecko=coingecko,
        cryptocompare=cryptocompare,
    )


# ========================================
# 3. Application Container (최상위)
# ========================================
class ApplicationContainer(containers.DeclarativeContainer):
    """애플리케이션 최상위 컨테이너"""

    infra = providers.Container(InfrastructureContainer)
    price_sources = providers.Container(PriceSourceContainer, http_session=infra.http_session)

    cache_config = providers.Object(cache_settings)
    price_config = providers.Object(price_settings)
    ledger_config = providers.Object(ledger_settings)
    orchestrator_config = providers.Object(orchestrator_settings)

    # ===== Price =====
    price_providers = providers.Callable(
        select_providers,
        order=price_config.provided.provider_order,
        available=price_sources.available,
    )

    price_engine = providers.Singleton(
        PriceResolutionEngine,
        providers=price_providers,
        breakers=infra.breakers,
        cache=infra.cache,
        metadata_order=price_config.provided.metadata_order,
        price_ttl=cache_config.provided.price_ttl_sec,
        historical_ttl=cache_config.provided.historical_ttl_sec,
        approximate_ttl=cache_config.provided.approximate_ttl_sec,
        metadata_ttl=cache_config.provided.metadata_ttl_sec,
        symbol_ttl=cache_config.provided.symbol_ttl_sec,
        approximation_enabled=price_config.provided.approximation_enabled,
        approximation_confidence=price_config.provided.approximation_confidence,
        stablecoin_peg_enabled=price_config.provided.stablecoin_peg_enabled,
        call_timeout=price_config.provided.call_timeout_sec,
        batch_size=price_config.provided.batch_size,
    )

    price_refresher = providers.Resource(
        init_price_refresher, engine=price_engine, settings=price_config
    )

    # ===== Ledger =====
    ledger = providers.Singleton(
        SolanaRpcLedger,
        http=providers.Factory(
            ProviderHttpClient,
            provider_id="solana-rpc",
            base_url=ledger_config.provided.rpc_url,
            timeout=ledger_config.provided.request_timeout_sec,
            retry_policy=price_sources.retry_policy,
            session=infra.http_session,
        ),
        commitment=ledger_config.provided.commitment,
    )

    # ===== Collectors =====
    liquid_staking_collector = providers.Singleton(
        LiquidStakingCollector, ledger=ledger, engine=price_engine
    )

    wallet_collector = providers.Singleton(
        WalletCollector,
        ledger=ledger,
        engine=price_engine,
        exclude_mints=providers.Object(tuple(DEFAULT_LIQUID_STAKING_TOKENS)),
    )

    native_stake_collector = providers.Singleton(
        NativeStakeCollector, ledger=ledger, engine=price_engine
    )

    collector_registry = providers.Singleton(
        CollectorRegistry,
        collectors=providers.List(
            wallet_collector,
            liquid_staking_collector,
            native_stake_collector,
        ),
    )

    # ===== Orchestrator =====
    orchestrator = providers.Singleton(
        FetcherOrchestrator,
        registry=collector_registry,
        cache=infra.cache,
        collector_timeout=orchestrator_config.provided.collector_timeout_sec,
        result_ttl=cache_config.provided.result_ttl_sec,
    )
