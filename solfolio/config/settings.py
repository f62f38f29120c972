"""통합 Settings 모듈 - 환경변수 기반

설정 우선순위:
    1. 환경변수 (최우선) - export PRICE_CALL_TIMEOUT_SEC=5
    2. .env 파일 - config/.env
    3. 코드 기본값 (settings.py 내부)

사용 예시:
    # 개발 환경 (기본값 사용)
    python main.py <owner>

    # API 키/캐시 경로 오버라이드
    export PROVIDER_BIRDEYE_API_KEY=...
    export CACHE_SNAPSHOT_PATH=/var/lib/solfolio/cache.json
    python main.py <owner>

리스트 값은 JSON 문자열로 지정합니다:
    export PRICE_PROVIDER_ORDER='["jupiter", "birdeye"]'
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from solfolio.core.types import POPULAR_TOKENS

# 설정 파일 경로
config_dir = Path(__file__).parent.parent / "config"


def env_settings(prefix: str) -> SettingsConfigDict:
    """환경변수 + .env 통합 설정

    Args:
        prefix: 환경변수 접두사 (예: CACHE_, PRICE_)
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=config_dir / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppSettings(BaseSettings):
    """애플리케이션 일반 설정

    환경변수 오버라이드:
        APP_ENVIRONMENT: 실행 환경 (dev, prod, test) (기본: dev)
    """

    environment: str = "dev"
    debug: bool = False

    model_config = env_settings("APP_")


class LogSettings(BaseSettings):
    """로깅 설정

    환경변수 오버라이드:
        LOG_LEVEL: 로그 레벨 (기본: INFO)
        LOG_DIR: 로그 디렉토리 (기본: logs)
        LOG_TO_FILE: 파일 로깅 여부 (기본: True)
    """

    level: str = "INFO"
    dir: str = "logs"
    to_file: bool = True

    model_config = env_settings("LOG_")


class CacheSettings(BaseSettings):
    """캐시 TTL / 정리 / 스냅샷 설정 (초 단위)"""

    price_ttl_sec: float = Field(900.0, gt=0)  # 현재가 (버킷 크기와 동일)
    historical_ttl_sec: float = Field(7 * 86400.0, gt=0)  # 정확한 과거가
    approximate_ttl_sec: float = Field(1800.0, gt=0)  # 근사 과거가
    metadata_ttl_sec: float = Field(86400.0, gt=0)
    symbol_ttl_sec: float = Field(7 * 86400.0, gt=0)
    result_ttl_sec: float = Field(300.0, gt=0)  # 수집기 결과

    sweep_interval_sec: float = Field(1800.0, gt=0)
    lock_stripes: int = Field(64, ge=1)

    snapshot_backend: Literal["file", "redis", "none"] = "file"
    snapshot_path: str = "data/cache/snapshot.json"
    snapshot_redis_key: str = "solfolio:cache:snapshot"
    snapshot_interval_sec: float = Field(300.0, gt=0)

    model_config = env_settings("CACHE_")


class CircuitBreakerSettings(BaseSettings):
    """공급자 서킷브레이커 기본값"""

    failure_threshold: int = Field(5, ge=1)
    reset_window_sec: float = Field(60.0, gt=0)
    probe_ratio: int = Field(3, ge=1)

    model_config = env_settings("CB_")


class PriceSettings(BaseSettings):
    """가격 해석 엔진 설정"""

    provider_order: list[str] = ["birdeye", "jupiter", "coingecko", "cryptocompare"]
    metadata_order: list[str] = ["jupiter", "birdeye", "coingecko"]
    approximation_enabled: bool = True
    approximation_confidence: float = Field(0.5, ge=0, le=1)
    stablecoin_peg_enabled: bool = True
    call_timeout_sec: float = Field(10.0, gt=0)
    batch_size: int = Field(10, ge=1)

    refresh_enabled: bool = True
    refresh_interval_sec: float = Field(600.0, gt=0)
    refresh_initial_delay_sec: float = Field(1.0, ge=0)
    popular_tokens: list[str] = list(POPULAR_TOKENS)

    model_config = env_settings("PRICE_")


class ProviderSettings(BaseSettings):
    """외부 공급자 API 키 / HTTP 재시도 정책"""

    birdeye_api_key: str | None = None
    coingecko_api_key: str | None = None
    cryptocompare_api_key: str | None = None

    request_timeout_sec: float = Field(5.0, gt=0)
    retry_max_attempts: int = Field(3, ge=1)
    retry_initial_backoff_sec: float = Field(0.3, ge=0)
    retry_backoff_multiplier: float = Field(2.0, ge=1)
    retry_max_backoff_sec: float = Field(5.0, ge=0)
    retry_jitter: float = Field(0.1, ge=0, le=1)

    model_config = env_settings("PROVIDER_")


class LedgerSettings(BaseSettings):
    """Solana RPC 설정"""

    rpc_url: str = "https://api.mainnet-beta.solana.com"
    commitment: str = "confirmed"
    request_timeout_sec: float = Field(10.0, gt=0)

    model_config = env_settings("SOLANA_")


class OrchestratorSettings(BaseSettings):
    """수집기 오케스트레이터 설정"""

    collector_timeout_sec: float = Field(20.0, gt=0)

    model_config = env_settings("ORCH_")


class RedisSettings(BaseSettings):
    """Redis 설정 (스냅샷 백엔드가 redis일 때만 사용)"""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    ssl: bool = False
    connection_timeout: float = 5.0

    model_config = env_settings("REDIS_")

    @property
    def url(self) -> str:
        scheme = "rediss" if self.ssl else "redis"
        auth = f":{self.password}@" if self.password else ""
        return f"{scheme}://{auth}{self.host}:{self.port}/{self.db}"


# ========================================
# 모듈 레벨 인스턴스 (DI 컨테이너에 Object로 주입)
# ========================================
app_settings = AppSettings()
log_settings = LogSettings()
cache_settings = CacheSettings()
circuit_breaker_settings = CircuitBreakerSettings()
price_settings = PriceSettings()
provider_settings = ProviderSettings()
ledger_settings = LedgerSettings()
orchestrator_settings = OrchestratorSettings()
redis_settings = RedisSettings()
