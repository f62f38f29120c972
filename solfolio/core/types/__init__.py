from solfolio.core.types._common_types import (
    PERSISTED_NAMESPACES,
    SOLANA_NETWORK_ID,
    CacheNamespace,
    CircuitState,
    Clock,
    CollectorStatus,
    PlatformType,
)
from solfolio.core.types._token_types import (
    BONK_MINT,
    BSOL_MINT,
    JITOSOL_MINT,
    KNOWN_SYMBOLS,
    MSOL_MINT,
    POPULAR_TOKENS,
    SOL_MINT,
    STAKE_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    USD_STABLECOINS,
    USDC_MINT,
    USDT_MINT,
)
from solfolio.core.types._exception_types import (
    NETWORK_EXCEPTIONS,
    PARSE_EXCEPTIONS,
    ErrorCategory,
    ErrorCode,
    ErrorDomain,
    ExceptionGroup,
    RuleKind,
)

__all__ = [
    "PERSISTED_NAMESPACES",
    "SOLANA_NETWORK_ID",
    "CacheNamespace",
    "CircuitState",
    "Clock",
    "CollectorStatus",
    "PlatformType",
    "NETWORK_EXCEPTIONS",
    "PARSE_EXCEPTIONS",
    "ErrorCategory",
    "ErrorCode",
    "ErrorDomain",
    "ExceptionGroup",
    "RuleKind",
    "BONK_MINT",
    "BSOL_MINT",
    "JITOSOL_MINT",
    "KNOWN_SYMBOLS",
    "MSOL_MINT",
    "POPULAR_TOKENS",
    "SOL_MINT",
    "STAKE_PROGRAM_ID",
    "TOKEN_2022_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "USD_STABLECOINS",
    "USDC_MINT",
    "USDT_MINT",
]
