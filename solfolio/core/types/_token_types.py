"""Solana 토큰/프로그램 주소 상수."""

from __future__ import annotations

from typing import Final

SOL_MINT: Final[str] = "So11111111111111111111111111111111111111112"
USDC_MINT: Final[str] = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT: Final[str] = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
MSOL_MINT: Final[str] = "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So"
JITOSOL_MINT: Final[str] = "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn"
BSOL_MINT: Final[str] = "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1"
BONK_MINT: Final[str] = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"

TOKEN_PROGRAM_ID: Final[str] = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID: Final[str] = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
STAKE_PROGRAM_ID: Final[str] = "Stake11111111111111111111111111111111111111"

# 심볼 해석 없이 바로 쓰는 잘 알려진 토큰
KNOWN_SYMBOLS: Final[dict[str, str]] = {
    SOL_MINT: "SOL",
    USDC_MINT: "USDC",
    USDT_MINT: "USDT",
    MSOL_MINT: "mSOL",
    JITOSOL_MINT: "JitoSOL",
    BSOL_MINT: "bSOL",
    BONK_MINT: "BONK",
}

# USD 페그 스테이블코인 (과거 가격 폴백용)
USD_STABLECOINS: Final[frozenset[str]] = frozenset({USDC_MINT, USDT_MINT})

# 주기적으로 가격을 미리 채워두는 인기 토큰
POPULAR_TOKENS: Final[tuple[str, ...]] = (
    SOL_MINT,
    USDC_MINT,
    USDT_MINT,
    MSOL_MINT,
    BONK_MINT,
)
