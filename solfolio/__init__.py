"""solfolio: Solana 지갑 포트폴리오 집계기 (다중 소스 가격 해석 + 수집기 오케스트레이션)."""

__version__ = "0.1.0"
