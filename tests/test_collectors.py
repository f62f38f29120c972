from __future__ import annotations

from typing import Iterable

import pytest

from solfolio.collectors import LiquidStakingCollector, NativeStakeCollector, WalletCollector
from solfolio.collectors.liquid_staking import DEFAULT_LIQUID_STAKING_TOKENS
from solfolio.collectors.native_stake import WITHDRAWER_OFFSET
from solfolio.common.exceptions.base import TransientProviderError
from solfolio.core.dto.internal.ledger import ProgramAccountDomain
from solfolio.core.dto.internal.price import PriceQuoteDomain, TokenMetadataDomain
from solfolio.core.types import (
    JITOSOL_MINT,
    MSOL_MINT,
    SOL_MINT,
    STAKE_PROGRAM_ID,
    USDC_MINT,
    PlatformType,
)
from tests.factory_builders import FakeLedger, build_metadata, build_token_balance

OWNER = "Owner11111111111111111111111111111111111111"
UNPRICED_MINT = "NoPrice111111111111111111111111111111111111"


class _StubEngine:
    """주소별 고정 가격을 돌려주는 가격 엔진"""

    def __init__(self, prices: dict[str, float]) -> None:
        self._prices = prices
        self.batch_requests: list[list[str]] = []

    def _quote(self, address: str) -> PriceQuoteDomain | None:
        price = self._prices.get(address)
        if price is None:
            return None
        return PriceQuoteDomain(
            address=address, price_usd=price, confidence=1.0, source_id="stub", observed_at=0.0
        )

    async def get_current_price(self, address: str) -> PriceQuoteDomain | None:
        return self._quote(address)

    async def get_batch_prices(
        self, addresses: Iterable[str]
    ) -> dict[str, PriceQuoteDomain | None]:
        addresses = list(addresses)
        self.batch_requests.append(addresses)
        return {a: self._quote(a) for a in addresses}

    async def get_token_metadata(self, address: str) -> TokenMetadataDomain:
        if address == USDC_MINT:
            return build_metadata(address, symbol="USDC")
        return TokenMetadataDomain.placeholder(address)


@pytest.mark.asyncio
async def test_wallet_collector_values_sol_and_tokens() -> None:
    ledger = FakeLedger(
        lamports=2_000_000_000,
        tokens=[
            build_token_balance(USDC_MINT, 50.0),
            build_token_balance(UNPRICED_MINT, 3.0),
            build_token_balance("Dust1111111111111111111111111111111111111111", 0.0),
        ],
    )
    engine = _StubEngine({SOL_MINT: 150.0, USDC_MINT: 1.0})
    collector = WalletCollector(ledger, engine)  # type: ignore[arg-type]

    records = await collector.execute(OWNER)

    assert len(records) == 1
    record = records[0]
    assert record.type == PlatformType.MULTIPLE
    assert record.value_usd == 350.0
    assert [a.symbol for a in record.assets] == ["SOL", "USDC", "UNKNOWN"]
    unpriced = record.assets[2]
    assert unpriced.price_usd is None
    assert unpriced.value_usd == 0.0
    assert record.attributes["token_count"] == 2
    assert engine.batch_requests == [[SOL_MINT, USDC_MINT, UNPRICED_MINT]]


@pytest.mark.asyncio
async def test_wallet_collector_skips_excluded_mints() -> None:
    ledger = FakeLedger(
        lamports=0,
        tokens=[build_token_balance(MSOL_MINT, 1.0), build_token_balance(USDC_MINT, 5.0)],
    )
    engine = _StubEngine({USDC_MINT: 1.0, MSOL_MINT: 180.0})
    collector = WalletCollector(
        ledger, engine, exclude_mints=DEFAULT_LIQUID_STAKING_TOKENS  # type: ignore[arg-type]
    )

    records = await collector.execute(OWNER)

    assert [a.address for a in records[0].assets] == [USDC_MINT]
    assert records[0].value_usd == 5.0


@pytest.mark.asyncio
async def test_wallet_collector_tolerates_partial_ledger_failure() -> None:
    ledger = FakeLedger(
        lamports=1_000_000_000,
        tokens=TransientProviderError(provider_id="solana-rpc", message="node is behind"),
    )
    collector = WalletCollector(ledger, _StubEngine({SOL_MINT: 100.0}))  # type: ignore[arg-type]

    records = await collector.execute(OWNER)

    assert records[0].value_usd == 100.0


@pytest.mark.asyncio
async def test_wallet_collector_total_ledger_failure_maps_to_empty() -> None:
    down = TransientProviderError(provider_id="solana-rpc", message="down")
    ledger = FakeLedger(lamports=down, tokens=down)
    collector = WalletCollector(ledger, _StubEngine({}))  # type: ignore[arg-type]

    assert await collector.execute(OWNER) == []


@pytest.mark.asyncio
async def test_wallet_collector_empty_wallet() -> None:
    collector = WalletCollector(FakeLedger(), _StubEngine({}))  # type: ignore[arg-type]

    assert await collector.execute(OWNER) == []


@pytest.mark.asyncio
async def test_liquid_staking_collector_emits_one_record_per_lst() -> None:
    ledger = FakeLedger(
        tokens=[
            build_token_balance(MSOL_MINT, 2.0, decimals=9),
            build_token_balance(JITOSOL_MINT, 1.0, decimals=9),
            build_token_balance(USDC_MINT, 10.0),
        ]
    )
    engine = _StubEngine({MSOL_MINT: 180.0, JITOSOL_MINT: 170.0})
    collector = LiquidStakingCollector(ledger, engine)  # type: ignore[arg-type]

    records = await collector.execute(OWNER)

    assert [(r.platform_id, r.value_usd) for r in records] == [
        ("marinade", 360.0),
        ("jito", 170.0),
    ]
    assert all(r.type == PlatformType.STAKING for r in records)
    assert records[0].assets[0].symbol == "mSOL"
    assert collector.mints == frozenset(DEFAULT_LIQUID_STAKING_TOKENS)


@pytest.mark.asyncio
async def test_liquid_staking_collector_without_lst_returns_empty() -> None:
    ledger = FakeLedger(tokens=[build_token_balance(USDC_MINT, 10.0)])
    engine = _StubEngine({})
    collector = LiquidStakingCollector(ledger, engine)  # type: ignore[arg-type]

    assert await collector.execute(OWNER) == []
    assert engine.batch_requests == []


@pytest.mark.asyncio
async def test_native_stake_collector_reads_withdrawer_accounts() -> None:
    ledger = FakeLedger(
        program_accounts=[
            ProgramAccountDomain(
                pubkey="Stake1",
                lamports=3_000_000_000,
                data={
                    "type": "delegated",
                    "info": {
                        "stake": {
                            "delegation": {
                                "voter": "Vote1",
                                "activationEpoch": "500",
                                "deactivationEpoch": "18446744073709551615",
                            }
                        }
                    },
                },
            ),
            ProgramAccountDomain(pubkey="Empty", lamports=0),
        ]
    )
    collector = NativeStakeCollector(ledger, _StubEngine({SOL_MINT: 100.0}))  # type: ignore[arg-type]

    records = await collector.execute(OWNER)

    assert ledger.program_calls == [(OWNER, STAKE_PROGRAM_ID, WITHDRAWER_OFFSET)]
    assert len(records) == 1
    assert records[0].value_usd == 300.0
    assert records[0].attributes["validator"] == "Vote1"
    assert records[0].attributes["state"] == "delegated"
    assert records[0].data == {"stake_account": "Stake1"}


@pytest.mark.asyncio
async def test_native_stake_without_price_reports_zero_value() -> None:
    ledger = FakeLedger(program_accounts=[ProgramAccountDomain(pubkey="S", lamports=10**9)])
    collector = NativeStakeCollector(ledger, _StubEngine({}))  # type: ignore[arg-type]

    records = await collector.execute(OWNER)

    assert records[0].value_usd == 0.0
    assert records[0].assets[0].amount == 1.0
