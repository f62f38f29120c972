"""Solana JSON-RPC 기반 원장 조회."""

from __future__ import annotations

import itertools
from typing import Any

from solfolio.common.exceptions.base import PermanentProviderError, TransientProviderError
from solfolio.common.logger import PipelineLogger
from solfolio.core.dto.internal.ledger import (
    NativeBalanceDomain,
    ProgramAccountDomain,
    TokenBalanceDomain,
)
from solfolio.core.types import PARSE_EXCEPTIONS, TOKEN_2022_PROGRAM_ID, TOKEN_PROGRAM_ID, ErrorCode
from solfolio.infra.http.http_client import ProviderHttpClient
from solfolio.infra.ledger.base import LedgerQuery

logger = PipelineLogger.get_logger("solana_rpc", "ledger")

SOLANA_MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"

# 노드 지연/레이트 리밋 계열 JSON-RPC 에러 (재시도 대상)
TRANSIENT_RPC_CODES = frozenset({-32005, -32004, -32007, -32014, 429})


class SolanaRpcLedger(LedgerQuery):
    """JSON-RPC 호출을 ProviderHttpClient 위에서 수행"""

    provider_id = "solana-rpc"

    def __init__(self, http: ProviderHttpClient, commitment: str = "confirmed") -> None:
        self._http = http
        self._commitment = commitment
        self._ids = itertools.count(1)

    async def call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        response = await self._http.post_json("", payload)
        if not isinstance(response, dict):
            raise PermanentProviderError(
                provider_id=self.provider_id,
                message=f"{method}: malformed JSON-RPC response",
                error_code=ErrorCode.INVALID_RESPONSE,
            )
        error = response.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = f"{method}: {error.get('message') if isinstance(error, dict) else error}"
            if code in TRANSIENT_RPC_CODES:
                raise TransientProviderError(provider_id=self.provider_id, message=message)
            raise PermanentProviderError(provider_id=self.provider_id, message=message)
        return response.get("result")

    async def get_token_balances(self, owner: str) -> list[TokenBalanceDomain]:
        balances: list[TokenBalanceDomain] = []
        for program_id in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
            result = await self.call(
                "getTokenAccountsByOwner",
                [
                    owner,
                    {"programId": program_id},
                    {"encoding": "jsonParsed", "commitment": self._commitment},
                ],
            )
            balances.extend(self._parse_token_accounts(result))
        logger.debug("토큰 잔고 조회", owner=owner, accounts=len(balances))
        return balances

    async def get_native_balance(self, owner: str) -> NativeBalanceDomain:
        result = await self.call("getBalance", [owner, {"commitment": self._commitment}])
        try:
            return NativeBalanceDomain(lamports=int(result["value"]))
        except PARSE_EXCEPTIONS as exc:
            raise self._invalid("getBalance", exc) from exc

    async def get_program_positions(
        self, owner: str, program_id: str, *, owner_offset: int = 12
    ) -> list[ProgramAccountDomain]:
        result = await self.call(
            "getProgramAccounts",
            [
                program_id,
                {
                    "encoding": "jsonParsed",
                    "commitment": self._commitment,
                    "filters": [{"memcmp": {"offset": owner_offset, "bytes": owner}}],
                },
            ],
        )
        try:
            return [
                ProgramAccountDomain(
                    pubkey=item["pubkey"],
                    lamports=int(item["account"]["lamports"]),
                    data=_parsed_data(item["account"]),
                )
                for item in result or []
            ]
        except PARSE_EXCEPTIONS as exc:
            raise self._invalid("getProgramAccounts", exc) from exc

    async def close(self) -> None:
        await self._http.close()

    def _parse_token_accounts(self, result: Any) -> list[TokenBalanceDomain]:
        balances: list[TokenBalanceDomain] = []
        try:
            for item in (result or {}).get("value") or []:
                info = item["account"]["data"]["parsed"]["info"]
                token_amount = info["tokenAmount"]
                balances.append(
                    TokenBalanceDomain(
                        account=item["pubkey"],
                        mint=info["mint"],
                        amount=float(token_amount.get("uiAmount") or 0.0),
                        decimals=int(token_amount["decimals"]),
                        raw_amount=str(token_amount["amount"]),
                    )
                )
        except PARSE_EXCEPTIONS as exc:
            raise self._invalid("getTokenAccountsByOwner", exc) from exc
        return balances

    def _invalid(self, method: str, exc: BaseException) -> PermanentProviderError:
        return PermanentProviderError(
            provider_id=self.provider_id,
            message=f"{method}: unexpected response shape ({type(exc).__name__})",
            error_code=ErrorCode.INVALID_RESPONSE,
            original_exception=exc,
        )


def _parsed_data(account: dict[str, Any]) -> dict[str, Any]:
    data = account.get("data")
    if isinstance(data, dict):
        return data.get("parsed") or {}
    return {}
