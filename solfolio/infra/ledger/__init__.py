from solfolio.infra.ledger.base import LedgerQuery
from solfolio.infra.ledger.solana_rpc import SolanaRpcLedger

__all__ = ["LedgerQuery", "SolanaRpcLedger"]
