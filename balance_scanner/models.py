"""Domain models for multi-chain balance snapshots."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from deposit_core.chains import NATIVE_TOKEN_ADDRESS


@dataclass(frozen=True)
class ChainBalance:
    """One token balance on one chain, valued in USD."""

    chain_id: int
    chain_name: str
    token_symbol: str
    token_address: str
    decimals: int
    raw_balance: int
    balance: str
    balance_usd: Decimal

    @property
    def is_native(self) -> bool:
        return self.token_address == NATIVE_TOKEN_ADDRESS

    def to_dict(self) -> Dict[str, object]:
        return {
            "chain_id": self.chain_id,
            "chain_name": self.chain_name,
            "token_symbol": self.token_symbol,
            "token_address": self.token_address,
            "decimals": self.decimals,
            "raw_balance": str(self.raw_balance),
            "balance": self.balance,
            "balance_usd": str(self.balance_usd),
        }
