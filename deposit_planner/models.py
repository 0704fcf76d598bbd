"""Domain models for deposit planning."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Tuple

from routing_oracle.base import RouteQuote

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class DepositSource:
    """One cross-chain mobilization unit backed by a quoted route."""

    chain_id: int
    chain_name: str
    token_symbol: str
    amount_usd: Decimal
    route: RouteQuote
    estimated_time_seconds: int
    estimated_fees_usd: Decimal

    @property
    def amount(self) -> str:
        return str(self.amount_usd.quantize(_CENTS, rounding=ROUND_HALF_UP))

    def to_dict(self) -> Dict[str, object]:
        return {
            "chain_id": self.chain_id,
            "chain_name": self.chain_name,
            "token_symbol": self.token_symbol,
            "amount": self.amount,
            "amount_usd": str(self.amount_usd),
            "route_id": self.route.route_id,
            "estimated_time_seconds": self.estimated_time_seconds,
            "estimated_fees_usd": str(self.estimated_fees_usd),
        }


@dataclass(frozen=True)
class DepositPlan:
    deposit_amount_usd: Decimal
    existing_settlement_usd: Decimal
    shortfall_usd: Decimal
    max_spendable_usd: Decimal
    can_cover_full: bool
    sources: Tuple[DepositSource, ...]

    @property
    def routed_usd(self) -> Decimal:
        return sum((source.amount_usd for source in self.sources), Decimal("0"))

    @property
    def total_estimated_time_seconds(self) -> int:
        return sum(source.estimated_time_seconds for source in self.sources)

    @property
    def total_estimated_fees_usd(self) -> Decimal:
        return sum((source.estimated_fees_usd for source in self.sources), Decimal("0"))

    def to_dict(self) -> Dict[str, object]:
        return {
            "deposit_amount_usd": str(self.deposit_amount_usd),
            "existing_settlement_usd": str(self.existing_settlement_usd),
            "shortfall_usd": str(self.shortfall_usd),
            "max_spendable_usd": str(self.max_spendable_usd),
            "can_cover_full": self.can_cover_full,
            "total_estimated_time_seconds": self.total_estimated_time_seconds,
            "total_estimated_fees_usd": str(self.total_estimated_fees_usd),
            "sources": [source.to_dict() for source in self.sources],
        }
