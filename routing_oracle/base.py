"""Provider-neutral routing oracle interface and value types."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from deposit_core.wallet import SignerBinding


class ProcessType(Enum):
    TOKEN_ALLOWANCE = "TOKEN_ALLOWANCE"
    PERMIT = "PERMIT"
    SWAP = "SWAP"
    CROSS_CHAIN = "CROSS_CHAIN"
    RECEIVING_CHAIN = "RECEIVING_CHAIN"


class ProcessStatus(Enum):
    STARTED = "STARTED"
    ACTION_REQUIRED = "ACTION_REQUIRED"
    MESSAGE_REQUIRED = "MESSAGE_REQUIRED"
    PENDING = "PENDING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RouteRequest:
    from_chain_id: int
    from_token_address: str
    from_address: str
    to_chain_id: int
    to_token_address: str
    to_address: str
    from_amount: int
    slippage: float
    order: str


@dataclass(frozen=True)
class RouteQuote:
    """A quoted route; ``handle`` is the provider's own route payload."""

    route_id: str
    from_chain_id: int
    to_chain_id: int
    from_amount: int
    to_amount_min: int
    estimated_duration_seconds: int
    estimated_fees_usd: Decimal
    handle: Any


@dataclass(frozen=True)
class ProcessUpdate:
    step_index: int
    process_type: ProcessType
    status: ProcessStatus
    token_symbol: Optional[str] = None
    chain_id: Optional[int] = None
    tx_hash: Optional[str] = None
    tx_link: Optional[str] = None
    message: Optional[str] = None


ProgressHook = Callable[[ProcessUpdate], None]


class RoutingOracle(Protocol):
    async def get_routes(self, request: RouteRequest) -> Optional[RouteQuote]:
        ...

    async def execute_route(
        self, route: RouteQuote, signer: SignerBinding, progress_hook: ProgressHook
    ) -> None:
        ...
