"""Typed views over LI.FI route JSON."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from deposit_core.chains import NATIVE_TOKEN_ADDRESS
from deposit_core.errors import RouteUnavailableError

from ..base import RouteQuote, RouteRequest

DEFAULT_STEP_DURATION_SECONDS = 30

_CENTS = Decimal("0.01")
_NATIVE_ALIASES = {NATIVE_TOKEN_ADDRESS, "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"}


@dataclass(frozen=True)
class LifiStep:
    step_id: str
    tool: str
    from_chain_id: int
    to_chain_id: int
    from_token_address: str
    from_token_symbol: str
    from_amount: int
    approval_address: Optional[str]
    execution_duration_seconds: int
    fee_costs_usd: Decimal
    raw: Mapping[str, Any]

    @property
    def is_cross_chain(self) -> bool:
        return self.from_chain_id != self.to_chain_id

    @property
    def is_native_source(self) -> bool:
        return self.from_token_address.lower() in _NATIVE_ALIASES


@dataclass(frozen=True)
class LifiRoute:
    route_id: str
    steps: Tuple[LifiStep, ...]
    raw: Mapping[str, Any]


def parse_step(data: Mapping[str, Any]) -> LifiStep:
    action = data.get("action") or {}
    estimate = data.get("estimate") or {}
    from_token = action.get("fromToken") or {}
    return LifiStep(
        step_id=str(data.get("id", "")),
        tool=str(data.get("tool", "")),
        from_chain_id=int(action["fromChainId"]),
        to_chain_id=int(action["toChainId"]),
        from_token_address=str(from_token.get("address", "")),
        from_token_symbol=str(from_token.get("symbol", "")),
        from_amount=int(action.get("fromAmount") or 0),
        approval_address=estimate.get("approvalAddress"),
        execution_duration_seconds=int(
            estimate.get("executionDuration") or DEFAULT_STEP_DURATION_SECONDS
        ),
        fee_costs_usd=sum(
            (_usd(cost.get("amountUSD")) for cost in estimate.get("feeCosts") or ()),
            Decimal("0"),
        ),
        raw=data,
    )


def parse_route(data: Mapping[str, Any]) -> RouteQuote:
    try:
        steps = tuple(parse_step(step) for step in data.get("steps") or ())
        if not steps:
            raise RouteUnavailableError("Route contains no steps.")
        route = LifiRoute(route_id=str(data.get("id", "")), steps=steps, raw=data)
        return RouteQuote(
            route_id=route.route_id,
            from_chain_id=int(data["fromChainId"]),
            to_chain_id=int(data["toChainId"]),
            from_amount=int(data["fromAmount"]),
            to_amount_min=int(data.get("toAmountMin") or 0),
            estimated_duration_seconds=sum(step.execution_duration_seconds for step in steps),
            estimated_fees_usd=sum((step.fee_costs_usd for step in steps), Decimal("0")).quantize(
                _CENTS, rounding=ROUND_HALF_UP
            ),
            handle=route,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise RouteUnavailableError(f"Malformed route payload: {exc}") from exc


def route_request_payload(request: RouteRequest, integrator: str) -> Dict[str, Any]:
    return {
        "fromChainId": request.from_chain_id,
        "fromTokenAddress": request.from_token_address,
        "fromAddress": request.from_address,
        "toChainId": request.to_chain_id,
        "toTokenAddress": request.to_token_address,
        "toAddress": request.to_address,
        "fromAmount": str(request.from_amount),
        "options": {
            "slippage": request.slippage,
            "order": request.order,
            "integrator": integrator,
        },
    }


def _usd(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
