"""Greedy cross-chain deposit planner with validation."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple, Union

from balance_scanner.models import ChainBalance
from deposit_core.config import EngineConfig
from deposit_core.erc20 import require_address
from deposit_core.errors import InvalidAmountError
from routing_oracle.base import RouteRequest, RoutingOracle

from .models import DepositPlan, DepositSource

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


class PlanValidationError(ValueError):
    """Raised when a deposit plan violates its invariants."""


@dataclass(frozen=True)
class Selection:
    balance: ChainBalance
    usd_to_use: Decimal


class DepositPlanner:
    """Splits a deposit between the settlement chain and bridged sources."""

    def __init__(self, oracle: RoutingOracle, config: EngineConfig) -> None:
        self._oracle = oracle
        self._config = config

    async def plan(
        self,
        deposit_amount_usd: Union[Decimal, int, float, str],
        balances: Iterable[ChainBalance],
        from_address: str,
        to_address: str,
    ) -> DepositPlan:
        amount = _to_amount(deposit_amount_usd)
        require_address(from_address, "Source wallet address")
        require_address(to_address, "Recipient address")
        balances = tuple(balances)

        settlement_balance = self._settlement_balance(balances)
        existing = min(settlement_balance, amount)

        if existing >= amount:
            logger.info("Settlement chain covers %s USD directly", amount)
            return DepositPlan(
                deposit_amount_usd=amount,
                existing_settlement_usd=existing,
                shortfall_usd=_ZERO,
                max_spendable_usd=amount,
                can_cover_full=True,
                sources=(),
            )

        shortfall = amount - existing
        candidates = select_candidates(balances, self._config)
        selections = greedy_cover(candidates, shortfall)

        outcomes = await asyncio.gather(
            *(self._route_for(selection, from_address, to_address) for selection in selections),
            return_exceptions=True,
        )

        sources: List[DepositSource] = []
        for selection, outcome in zip(selections, outcomes):
            balance = selection.balance
            if isinstance(outcome, Exception):
                logger.warning(
                    "Route lookup for %s on %s failed: %r",
                    balance.token_symbol,
                    balance.chain_name,
                    outcome,
                )
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is None:
                logger.warning("No route for %s on %s", balance.token_symbol, balance.chain_name)
                continue
            sources.append(outcome)

        max_spendable = existing + sum((source.amount_usd for source in sources), _ZERO)
        plan = DepositPlan(
            deposit_amount_usd=amount,
            existing_settlement_usd=existing,
            shortfall_usd=shortfall,
            max_spendable_usd=max_spendable,
            can_cover_full=max_spendable >= amount - self._config.coverage_epsilon_usd,
            sources=tuple(sources),
        )
        logger.info(
            "Planned %s USD: %s direct, %s routed from %d source(s), full coverage=%s",
            amount,
            existing,
            plan.routed_usd,
            len(sources),
            plan.can_cover_full,
        )
        return plan

    def _settlement_balance(self, balances: Tuple[ChainBalance, ...]) -> Decimal:
        for balance in balances:
            if (
                balance.chain_id == self._config.settlement_chain_id
                and balance.token_symbol == self._config.settlement_token_symbol
            ):
                return balance.balance_usd
        return _ZERO

    async def _route_for(
        self, selection: Selection, from_address: str, to_address: str
    ) -> Optional[DepositSource]:
        balance = selection.balance
        from_amount = atomic_share(balance, selection.usd_to_use)
        if from_amount <= 0:
            return None

        settlement_token = self._config.settlement_token()
        request = RouteRequest(
            from_chain_id=balance.chain_id,
            from_token_address=balance.token_address,
            from_address=from_address,
            to_chain_id=self._config.settlement_chain_id,
            to_token_address=settlement_token.address,
            to_address=to_address,
            from_amount=from_amount,
            slippage=self._config.route_slippage,
            order=self._config.route_order,
        )
        route = await asyncio.wait_for(
            self._oracle.get_routes(request), timeout=self._config.route_timeout_seconds
        )
        if route is None:
            return None

        return DepositSource(
            chain_id=balance.chain_id,
            chain_name=balance.chain_name,
            token_symbol=balance.token_symbol,
            amount_usd=selection.usd_to_use,
            route=route,
            estimated_time_seconds=route.estimated_duration_seconds,
            estimated_fees_usd=route.estimated_fees_usd,
        )


def select_candidates(
    balances: Iterable[ChainBalance], config: EngineConfig
) -> Tuple[ChainBalance, ...]:
    """Non-settlement balances above dust, stable tokens first, larger first."""

    eligible = [
        balance
        for balance in balances
        if balance.chain_id != config.settlement_chain_id
        and balance.balance_usd >= config.dust_threshold_usd
        and balance.balance_usd > 0
    ]
    return tuple(
        sorted(
            eligible,
            key=lambda balance: (config.token_rank(balance.token_symbol), -balance.balance_usd),
        )
    )


def greedy_cover(candidates: Iterable[ChainBalance], shortfall: Decimal) -> Tuple[Selection, ...]:
    selections: List[Selection] = []
    remaining = shortfall
    for balance in candidates:
        if remaining <= 0:
            break
        usd_to_use = min(balance.balance_usd, remaining)
        selections.append(Selection(balance=balance, usd_to_use=usd_to_use))
        remaining -= usd_to_use
    return tuple(selections)


def atomic_share(balance: ChainBalance, usd_to_use: Decimal) -> int:
    """Atomic token amount worth ``usd_to_use`` at the balance's own valuation."""

    if balance.balance_usd <= 0 or usd_to_use <= 0:
        return 0
    if usd_to_use >= balance.balance_usd:
        return balance.raw_balance
    return int(Decimal(balance.raw_balance) * usd_to_use / balance.balance_usd)


def validate_plan(plan: DepositPlan) -> None:
    if plan.deposit_amount_usd <= 0:
        raise PlanValidationError("Deposit amount must be positive.")
    if plan.existing_settlement_usd < 0 or plan.shortfall_usd < 0:
        raise PlanValidationError("Plan amounts must be non-negative.")
    if plan.existing_settlement_usd + plan.shortfall_usd != plan.deposit_amount_usd:
        raise PlanValidationError("Direct and shortfall amounts must add up to the deposit.")
    if plan.max_spendable_usd > plan.deposit_amount_usd:
        raise PlanValidationError("Spendable amount cannot exceed the deposit.")
    if plan.shortfall_usd == 0 and plan.sources:
        raise PlanValidationError("Fully covered plans must not include sources.")

    _validate_sources(plan)

    if plan.routed_usd > plan.shortfall_usd:
        raise PlanValidationError("Routed sources exceed the shortfall.")
    if plan.shortfall_usd > 0 and plan.max_spendable_usd != plan.existing_settlement_usd + plan.routed_usd:
        raise PlanValidationError("Spendable amount must equal direct plus routed amounts.")


def _validate_sources(plan: DepositPlan) -> None:
    for source in plan.sources:
        if source.amount_usd <= 0:
            raise PlanValidationError("Source amounts must be positive.")
        if source.route is None:
            raise PlanValidationError("Every source must carry a route.")


def _to_amount(value: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmountError("Deposit amount must be a number.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmountError(f"Deposit amount {value!r} is not a number.") from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError("Deposit amount must be a positive, finite number.")
    return amount
