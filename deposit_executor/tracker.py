"""Collects execution updates into per-unit outcomes and retry plans."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from deposit_planner.models import DepositPlan
from deposit_planner.planner import PlanValidationError

from .status import DIRECT_TRANSFER_INDEX, ExecutionStatus, ExecutionUpdate, UpdateCallback


@dataclass(frozen=True)
class ExecutionSummary:
    total: int
    completed: int
    failed: int
    in_flight: int

    @property
    def all_done(self) -> bool:
        return self.total > 0 and self.completed == self.total

    def describe(self) -> str:
        text = f"{self.completed} of {self.total} transfers complete"
        if self.failed:
            text += f", {self.failed} failed"
        if self.in_flight:
            text += f", {self.in_flight} in progress"
        return text


class ExecutionTracker:
    """Usable as an ``on_update`` callback; keeps the latest update per unit."""

    def __init__(self, plan: DepositPlan, delegate: Optional[UpdateCallback] = None) -> None:
        self._plan = plan
        self._delegate = delegate
        self._latest: Dict[int, ExecutionUpdate] = {}
        self._history: List[ExecutionUpdate] = []

    def __call__(self, update: ExecutionUpdate) -> None:
        self._latest[update.unit_index] = update
        self._history.append(update)
        if self._delegate is not None:
            self._delegate(update)

    @property
    def history(self) -> Tuple[ExecutionUpdate, ...]:
        return tuple(self._history)

    def unit_indices(self) -> Tuple[int, ...]:
        indices = tuple(range(len(self._plan.sources)))
        if self._plan.existing_settlement_usd > 0:
            return (DIRECT_TRANSFER_INDEX,) + indices
        return indices

    def status_of(self, unit_index: int) -> ExecutionStatus:
        update = self._latest.get(unit_index)
        return update.status if update is not None else ExecutionStatus.PENDING

    def latest(self, unit_index: int) -> Optional[ExecutionUpdate]:
        return self._latest.get(unit_index)

    def summary(self) -> ExecutionSummary:
        statuses = [self.status_of(index) for index in self.unit_indices()]
        completed = sum(1 for status in statuses if status == ExecutionStatus.DONE)
        failed = sum(1 for status in statuses if status == ExecutionStatus.FAILED)
        return ExecutionSummary(
            total=len(statuses),
            completed=completed,
            failed=failed,
            in_flight=len(statuses) - completed - failed,
        )

    def unfinished_units(self) -> Tuple[int, ...]:
        return tuple(
            index for index in self.unit_indices() if self.status_of(index) != ExecutionStatus.DONE
        )


def retry_plan(plan: DepositPlan, tracker: ExecutionTracker) -> DepositPlan:
    """Plan covering only the units of ``plan`` that did not reach ``done``."""

    unfinished = set(tracker.unfinished_units())
    if not unfinished:
        raise PlanValidationError("Every unit already completed; nothing to retry.")
    existing = (
        plan.existing_settlement_usd if DIRECT_TRANSFER_INDEX in unfinished else Decimal("0")
    )
    sources = tuple(source for index, source in enumerate(plan.sources) if index in unfinished)
    routed = sum((source.amount_usd for source in sources), Decimal("0"))
    total = existing + routed
    return DepositPlan(
        deposit_amount_usd=total,
        existing_settlement_usd=existing,
        shortfall_usd=routed,
        max_spendable_usd=total,
        can_cover_full=True,
        sources=sources,
    )
