"""Per-unit execution statuses and progress events."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional

DIRECT_TRANSFER_INDEX = -1


class ExecutionStatus(Enum):
    PENDING = "pending"
    APPROVING = "approving"
    SWAPPING = "swapping"
    BRIDGING = "bridging"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[ExecutionStatus] = frozenset(
    {ExecutionStatus.DONE, ExecutionStatus.FAILED}
)

_IN_FLIGHT = frozenset(
    {
        ExecutionStatus.APPROVING,
        ExecutionStatus.SWAPPING,
        ExecutionStatus.BRIDGING,
        ExecutionStatus.DONE,
        ExecutionStatus.FAILED,
    }
)

_ALLOWED_TRANSITIONS: Dict[Optional[ExecutionStatus], FrozenSet[ExecutionStatus]] = {
    None: frozenset({ExecutionStatus.PENDING}),
    ExecutionStatus.PENDING: frozenset({ExecutionStatus.APPROVING, ExecutionStatus.FAILED}),
    ExecutionStatus.APPROVING: _IN_FLIGHT,
    ExecutionStatus.SWAPPING: _IN_FLIGHT,
    ExecutionStatus.BRIDGING: _IN_FLIGHT,
    ExecutionStatus.DONE: frozenset(),
    ExecutionStatus.FAILED: frozenset(),
}


def can_transition(current: Optional[ExecutionStatus], target: ExecutionStatus) -> bool:
    return target in _ALLOWED_TRANSITIONS[current]


@dataclass(frozen=True)
class ExecutionUpdate:
    unit_index: int
    status: ExecutionStatus
    substep: Optional[str] = None
    tx_hash: Optional[str] = None
    tx_link: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        result: Dict[str, object] = {
            "unit_index": self.unit_index,
            "status": self.status.value,
        }
        if self.substep is not None:
            result["substep"] = self.substep
        if self.tx_hash is not None:
            result["tx_hash"] = self.tx_hash
        if self.tx_link is not None:
            result["tx_link"] = self.tx_link
        if self.error is not None:
            result["error"] = self.error
        return result


UpdateCallback = Callable[[ExecutionUpdate], None]
