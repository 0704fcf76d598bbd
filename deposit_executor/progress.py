"""Maps routing-oracle progress onto unit statuses and collapses repeats."""

import logging
from typing import Optional

from deposit_core.chains import find_chain
from deposit_planner.models import DepositSource
from routing_oracle.base import ProcessStatus, ProcessType, ProcessUpdate, ProgressHook

from .status import ExecutionStatus, ExecutionUpdate, UpdateCallback, can_transition

logger = logging.getLogger(__name__)

PROCESS_LABELS = {
    ProcessType.TOKEN_ALLOWANCE: "Approving token",
    ProcessType.PERMIT: "Signing permit",
    ProcessType.SWAP: "Swapping tokens",
    ProcessType.CROSS_CHAIN: "Bridging cross-chain",
    ProcessType.RECEIVING_CHAIN: "Waiting for destination",
}

_BRIDGE_PROCESSES = frozenset({ProcessType.CROSS_CHAIN, ProcessType.RECEIVING_CHAIN})
_WALLET_ACTIONS = frozenset({ProcessStatus.ACTION_REQUIRED, ProcessStatus.MESSAGE_REQUIRED})


class UnitProgress:
    """State of one execution unit; emits only legal, non-repeated updates."""

    def __init__(self, unit_index: int, emit: UpdateCallback) -> None:
        self._unit_index = unit_index
        self._emit = emit
        self._status: Optional[ExecutionStatus] = None
        self._last: Optional[ExecutionUpdate] = None

    @property
    def unit_index(self) -> int:
        return self._unit_index

    @property
    def status(self) -> Optional[ExecutionStatus]:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status is not None and self._status.is_terminal

    def advance(
        self,
        status: ExecutionStatus,
        substep: Optional[str] = None,
        tx_hash: Optional[str] = None,
        tx_link: Optional[str] = None,
        error: Optional[str] = None,
    ) -> bool:
        if not can_transition(self._status, status):
            logger.debug(
                "Unit %s: dropped transition %s -> %s", self._unit_index, self._status, status
            )
            return False

        update = ExecutionUpdate(
            unit_index=self._unit_index,
            status=status,
            substep=substep,
            tx_hash=tx_hash,
            tx_link=tx_link,
            error=error,
        )
        if update == self._last:
            return False

        self._status = status
        self._last = update
        self._emit(update)
        return True

    def fail(self, error: str, substep: str = "Execution failed") -> bool:
        return self.advance(ExecutionStatus.FAILED, substep=substep, error=error)


def map_process_update(
    update: ProcessUpdate, source: DepositSource, unit_index: int
) -> Optional[ExecutionUpdate]:
    """Translate one oracle process event, or ``None`` when it is not surfaced."""

    label = PROCESS_LABELS.get(update.process_type, update.process_type.value)

    if update.status in _WALLET_ACTIONS:
        token = update.token_symbol or source.token_symbol
        chain = find_chain(update.chain_id)
        chain_name = chain.name if chain else source.chain_name
        return ExecutionUpdate(
            unit_index=unit_index,
            status=ExecutionStatus.APPROVING,
            substep=f"{label} {token} on {chain_name}…",
            tx_hash=update.tx_hash,
            tx_link=update.tx_link,
        )

    if update.status == ProcessStatus.PENDING:
        status = (
            ExecutionStatus.BRIDGING
            if update.process_type in _BRIDGE_PROCESSES
            else ExecutionStatus.SWAPPING
        )
        return ExecutionUpdate(
            unit_index=unit_index,
            status=status,
            substep=f"{label}…",
            tx_hash=update.tx_hash,
            tx_link=update.tx_link,
        )

    return None


def progress_hook(progress: UnitProgress, source: DepositSource) -> ProgressHook:
    def hook(update: ProcessUpdate) -> None:
        mapped = map_process_update(update, source, progress.unit_index)
        if mapped is None or progress.is_terminal:
            return
        progress.advance(
            mapped.status,
            substep=mapped.substep,
            tx_hash=mapped.tx_hash,
            tx_link=mapped.tx_link,
        )

    return hook
