from .orchestrator import DepositOrchestrator
from .progress import PROCESS_LABELS, UnitProgress, map_process_update, progress_hook
from .status import (
    DIRECT_TRANSFER_INDEX,
    TERMINAL_STATUSES,
    ExecutionStatus,
    ExecutionUpdate,
    UpdateCallback,
    can_transition,
)
from .tracker import ExecutionSummary, ExecutionTracker, retry_plan

__all__ = [
    "DIRECT_TRANSFER_INDEX",
    "DepositOrchestrator",
    "ExecutionStatus",
    "ExecutionSummary",
    "ExecutionTracker",
    "ExecutionUpdate",
    "PROCESS_LABELS",
    "TERMINAL_STATUSES",
    "UnitProgress",
    "UpdateCallback",
    "can_transition",
    "map_process_update",
    "progress_hook",
    "retry_plan",
]
