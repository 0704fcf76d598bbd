from .models import DepositPlan, DepositSource
from .planner import (
    DepositPlanner,
    PlanValidationError,
    Selection,
    atomic_share,
    greedy_cover,
    select_candidates,
    validate_plan,
)

__all__ = [
    "DepositPlan",
    "DepositPlanner",
    "DepositSource",
    "PlanValidationError",
    "Selection",
    "atomic_share",
    "greedy_cover",
    "select_candidates",
    "validate_plan",
]
