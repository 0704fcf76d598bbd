from .base import (
    ProcessStatus,
    ProcessType,
    ProcessUpdate,
    ProgressHook,
    RouteQuote,
    RouteRequest,
    RoutingOracle,
)

__all__ = [
    "ProcessStatus",
    "ProcessType",
    "ProcessUpdate",
    "ProgressHook",
    "RouteQuote",
    "RouteRequest",
    "RoutingOracle",
]
