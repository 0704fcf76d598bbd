from .client import LifiClient
from .executor import LifiRouteExecutor
from .models import LifiRoute, LifiStep, parse_route, parse_step
from .oracle import LifiRoutingOracle

__all__ = [
    "LifiClient",
    "LifiRoute",
    "LifiRouteExecutor",
    "LifiRoutingOracle",
    "LifiStep",
    "parse_route",
    "parse_step",
]
