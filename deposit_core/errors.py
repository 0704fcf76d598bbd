"""Error taxonomy shared by the scanner, planner, and orchestrator."""

from typing import Optional


class DepositEngineError(Exception):
    """Base class for deposit engine failures."""


class ConfigurationError(DepositEngineError, ValueError):
    """Raised when required configuration or input is missing or malformed."""


class InvalidAmountError(ConfigurationError):
    """Raised when a deposit amount is not a positive, finite number."""


class InsufficientFundsError(DepositEngineError):
    """Raised when the signing account cannot cover a transaction."""


class TransientNetworkError(DepositEngineError):
    """Raised when an RPC node or HTTP API is unreachable or misbehaving."""


class RpcError(DepositEngineError):
    """Raised when a JSON-RPC endpoint returns an error object."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class RouteUnavailableError(DepositEngineError):
    """Raised when the routing oracle cannot provide a route."""


class SignatureRejectedError(DepositEngineError):
    """Raised when the wallet owner declines a signature request."""


class TransactionRevertedError(DepositEngineError):
    """Raised when a broadcast transaction is mined with a failed status."""


class RouteExecutionError(DepositEngineError):
    """Raised when a route fails while being executed."""
