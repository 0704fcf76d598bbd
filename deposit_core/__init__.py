from .chains import (
    NATIVE_TOKEN_ADDRESS,
    SUPPORTED_CHAINS,
    ChainSpec,
    TokenSpec,
    chain_by_id,
    find_chain,
)
from .config import EngineConfig
from .errors import (
    ConfigurationError,
    DepositEngineError,
    InsufficientFundsError,
    InvalidAmountError,
    RouteExecutionError,
    RouteUnavailableError,
    RpcError,
    SignatureRejectedError,
    TransactionRevertedError,
    TransientNetworkError,
)
from .wallet import JsonRpcWalletProvider, ProviderFactory, SignerBinding, WalletProvider, primary_account

__all__ = [
    "ChainSpec",
    "ConfigurationError",
    "DepositEngineError",
    "EngineConfig",
    "InsufficientFundsError",
    "InvalidAmountError",
    "JsonRpcWalletProvider",
    "NATIVE_TOKEN_ADDRESS",
    "ProviderFactory",
    "RouteExecutionError",
    "RouteUnavailableError",
    "RpcError",
    "SUPPORTED_CHAINS",
    "SignatureRejectedError",
    "SignerBinding",
    "TokenSpec",
    "TransactionRevertedError",
    "TransientNetworkError",
    "WalletProvider",
    "chain_by_id",
    "find_chain",
    "primary_account",
]
