from .models import ChainBalance
from .prices import ReferencePriceCache
from .rpc import ChainReader
from .scanner import BalanceScanner

__all__ = [
    "BalanceScanner",
    "ChainBalance",
    "ChainReader",
    "ReferencePriceCache",
]
