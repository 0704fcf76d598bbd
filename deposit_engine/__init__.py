from .engine import DepositEngine

__all__ = ["DepositEngine"]
