"""ERC-20 call encoding and atomic/human amount conversion."""

import re
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from .errors import ConfigurationError

BALANCE_OF_SELECTOR = "0x70a08231"
TRANSFER_SELECTOR = "0xa9059cbb"
APPROVE_SELECTOR = "0x095ea7b3"
ALLOWANCE_SELECTOR = "0xdd62ed3e"

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_PATTERN.match(value))


def require_address(value: Optional[str], label: str) -> str:
    if not is_address(value):
        raise ConfigurationError(f"{label} must be a 0x-prefixed 20-byte address.")
    return value


def encode_balance_of(owner: str) -> str:
    return BALANCE_OF_SELECTOR + _encode_address(owner)


def encode_transfer(recipient: str, amount: int) -> str:
    return TRANSFER_SELECTOR + _encode_address(recipient) + _encode_uint(amount)


def encode_approve(spender: str, amount: int) -> str:
    return APPROVE_SELECTOR + _encode_address(spender) + _encode_uint(amount)


def encode_allowance(owner: str, spender: str) -> str:
    return ALLOWANCE_SELECTOR + _encode_address(owner) + _encode_address(spender)


def decode_uint(value: Optional[str]) -> int:
    """Decode a hex quantity or ABI word; empty results decode to zero."""

    if value is None:
        return 0
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"Expected a 0x-prefixed hex string, got {value!r}.")
    digits = value[2:]
    if not digits:
        return 0
    return int(digits, 16)


def to_quantity(value: int) -> str:
    if value < 0:
        raise ValueError("Quantities must be non-negative.")
    return hex(value)


def to_atomic(amount: Decimal, decimals: int) -> int:
    scaled = (amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def from_atomic(raw: int, decimals: int) -> Decimal:
    return Decimal(raw) / (Decimal(10) ** decimals)


def _encode_address(address: str) -> str:
    return address[2:].lower().rjust(64, "0")


def _encode_uint(value: int) -> str:
    if value < 0:
        raise ValueError("uint256 values must be non-negative.")
    return format(value, "x").rjust(64, "0")
