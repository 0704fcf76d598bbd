"""Static registry of supported chains and the tokens scanned on each."""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import ConfigurationError

NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class TokenSpec:
    symbol: str
    address: str
    decimals: int
    usd_pegged: bool = True

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_TOKEN_ADDRESS


@dataclass(frozen=True)
class ChainSpec:
    chain_id: int
    name: str
    short_name: str
    rpc_url: str
    explorer_url: str
    tokens: Tuple[TokenSpec, ...]

    def token(self, symbol: str) -> TokenSpec:
        for token in self.tokens:
            if token.symbol == symbol:
                return token
        raise ConfigurationError(f"Token {symbol} is not configured on {self.name}.")

    def tx_link(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    @property
    def hex_chain_id(self) -> str:
        return hex(self.chain_id)


def _native_eth() -> TokenSpec:
    return TokenSpec(symbol="ETH", address=NATIVE_TOKEN_ADDRESS, decimals=18, usd_pegged=False)


ARBITRUM = ChainSpec(
    chain_id=42161,
    name="Arbitrum",
    short_name="ARB",
    rpc_url="https://arb1.arbitrum.io/rpc",
    explorer_url="https://arbiscan.io",
    tokens=(
        TokenSpec("USDC", "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6),
        TokenSpec("USDT", "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", 6),
        _native_eth(),
    ),
)

BASE = ChainSpec(
    chain_id=8453,
    name="Base",
    short_name="BASE",
    rpc_url="https://mainnet.base.org",
    explorer_url="https://basescan.org",
    tokens=(
        TokenSpec("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
        TokenSpec("USDT", "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2", 6),
        _native_eth(),
    ),
)

OPTIMISM = ChainSpec(
    chain_id=10,
    name="Optimism",
    short_name="OP",
    rpc_url="https://mainnet.optimism.io",
    explorer_url="https://optimistic.etherscan.io",
    tokens=(
        TokenSpec("USDC", "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85", 6),
        TokenSpec("USDT", "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58", 6),
        _native_eth(),
    ),
)

SCROLL = ChainSpec(
    chain_id=534352,
    name="Scroll",
    short_name="SCR",
    rpc_url="https://rpc.scroll.io",
    explorer_url="https://scrollscan.com",
    tokens=(
        TokenSpec("USDC", "0x06eFdBFf2a14a7c8E15944D1F4A48F9F95F663A4", 6),
        TokenSpec("USDT", "0xf55BEC9cafDbE8730f096Aa55dad6D22d44099Df", 6),
        _native_eth(),
    ),
)

ZKSYNC_ERA = ChainSpec(
    chain_id=324,
    name="zkSync Era",
    short_name="ZKS",
    rpc_url="https://mainnet.era.zksync.io",
    explorer_url="https://explorer.zksync.io",
    tokens=(
        TokenSpec("USDC", "0x3355df6D4c9C3035724Fd0e3914dE96A5a83aaf4", 6),
        TokenSpec("USDT", "0x493257fD37EDB34451f62EDf8D2a0C418852bA4C", 6),
        _native_eth(),
    ),
)

SUPPORTED_CHAINS: Tuple[ChainSpec, ...] = (ARBITRUM, BASE, OPTIMISM, SCROLL, ZKSYNC_ERA)

_CHAINS_BY_ID: Dict[int, ChainSpec] = {chain.chain_id: chain for chain in SUPPORTED_CHAINS}


def chain_by_id(chain_id: int) -> ChainSpec:
    try:
        return _CHAINS_BY_ID[chain_id]
    except KeyError:
        raise ConfigurationError(f"Unsupported chain id: {chain_id}") from None


def find_chain(chain_id: Optional[int]) -> Optional[ChainSpec]:
    if chain_id is None:
        return None
    return _CHAINS_BY_ID.get(chain_id)
