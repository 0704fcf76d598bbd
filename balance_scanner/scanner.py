"""Concurrent multi-chain balance scanner."""

import asyncio
import logging
from decimal import ROUND_DOWN, Decimal
from typing import Iterable, Optional, Tuple

from deposit_core.chains import SUPPORTED_CHAINS, ChainSpec, TokenSpec
from deposit_core.config import EngineConfig
from deposit_core.erc20 import from_atomic, require_address
from deposit_core.errors import TransientNetworkError

from .models import ChainBalance
from .prices import ReferencePriceCache
from .rpc import ChainReader

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")
_NATIVE_PLACES = Decimal("0.0001")


class BalanceScanner:
    """Produces a USD-valued balance snapshot for one holder address."""

    def __init__(
        self,
        config: EngineConfig,
        reader: ChainReader,
        prices: ReferencePriceCache,
        chains: Optional[Iterable[ChainSpec]] = None,
    ) -> None:
        self._config = config
        self._reader = reader
        self._prices = prices
        self._chains = tuple(chains) if chains is not None else SUPPORTED_CHAINS

    async def scan(self, address: str) -> Tuple[ChainBalance, ...]:
        require_address(address, "Holder address")
        native_price = await self._prices.refresh()

        balances = await asyncio.gather(
            *(
                self._scan_pair(chain, token, address, native_price)
                for chain in self._chains
                for token in chain.tokens
            )
        )
        return tuple(sorted(balances, key=lambda balance: balance.balance_usd, reverse=True))

    async def _scan_pair(
        self, chain: ChainSpec, token: TokenSpec, address: str, native_price: Decimal
    ) -> ChainBalance:
        raw = await self._read_raw(chain, token, address)
        human = from_atomic(raw, token.decimals)
        usd = human if token.usd_pegged else human * native_price
        places = _NATIVE_PLACES if token.is_native else _CENTS
        return ChainBalance(
            chain_id=chain.chain_id,
            chain_name=chain.name,
            token_symbol=token.symbol,
            token_address=token.address,
            decimals=token.decimals,
            raw_balance=raw,
            balance=str(human.quantize(places, rounding=ROUND_DOWN)),
            balance_usd=usd.quantize(_CENTS, rounding=ROUND_DOWN),
        )

    async def _read_raw(self, chain: ChainSpec, token: TokenSpec, address: str) -> int:
        rpc_url = self._config.rpc_url(chain.chain_id)
        if token.is_native:
            query = self._reader.native_balance(rpc_url, address)
        else:
            query = self._reader.token_balance(rpc_url, token.address, address)

        try:
            return await asyncio.wait_for(query, timeout=self._config.balance_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("%s balance on %s timed out; using zero", token.symbol, chain.name)
        except TransientNetworkError as exc:
            logger.warning("%s balance on %s unavailable (%s); using zero", token.symbol, chain.name, exc)
        return 0
