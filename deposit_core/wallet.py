"""Wallet provider protocol and the per-route signer binding."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, Sequence

import httpx

from .chains import find_chain
from .erc20 import to_quantity
from .errors import (
    ConfigurationError,
    DepositEngineError,
    InsufficientFundsError,
    RpcError,
    SignatureRejectedError,
    TransactionRevertedError,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

USER_REJECTED_CODE = 4001
UNRECOGNIZED_CHAIN_CODE = 4902


class WalletProvider(Protocol):
    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        ...


ProviderFactory = Callable[[], Awaitable[WalletProvider]]


def raise_for_rpc_error(error: Mapping[str, Any]) -> None:
    code = error.get("code")
    message = str(error.get("message") or "JSON-RPC error")
    if code == USER_REJECTED_CODE:
        raise SignatureRejectedError(message)
    if "insufficient funds" in message.lower():
        raise InsufficientFundsError(message)
    raise RpcError(message, code=code if isinstance(code, int) else None)


class JsonRpcWalletProvider:
    """Forwards wallet requests to node endpoints that manage the account keys.

    Chain switching re-points the provider at the RPC URL registered for the
    requested chain id.
    """

    def __init__(
        self,
        rpc_urls: Mapping[int, str],
        chain_id: int,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if chain_id not in rpc_urls:
            raise ConfigurationError(f"No RPC URL configured for chain {chain_id}.")
        self._rpc_urls = dict(rpc_urls)
        self._chain_id = chain_id
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None
        self._ids = itertools.count(1)

    @property
    def chain_id(self) -> int:
        return self._chain_id

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        if method == "wallet_switchEthereumChain":
            return self._switch_chain(params or ())
        if method == "eth_chainId":
            return hex(self._chain_id)

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params or ()),
        }
        try:
            response = await self._client.post(self._rpc_urls[self._chain_id], json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise TransientNetworkError(f"{method} failed: {exc}") from exc

        if body.get("error"):
            raise_for_rpc_error(body["error"])
        return body.get("result")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _switch_chain(self, params: Sequence[Any]) -> None:
        if not params or "chainId" not in params[0]:
            raise RpcError("wallet_switchEthereumChain requires a chainId.")
        chain_id = int(params[0]["chainId"], 16)
        if chain_id not in self._rpc_urls:
            raise RpcError(f"Unrecognized chain {chain_id}.", code=UNRECOGNIZED_CHAIN_CODE)
        self._chain_id = chain_id
        return None


async def primary_account(provider: WalletProvider) -> str:
    accounts = await provider.request("eth_accounts")
    if not accounts:
        raise ConfigurationError("No wallet account found.")
    return accounts[0]


@dataclass(frozen=True)
class SignerBinding:
    """A provider bound to one chain and one sending address."""

    provider: WalletProvider
    chain_id: int
    address: str

    async def switch_chain(self, chain_id: int) -> "SignerBinding":
        try:
            await self.provider.request(
                "wallet_switchEthereumChain", [{"chainId": hex(chain_id)}]
            )
        except DepositEngineError as exc:
            logger.warning("Chain switch to %s not confirmed by wallet: %s", chain_id, exc)
        return replace(self, chain_id=chain_id)

    async def send_transaction(self, to: str, data: str, value: int = 0) -> str:
        tx: Dict[str, str] = {
            "from": self.address,
            "to": to,
            "data": data,
            "value": to_quantity(value),
        }
        tx_hash = await self.provider.request("eth_sendTransaction", [tx])
        if not isinstance(tx_hash, str) or not tx_hash.startswith("0x"):
            raise RpcError(f"Wallet returned an invalid transaction hash: {tx_hash!r}")
        logger.info("Broadcast %s on chain %s", tx_hash, self.chain_id)
        return tx_hash

    async def call(self, to: str, data: str) -> str:
        return await self.provider.request("eth_call", [{"to": to, "data": data}, "latest"])

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout_seconds: float,
        poll_interval_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> Dict[str, Any]:
        deadline = clock() + timeout_seconds
        while True:
            receipt = await self.provider.request("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                if receipt.get("status") == "0x0":
                    raise TransactionRevertedError(f"Transaction {tx_hash} reverted.")
                return receipt
            if clock() >= deadline:
                raise TransientNetworkError(f"Timed out waiting for receipt of {tx_hash}.")
            await sleep(poll_interval_seconds)

    def tx_link(self, tx_hash: str) -> Optional[str]:
        chain = find_chain(self.chain_id)
        return chain.tx_link(tx_hash) if chain else None
