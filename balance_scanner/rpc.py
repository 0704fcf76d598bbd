"""Read-only JSON-RPC access to chain balances."""

import itertools
from typing import Any, List

import httpx

from deposit_core.erc20 import decode_uint, encode_balance_of
from deposit_core.errors import TransientNetworkError


class ChainReader:
    """Issues ``eth_getBalance`` and ``balanceOf`` reads against public RPCs."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._ids = itertools.count(1)

    async def native_balance(self, rpc_url: str, address: str) -> int:
        result = await self._rpc(rpc_url, "eth_getBalance", [address, "latest"])
        return _decode(result)

    async def token_balance(self, rpc_url: str, token_address: str, address: str) -> int:
        call = {"to": token_address, "data": encode_balance_of(address)}
        result = await self._rpc(rpc_url, "eth_call", [call, "latest"])
        return _decode(result)

    async def _rpc(self, rpc_url: str, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self._client.post(rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise TransientNetworkError(f"{method} against {rpc_url} failed: {exc}") from exc

        if not isinstance(body, dict):
            raise TransientNetworkError(f"{method} returned a malformed response.")
        if body.get("error"):
            raise TransientNetworkError(f"{method} returned an error: {body['error']}")
        return body.get("result")


def _decode(result: Any) -> int:
    try:
        return decode_uint(result)
    except ValueError as exc:
        raise TransientNetworkError(f"Malformed balance result: {result!r}") from exc
