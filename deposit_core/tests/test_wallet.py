"""Tests for the JSON-RPC wallet provider and signer binding."""

import json
import unittest

import httpx

from deposit_core.errors import (
    ConfigurationError,
    InsufficientFundsError,
    RpcError,
    SignatureRejectedError,
    TransactionRevertedError,
    TransientNetworkError,
)
from deposit_core.wallet import JsonRpcWalletProvider, SignerBinding, primary_account

ACCOUNT = "0x1111111111111111111111111111111111111111"
TOKEN = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ab" * 32


class ScriptedProvider:
    """Answers wallet requests from a dict of method -> result or list of results."""

    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []

    async def request(self, method, params=None):
        self.calls.append((method, params))
        value = self.responses.get(method)
        if isinstance(value, list):
            value = value.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


class JsonRpcWalletProviderTests(unittest.IsolatedAsyncioTestCase):
    def _provider(self, handler, rpc_urls=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        self.addAsyncCleanup(client.aclose)
        urls = rpc_urls or {42161: "http://arb.local", 8453: "http://base.local"}
        return JsonRpcWalletProvider(urls, chain_id=42161, client=client)

    async def test_forwards_requests_to_current_chain(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            seen.append((str(request.url), body["method"]))
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": [ACCOUNT]})

        provider = self._provider(handler)
        self.assertEqual(await primary_account(provider), ACCOUNT)
        await provider.request("wallet_switchEthereumChain", [{"chainId": hex(8453)}])
        self.assertEqual(await provider.request("eth_chainId"), hex(8453))
        await provider.request("eth_accounts")
        self.assertEqual(
            seen,
            [("http://arb.local", "eth_accounts"), ("http://base.local", "eth_accounts")],
        )

    async def test_switch_to_unknown_chain(self) -> None:
        provider = self._provider(lambda request: httpx.Response(500))
        with self.assertRaises(RpcError) as ctx:
            await provider.request("wallet_switchEthereumChain", [{"chainId": hex(10)}])
        self.assertEqual(ctx.exception.code, 4902)

    async def test_rpc_error_mapping(self) -> None:
        errors = iter(
            [
                {"code": 4001, "message": "User rejected the request."},
                {"code": -32000, "message": "insufficient funds for gas"},
                {"code": -32601, "message": "method not found"},
            ]
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": next(errors)})

        provider = self._provider(handler)
        with self.assertRaises(SignatureRejectedError):
            await provider.request("eth_sendTransaction", [{}])
        with self.assertRaises(InsufficientFundsError):
            await provider.request("eth_sendTransaction", [{}])
        with self.assertRaises(RpcError) as ctx:
            await provider.request("eth_foo")
        self.assertEqual(ctx.exception.code, -32601)

    async def test_http_failure_is_transient(self) -> None:
        provider = self._provider(lambda request: httpx.Response(502))
        with self.assertRaises(TransientNetworkError):
            await provider.request("eth_accounts")

    def test_requires_url_for_initial_chain(self) -> None:
        with self.assertRaises(ConfigurationError):
            JsonRpcWalletProvider({8453: "http://base.local"}, chain_id=42161)


class SignerBindingTests(unittest.IsolatedAsyncioTestCase):
    async def test_primary_account_requires_one(self) -> None:
        with self.assertRaises(ConfigurationError):
            await primary_account(ScriptedProvider({"eth_accounts": [[]]}))

    async def test_switch_chain_is_best_effort(self) -> None:
        provider = ScriptedProvider(
            {"wallet_switchEthereumChain": RpcError("unsupported", code=4902)}
        )
        signer = SignerBinding(provider, 42161, ACCOUNT)
        switched = await signer.switch_chain(8453)
        self.assertEqual(switched.chain_id, 8453)
        self.assertEqual(signer.chain_id, 42161)

    async def test_send_transaction(self) -> None:
        provider = ScriptedProvider({"eth_sendTransaction": TX_HASH})
        signer = SignerBinding(provider, 42161, ACCOUNT)
        self.assertEqual(await signer.send_transaction(TOKEN, "0xdeadbeef"), TX_HASH)
        method, params = provider.calls[0]
        self.assertEqual(method, "eth_sendTransaction")
        self.assertEqual(params[0]["from"], ACCOUNT)
        self.assertEqual(params[0]["value"], "0x0")
        self.assertEqual(signer.tx_link(TX_HASH), f"https://arbiscan.io/tx/{TX_HASH}")

    async def test_send_transaction_rejects_bad_hash(self) -> None:
        signer = SignerBinding(ScriptedProvider({"eth_sendTransaction": None}), 42161, ACCOUNT)
        with self.assertRaises(RpcError):
            await signer.send_transaction(TOKEN, "0x")

    async def test_wait_for_receipt_polls_until_mined(self) -> None:
        provider = ScriptedProvider(
            {"eth_getTransactionReceipt": [None, None, {"status": "0x1"}]}
        )
        sleeps = []

        async def sleep(seconds: float) -> None:
            sleeps.append(seconds)

        signer = SignerBinding(provider, 42161, ACCOUNT)
        receipt = await signer.wait_for_receipt(TX_HASH, 60, 1.5, sleep=sleep, clock=lambda: 0.0)
        self.assertEqual(receipt["status"], "0x1")
        self.assertEqual(sleeps, [1.5, 1.5])

    async def test_wait_for_receipt_reverted(self) -> None:
        provider = ScriptedProvider({"eth_getTransactionReceipt": {"status": "0x0"}})
        signer = SignerBinding(provider, 42161, ACCOUNT)
        with self.assertRaises(TransactionRevertedError):
            await signer.wait_for_receipt(TX_HASH, 60)

    async def test_wait_for_receipt_times_out(self) -> None:
        ticks = iter([0.0, 5.0, 11.0])

        async def sleep(seconds: float) -> None:
            return None

        provider = ScriptedProvider({"eth_getTransactionReceipt": None})
        signer = SignerBinding(provider, 42161, ACCOUNT)
        with self.assertRaises(TransientNetworkError):
            await signer.wait_for_receipt(TX_HASH, 10, sleep=sleep, clock=lambda: next(ticks))


if __name__ == "__main__":
    unittest.main()
