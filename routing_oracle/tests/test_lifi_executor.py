"""Tests for step-by-step LI.FI route execution."""

import unittest

from deposit_core.config import EngineConfig
from deposit_core.errors import (
    RouteExecutionError,
    SignatureRejectedError,
    TransientNetworkError,
)
from deposit_core.wallet import SignerBinding
from routing_oracle.base import ProcessStatus, ProcessType, RouteQuote
from routing_oracle.lifi.executor import LifiRouteExecutor
from routing_oracle.lifi.models import parse_route

from lifi_fixtures import APPROVAL, BASE_USDC, ROUTER, bridge_route

ACCOUNT = "0x1111111111111111111111111111111111111111"


def _word(value: int) -> str:
    return "0x" + format(value, "x").rjust(64, "0")


class ScriptedProvider:
    def __init__(self, allowance=0, send_error=None):
        self.allowance = allowance
        self.send_error = send_error
        self.calls = []
        self._hashes = iter("0x" + str(n) * 64 for n in range(1, 10))

    async def request(self, method, params=None):
        self.calls.append((method, params))
        if method == "eth_call":
            return _word(self.allowance)
        if method == "eth_sendTransaction":
            if self.send_error is not None:
                raise self.send_error
            return next(self._hashes)
        if method == "eth_getTransactionReceipt":
            return {"status": "0x1"}
        return None


class FakeLifiClient:
    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.prepared = []
        self.status_calls = []

    async def step_transaction(self, step):
        self.prepared.append(step["id"])
        return {"transactionRequest": {"to": ROUTER, "data": "0xfeed", "value": "0x0"}}

    async def status(self, tx_hash, bridge, from_chain_id, to_chain_id):
        self.status_calls.append((tx_hash, bridge, from_chain_id, to_chain_id))
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        return status


class TickingClock:
    def __init__(self, step=1.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


async def _no_sleep(seconds: float) -> None:
    return None


class LifiRouteExecutorTests(unittest.IsolatedAsyncioTestCase):
    def _run(self, client, provider, config=None, clock=None):
        executor = LifiRouteExecutor(
            client, config or EngineConfig(), sleep=_no_sleep, clock=clock or TickingClock()
        )
        signer = SignerBinding(provider, 42161, ACCOUNT)
        updates = []
        return executor.execute(parse_route(bridge_route()), signer, updates.append), updates

    async def test_bridge_step_reports_every_process(self) -> None:
        client = FakeLifiClient(
            [
                {"status": "PENDING", "substatus": "WAIT_SOURCE_CONFIRMATIONS"},
                {"status": "PENDING", "substatus": "WAIT_DESTINATION_TRANSACTION"},
                {"status": "DONE", "receiving": {"txHash": "0xdest", "txLink": "https://arbiscan.io/tx/0xdest"}},
            ]
        )
        provider = ScriptedProvider(allowance=0)
        run, updates = self._run(client, provider)
        await run

        self.assertEqual(
            [(u.process_type, u.status) for u in updates],
            [
                (ProcessType.TOKEN_ALLOWANCE, ProcessStatus.ACTION_REQUIRED),
                (ProcessType.TOKEN_ALLOWANCE, ProcessStatus.PENDING),
                (ProcessType.TOKEN_ALLOWANCE, ProcessStatus.DONE),
                (ProcessType.CROSS_CHAIN, ProcessStatus.ACTION_REQUIRED),
                (ProcessType.CROSS_CHAIN, ProcessStatus.PENDING),
                (ProcessType.CROSS_CHAIN, ProcessStatus.PENDING),
                (ProcessType.RECEIVING_CHAIN, ProcessStatus.PENDING),
                (ProcessType.CROSS_CHAIN, ProcessStatus.DONE),
                (ProcessType.RECEIVING_CHAIN, ProcessStatus.DONE),
            ],
        )
        self.assertEqual(updates[1].tx_link, f"https://basescan.org/tx/{updates[1].tx_hash}")
        self.assertEqual(updates[-1].tx_hash, "0xdest")
        self.assertEqual(updates[-1].chain_id, 42161)

        methods = [method for method, _ in provider.calls]
        self.assertEqual(methods[0], "wallet_switchEthereumChain")
        self.assertEqual(provider.calls[0][1], [{"chainId": hex(8453)}])
        approve = [params[0] for method, params in provider.calls if method == "eth_sendTransaction"][0]
        self.assertEqual(approve["to"], BASE_USDC)
        self.assertIn(APPROVAL[2:].lower(), approve["data"])
        self.assertEqual(client.status_calls[0][1:], ("across", 8453, 42161))

    async def test_existing_allowance_skips_approval(self) -> None:
        client = FakeLifiClient([{"status": "DONE"}])
        provider = ScriptedProvider(allowance=10**12)
        run, updates = self._run(client, provider)
        await run

        self.assertNotIn(ProcessType.TOKEN_ALLOWANCE, [u.process_type for u in updates])
        sends = [method for method, _ in provider.calls if method == "eth_sendTransaction"]
        self.assertEqual(len(sends), 1)

    async def test_status_lookup_errors_keep_polling(self) -> None:
        client = FakeLifiClient([TransientNetworkError("not indexed"), {"status": "DONE"}])
        run, updates = self._run(client, ScriptedProvider(allowance=10**12))
        await run
        self.assertEqual(updates[-1].process_type, ProcessType.RECEIVING_CHAIN)

    async def test_failed_bridge_raises(self) -> None:
        client = FakeLifiClient([{"status": "FAILED", "substatusMessage": "Refunded on source."}])
        run, _ = self._run(client, ScriptedProvider(allowance=10**12))
        with self.assertRaises(RouteExecutionError) as ctx:
            await run
        self.assertIn("Refunded", str(ctx.exception))

    async def test_bridge_deadline(self) -> None:
        client = FakeLifiClient([{"status": "PENDING"}])
        config = EngineConfig(bridge_timeout_seconds=10, status_poll_interval_seconds=5)
        run, _ = self._run(client, ScriptedProvider(allowance=10**12), config, TickingClock(4.0))
        with self.assertRaises(RouteExecutionError):
            await run

    async def test_rejected_signature_propagates(self) -> None:
        provider = ScriptedProvider(allowance=10**12, send_error=SignatureRejectedError("denied"))
        run, updates = self._run(client=FakeLifiClient([{"status": "DONE"}]), provider=provider)
        with self.assertRaises(SignatureRejectedError):
            await run
        self.assertEqual(updates[-1].status, ProcessStatus.ACTION_REQUIRED)

    async def test_foreign_route_handle_rejected(self) -> None:
        quote = parse_route(bridge_route())
        foreign = RouteQuote(
            route_id=quote.route_id,
            from_chain_id=quote.from_chain_id,
            to_chain_id=quote.to_chain_id,
            from_amount=quote.from_amount,
            to_amount_min=quote.to_amount_min,
            estimated_duration_seconds=quote.estimated_duration_seconds,
            estimated_fees_usd=quote.estimated_fees_usd,
            handle={"id": "raw"},
        )
        executor = LifiRouteExecutor(FakeLifiClient([{}]), EngineConfig(), sleep=_no_sleep)
        with self.assertRaises(RouteExecutionError):
            await executor.execute(foreign, SignerBinding(ScriptedProvider(), 8453, ACCOUNT), print)


if __name__ == "__main__":
    unittest.main()
