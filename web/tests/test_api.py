"""Smoke tests for the deposit planning web API."""

import unittest
from decimal import Decimal

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from deposit_core.config import EngineConfig
from deposit_core.erc20 import require_address
from deposit_engine.engine import DepositEngine
from deposit_executor.orchestrator import DepositOrchestrator
from deposit_planner.planner import DepositPlanner
from routing_oracle.base import RouteQuote
from web import app as web_app

WALLET = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"

BASE_USDC = {
    "chain_id": 8453,
    "chain_name": "Base",
    "token_symbol": "USDC",
    "token_address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    "decimals": 6,
    "raw_balance": "45000000",
    "balance": "45.00",
    "balance_usd": "45.00",
}


class StaticScanner:
    def __init__(self):
        self.calls = []

    async def scan(self, address):
        require_address(address, "Holder address")
        self.calls.append(address)
        return (web_app._balance_from_input(web_app.BalanceInput(**BASE_USDC)),)


class Oracle:
    async def get_routes(self, request):
        return RouteQuote(
            route_id="quote-1",
            from_chain_id=request.from_chain_id,
            to_chain_id=request.to_chain_id,
            from_amount=request.from_amount,
            to_amount_min=request.from_amount,
            estimated_duration_seconds=120,
            estimated_fees_usd=Decimal("0.40"),
            handle=None,
        )

    async def execute_route(self, route, signer, progress_hook):
        raise AssertionError("the web API never executes routes")


class WebApiTests(unittest.TestCase):
    def setUp(self) -> None:
        config = EngineConfig()
        oracle = Oracle()
        self.scanner = StaticScanner()
        web_app._set_engine(
            DepositEngine(
                config,
                self.scanner,
                DepositPlanner(oracle, config),
                DepositOrchestrator(oracle, config),
            )
        )
        self.client = TestClient(web_app.app)

    def tearDown(self) -> None:
        web_app._set_engine(None)

    def test_chains(self) -> None:
        response = self.client.get("/api/chains")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual([chain["short_name"] for chain in payload], ["ARB", "BASE", "OP", "SCR", "ZKS"])
        self.assertTrue(payload[0]["settlement"])

    def test_balances(self) -> None:
        response = self.client.post("/api/balances", json={"address": WALLET})
        self.assertEqual(response.status_code, 200)
        balances = response.json()["balances"]
        self.assertEqual(balances[0]["chain_id"], 8453)
        self.assertEqual(balances[0]["balance_usd"], "45.00")

    def test_invalid_address_returns_error(self) -> None:
        response = self.client.post("/api/balances", json={"address": "0xbad"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Holder address", response.json()["error"])

    def test_plan_scans_when_balances_omitted(self) -> None:
        response = self.client.post(
            "/api/plans",
            json={"amount_usd": "30", "from_address": WALLET, "to_address": RECIPIENT},
        )
        self.assertEqual(response.status_code, 200)
        plan = response.json()["plan"]
        self.assertEqual(plan["shortfall_usd"], "30")
        self.assertEqual(plan["sources"][0]["route_id"], "quote-1")
        self.assertEqual(plan["total_estimated_time_seconds"], 120)
        self.assertEqual(self.scanner.calls, [WALLET])

    def test_plan_with_supplied_balances(self) -> None:
        response = self.client.post(
            "/api/plans",
            json={
                "amount_usd": "60",
                "from_address": WALLET,
                "to_address": RECIPIENT,
                "balances": [BASE_USDC],
            },
        )
        self.assertEqual(response.status_code, 200)
        plan = response.json()["plan"]
        self.assertFalse(plan["can_cover_full"])
        self.assertEqual(plan["max_spendable_usd"], "45.00")
        self.assertEqual(self.scanner.calls, [])

    def test_invalid_amount_returns_error(self) -> None:
        response = self.client.post(
            "/api/plans",
            json={"amount_usd": "0", "from_address": WALLET, "to_address": RECIPIENT, "balances": []},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Deposit amount", response.json()["error"])


class LocalOnlyMiddlewareTests(unittest.IsolatedAsyncioTestCase):
    def _request(self, host: str) -> Request:
        return Request(
            {
                "type": "http",
                "method": "GET",
                "path": "/api/chains",
                "headers": [],
                "client": (host, 40000),
            }
        )

    async def test_remote_clients_rejected(self) -> None:
        async def call_next(request):
            raise AssertionError("remote request reached the app")

        response = await web_app._local_only(self._request("203.0.113.7"), call_next)
        self.assertEqual(response.status_code, 403)

    async def test_loopback_clients_pass_through(self) -> None:
        async def call_next(request):
            return JSONResponse({"ok": True})

        response = await web_app._local_only(self._request("127.0.0.1"), call_next)
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
