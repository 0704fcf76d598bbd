"""Public facade wiring the scanner, planner, and orchestrator together."""

from decimal import Decimal
from typing import Iterable, Optional, Tuple, Union

import httpx

from balance_scanner.models import ChainBalance
from balance_scanner.prices import ReferencePriceCache
from balance_scanner.rpc import ChainReader
from balance_scanner.scanner import BalanceScanner
from deposit_core.config import EngineConfig
from deposit_core.wallet import ProviderFactory
from deposit_executor.orchestrator import DepositOrchestrator
from deposit_executor.status import UpdateCallback
from deposit_planner.models import DepositPlan
from deposit_planner.planner import DepositPlanner
from routing_oracle.base import RoutingOracle
from routing_oracle.lifi.oracle import LifiRoutingOracle


class DepositEngine:
    """``scan`` -> ``plan`` -> ``execute``, sharing one HTTP client.

    ``http_client`` is the client the engine owns and closes on exit.
    """

    def __init__(
        self,
        config: EngineConfig,
        scanner: BalanceScanner,
        planner: DepositPlanner,
        orchestrator: DepositOrchestrator,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self._scanner = scanner
        self._planner = planner
        self._orchestrator = orchestrator
        self._http_client = http_client

    @classmethod
    def from_config(
        cls,
        config: Optional[EngineConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        oracle: Optional[RoutingOracle] = None,
    ) -> "DepositEngine":
        config = config or EngineConfig()
        client = http_client or httpx.AsyncClient(timeout=config.route_timeout_seconds)
        oracle = oracle or LifiRoutingOracle.from_config(client, config)
        scanner = BalanceScanner(config, ChainReader(client), ReferencePriceCache(client, config))
        return cls(
            config=config,
            scanner=scanner,
            planner=DepositPlanner(oracle, config),
            orchestrator=DepositOrchestrator(oracle, config),
            http_client=client if http_client is None else None,
        )

    async def __aenter__(self) -> "DepositEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()

    async def scan(self, address: str) -> Tuple[ChainBalance, ...]:
        return await self._scanner.scan(address)

    async def plan(
        self,
        amount_usd: Union[Decimal, int, float, str],
        balances: Iterable[ChainBalance],
        from_address: str,
        to_address: str,
    ) -> DepositPlan:
        return await self._planner.plan(amount_usd, balances, from_address, to_address)

    async def execute(
        self,
        plan: DepositPlan,
        provider_factory: ProviderFactory,
        on_update: UpdateCallback,
        recipient_address: str,
    ) -> None:
        await self._orchestrator.execute(plan, provider_factory, on_update, recipient_address)
