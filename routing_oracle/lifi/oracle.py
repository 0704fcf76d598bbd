"""LI.FI implementation of the routing oracle interface."""

import logging
from typing import Optional

import httpx

from deposit_core.config import EngineConfig
from deposit_core.wallet import SignerBinding

from ..base import ProgressHook, RouteQuote, RouteRequest
from .client import LifiClient
from .executor import LifiRouteExecutor
from .models import parse_route

logger = logging.getLogger(__name__)


class LifiRoutingOracle:
    def __init__(self, client: LifiClient, executor: LifiRouteExecutor) -> None:
        self._client = client
        self._executor = executor

    @classmethod
    def from_config(cls, http_client: httpx.AsyncClient, config: EngineConfig) -> "LifiRoutingOracle":
        client = LifiClient.from_config(http_client, config)
        return cls(client, LifiRouteExecutor(client, config))

    async def get_routes(self, request: RouteRequest) -> Optional[RouteQuote]:
        routes = await self._client.advanced_routes(request)
        if not routes:
            logger.info(
                "No LI.FI route from chain %s token %s",
                request.from_chain_id,
                request.from_token_address,
            )
            return None
        return parse_route(routes[0])

    async def execute_route(
        self, route: RouteQuote, signer: SignerBinding, progress_hook: ProgressHook
    ) -> None:
        await self._executor.execute(route, signer, progress_hook)
