"""Thin async client for the LI.FI REST API."""

from typing import Any, Dict, List, Mapping, Optional

import httpx

from deposit_core.config import EngineConfig
from deposit_core.errors import RouteUnavailableError, TransientNetworkError

from ..base import RouteRequest
from .models import route_request_payload


class LifiClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://li.quest/v1",
        integrator: str = "capital-deposit",
        api_key: Optional[str] = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._integrator = integrator
        self._headers = {"x-lifi-integrator": integrator}
        if api_key:
            self._headers["x-lifi-api-key"] = api_key

    @classmethod
    def from_config(cls, client: httpx.AsyncClient, config: EngineConfig) -> "LifiClient":
        return cls(
            client,
            base_url=config.routing_api_url,
            integrator=config.routing_integrator,
            api_key=config.routing_api_key,
        )

    async def advanced_routes(self, request: RouteRequest) -> List[Dict[str, Any]]:
        body = await self._send(
            "POST",
            "/advanced/routes",
            json=route_request_payload(request, self._integrator),
        )
        return list(body.get("routes") or ())

    async def step_transaction(self, step: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._send("POST", "/advanced/stepTransaction", json=dict(step))

    async def status(
        self, tx_hash: str, bridge: str, from_chain_id: int, to_chain_id: int
    ) -> Dict[str, Any]:
        return await self._send(
            "GET",
            "/status",
            params={
                "txHash": tx_hash,
                "bridge": bridge,
                "fromChain": from_chain_id,
                "toChain": to_chain_id,
            },
        )

    async def _send(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(
                method, self._base_url + path, headers=self._headers, **kwargs
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransientNetworkError(f"LI.FI {path} unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise RouteUnavailableError(
                f"LI.FI {path} returned {response.status_code}: {_error_message(response)}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise TransientNetworkError(f"LI.FI {path} returned invalid JSON.") from exc
        if not isinstance(body, dict):
            raise TransientNetworkError(f"LI.FI {path} returned an unexpected payload.")
        return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text
