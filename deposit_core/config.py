"""Engine configuration models."""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, model_validator

from .chains import ChainSpec, TokenSpec, chain_by_id
from .errors import ConfigurationError

_ENV_PREFIX = "DEPOSIT_ENGINE_"


class EngineConfig(BaseModel):
    """Configures the scanner, planner, routing oracle, and orchestrator."""

    settlement_chain_id: int = 42161
    settlement_token_symbol: str = "USDC"

    dust_threshold_usd: Decimal = Field(default=Decimal("0.50"), ge=0)
    coverage_epsilon_usd: Decimal = Field(default=Decimal("0.01"), ge=0)
    token_priority: Tuple[str, ...] = ("USDC", "USDT")

    balance_timeout_seconds: float = Field(default=10.0, gt=0.0)
    route_timeout_seconds: float = Field(default=20.0, gt=0.0)
    price_timeout_seconds: float = Field(default=5.0, gt=0.0)
    receipt_timeout_seconds: float = Field(default=300.0, gt=0.0)
    bridge_timeout_seconds: float = Field(default=3600.0, gt=0.0)
    status_poll_interval_seconds: float = Field(default=5.0, gt=0.0)

    price_feed_url: str = "https://api.coingecko.com/api/v3/simple/price"
    price_asset_id: str = "ethereum"
    default_native_price_usd: Decimal = Field(default=Decimal("2600"), gt=0)
    price_max_age_seconds: float = Field(default=60.0, ge=0.0)

    routing_api_url: str = "https://li.quest/v1"
    routing_integrator: str = "capital-deposit"
    routing_api_key: Optional[str] = None
    route_slippage: float = Field(default=0.005, gt=0.0, lt=1.0)
    route_order: str = "RECOMMENDED"

    rpc_overrides: Dict[int, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_settlement_asset(self) -> "EngineConfig":
        try:
            self.settlement_token()
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from None
        return self

    def settlement_chain(self) -> ChainSpec:
        return chain_by_id(self.settlement_chain_id)

    def settlement_token(self) -> TokenSpec:
        return self.settlement_chain().token(self.settlement_token_symbol)

    def rpc_url(self, chain_id: int) -> str:
        if chain_id in self.rpc_overrides:
            return self.rpc_overrides[chain_id]
        return chain_by_id(chain_id).rpc_url

    def token_rank(self, symbol: str) -> int:
        if symbol in self.token_priority:
            return self.token_priority.index(symbol)
        return len(self.token_priority)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``DEPOSIT_ENGINE_*`` variables.

        ``DEPOSIT_ENGINE_RPC_<CHAIN_ID>`` overrides a chain's RPC URL and
        ``DEPOSIT_ENGINE_TOKEN_PRIORITY`` is a comma-separated symbol list.
        """

        env = os.environ if environ is None else environ
        values: Dict[str, object] = {}
        overrides: Dict[int, str] = {}
        rpc_prefix = _ENV_PREFIX + "RPC_"

        for key, raw in env.items():
            if not key.startswith(_ENV_PREFIX):
                continue
            if key.startswith(rpc_prefix):
                chain_part = key[len(rpc_prefix):]
                if not chain_part.isdigit():
                    raise ConfigurationError(f"Invalid RPC override variable: {key}")
                overrides[int(chain_part)] = raw
                continue
            field_name = key[len(_ENV_PREFIX):].lower()
            if field_name not in cls.model_fields:
                continue
            if field_name == "token_priority":
                values[field_name] = tuple(
                    part.strip() for part in raw.split(",") if part.strip()
                )
            else:
                values[field_name] = raw

        if overrides:
            values["rpc_overrides"] = overrides

        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid engine configuration: {exc}") from exc
