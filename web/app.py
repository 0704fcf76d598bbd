"""Local-first FastAPI shell for balance scanning and deposit planning."""

from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from balance_scanner.models import ChainBalance
from deposit_core.chains import SUPPORTED_CHAINS
from deposit_core.config import EngineConfig
from deposit_core.errors import DepositEngineError
from deposit_engine.engine import DepositEngine

_ENGINE: Optional[DepositEngine] = None


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    global _ENGINE
    yield
    if _ENGINE is not None:
        await _ENGINE.aclose()
        _ENGINE = None


app = FastAPI(
    title="Capital Deposit",
    description="Local-first deposit planner",
    lifespan=_lifespan,
)


class BalancesRequest(BaseModel):
    address: str


class BalanceInput(BaseModel):
    chain_id: int
    chain_name: str
    token_symbol: str
    token_address: str
    decimals: int
    raw_balance: str
    balance: str
    balance_usd: Decimal


class PlanRequest(BaseModel):
    amount_usd: Decimal
    from_address: str
    to_address: str
    balances: Optional[List[BalanceInput]] = None


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_errors(request: Request, exc: Exception):
    return JSONResponse({"error": str(exc)}, status_code=400)


for _exc_class in (DepositEngineError, ValueError):
    app.add_exception_handler(_exc_class, _handle_errors)


@app.get("/api/chains")
async def list_chains() -> JSONResponse:
    config = _get_engine().config
    return JSONResponse(
        [
            {
                "chain_id": chain.chain_id,
                "name": chain.name,
                "short_name": chain.short_name,
                "settlement": chain.chain_id == config.settlement_chain_id,
                "tokens": [token.symbol for token in chain.tokens],
            }
            for chain in SUPPORTED_CHAINS
        ]
    )


@app.post("/api/balances")
async def scan_balances(payload: BalancesRequest) -> JSONResponse:
    balances = await _get_engine().scan(payload.address)
    return JSONResponse({"balances": [balance.to_dict() for balance in balances]})


@app.post("/api/plans")
async def create_plan(payload: PlanRequest) -> JSONResponse:
    engine = _get_engine()
    if payload.balances is None:
        balances = await engine.scan(payload.from_address)
    else:
        balances = tuple(_balance_from_input(item) for item in payload.balances)
    plan = await engine.plan(payload.amount_usd, balances, payload.from_address, payload.to_address)
    return JSONResponse({"plan": plan.to_dict()})


def _balance_from_input(item: BalanceInput) -> ChainBalance:
    return ChainBalance(
        chain_id=item.chain_id,
        chain_name=item.chain_name,
        token_symbol=item.token_symbol,
        token_address=item.token_address,
        decimals=item.decimals,
        raw_balance=int(item.raw_balance),
        balance=item.balance,
        balance_usd=item.balance_usd,
    )


def _get_engine() -> DepositEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = DepositEngine.from_config(EngineConfig.from_env())
    return _ENGINE


def _set_engine(engine: Optional[DepositEngine]) -> None:
    global _ENGINE
    _ENGINE = engine
