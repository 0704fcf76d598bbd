"""Operator CLI for cross-chain deposits."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, Iterable, List, Optional

from deposit_core.chains import SUPPORTED_CHAINS
from deposit_core.config import EngineConfig
from deposit_core.errors import DepositEngineError
from deposit_core.wallet import JsonRpcWalletProvider, WalletProvider
from deposit_engine.engine import DepositEngine
from deposit_executor.status import ExecutionUpdate
from deposit_executor.tracker import ExecutionTracker

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="capital-deposit")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    chains_parser = subparsers.add_parser("chains")
    chains_parser.set_defaults(func=_list_chains)

    scan_parser = subparsers.add_parser("scan")
    scan_parser.add_argument("--address", required=True)
    scan_parser.set_defaults(func=_scan)

    plan_parser = subparsers.add_parser("plan")
    _add_plan_args(plan_parser)
    plan_parser.set_defaults(func=_plan)

    execute_parser = subparsers.add_parser("execute")
    _add_plan_args(execute_parser)
    execute_parser.add_argument(
        "--wallet-rpc",
        action="append",
        required=True,
        help="CHAIN_ID=URL of a node that signs for --address; repeat per chain.",
    )
    execute_parser.add_argument("--accept-partial", action="store_true")
    execute_parser.add_argument("--yes", action="store_true")
    execute_parser.set_defaults(func=_execute)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, stream=sys.stderr, format=_LOG_FORMAT)

    try:
        return args.func(args)
    except (ValueError, DepositEngineError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


def _list_chains(args: argparse.Namespace) -> int:
    config = EngineConfig.from_env()
    payload = [
        {
            "chain_id": chain.chain_id,
            "name": chain.name,
            "short_name": chain.short_name,
            "rpc_url": config.rpc_url(chain.chain_id),
            "settlement": chain.chain_id == config.settlement_chain_id,
            "tokens": [token.symbol for token in chain.tokens],
        }
        for chain in SUPPORTED_CHAINS
    ]
    print(json.dumps(payload, indent=2))
    return 0


def _scan(args: argparse.Namespace) -> int:
    async def run() -> list:
        async with _build_engine(EngineConfig.from_env()) as engine:
            return [balance.to_dict() for balance in await engine.scan(args.address)]

    print(json.dumps(asyncio.run(run()), indent=2))
    return 0


def _plan(args: argparse.Namespace) -> int:
    async def run() -> dict:
        async with _build_engine(EngineConfig.from_env()) as engine:
            balances = await engine.scan(args.address)
            plan = await engine.plan(args.amount, balances, args.address, args.recipient)
            return plan.to_dict()

    print(json.dumps(asyncio.run(run()), indent=2))
    return 0


def _execute(args: argparse.Namespace) -> int:
    config = EngineConfig.from_env()
    rpc_urls = _parse_wallet_rpcs(args.wallet_rpc)
    return asyncio.run(_execute_async(args, config, rpc_urls))


async def _execute_async(
    args: argparse.Namespace, config: EngineConfig, rpc_urls: Dict[int, str]
) -> int:
    async with _build_engine(config) as engine:
        balances = await engine.scan(args.address)
        plan = await engine.plan(args.amount, balances, args.address, args.recipient)
        print(json.dumps(plan.to_dict(), indent=2))

        if not plan.can_cover_full and not args.accept_partial:
            print(
                f"ERROR: only {plan.max_spendable_usd} of {plan.deposit_amount_usd} USD "
                "can be routed; pass --accept-partial to continue.",
                file=sys.stderr,
            )
            return 1
        if not args.yes and not _confirm("Confirm deposit execution? [y/N]: "):
            print("ERROR: Execution confirmation denied.", file=sys.stderr)
            return 1

        provider = _build_wallet_provider(rpc_urls, config.settlement_chain_id)

        async def provider_factory() -> WalletProvider:
            return provider

        tracker = ExecutionTracker(plan, delegate=_print_update)
        try:
            await engine.execute(plan, provider_factory, tracker, args.recipient)
        finally:
            await provider.aclose()

    summary = tracker.summary()
    print(summary.describe(), file=sys.stderr)
    return 0 if summary.failed == 0 else 1


def _add_plan_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--amount", required=True, help="Deposit amount in USD.")
    parser.add_argument("--address", required=True, help="Wallet holding the funds.")
    parser.add_argument("--recipient", required=True, help="Settlement-chain recipient.")


def _parse_wallet_rpcs(values: Iterable[str]) -> Dict[int, str]:
    rpc_urls: Dict[int, str] = {}
    for raw in values:
        if "=" not in raw:
            raise ValueError("Wallet RPC must be formatted as CHAIN_ID=URL.")
        chain_id, url = raw.split("=", 1)
        if not chain_id.strip().isdigit() or not url:
            raise ValueError(f"Invalid wallet RPC entry: {raw}")
        rpc_urls[int(chain_id)] = url
    return rpc_urls


def _build_engine(config: EngineConfig) -> DepositEngine:
    return DepositEngine.from_config(config)


def _build_wallet_provider(rpc_urls: Dict[int, str], chain_id: int) -> JsonRpcWalletProvider:
    return JsonRpcWalletProvider(rpc_urls, chain_id=chain_id)


def _print_update(update: ExecutionUpdate) -> None:
    print(json.dumps(update.to_dict()), flush=True)


def _confirm(prompt: str) -> bool:
    response = input(prompt)
    return response.strip().lower() in {"y", "yes"}


if __name__ == "__main__":
    raise SystemExit(main())
