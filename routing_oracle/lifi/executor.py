"""Executes LI.FI routes step by step through a signer binding."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from deposit_core.config import EngineConfig
from deposit_core.erc20 import decode_uint, encode_allowance, encode_approve
from deposit_core.errors import (
    RouteExecutionError,
    RouteUnavailableError,
    TransientNetworkError,
)
from deposit_core.wallet import SignerBinding

from ..base import ProcessStatus, ProcessType, ProcessUpdate, ProgressHook, RouteQuote
from .client import LifiClient
from .models import LifiRoute, LifiStep

logger = logging.getLogger(__name__)

_FAILED_BRIDGE_STATUSES = {"FAILED", "INVALID"}


class LifiRouteExecutor:
    """Drives approval, broadcast, and bridge tracking for every route step.

    Each step runs on its source chain: the signer is re-bound to that chain,
    the step transaction is fetched from LI.FI, any ERC-20 allowance shortfall
    is approved first, and cross-chain steps are polled until the destination
    side settles. Every status poll is reported through the progress hook,
    including repeats.
    """

    def __init__(
        self,
        client: LifiClient,
        config: EngineConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._poll_interval = config.status_poll_interval_seconds
        self._receipt_timeout = config.receipt_timeout_seconds
        self._bridge_timeout = config.bridge_timeout_seconds
        self._sleep = sleep
        self._clock = clock

    async def execute(self, route: RouteQuote, signer: SignerBinding, hook: ProgressHook) -> None:
        lifi_route = route.handle
        if not isinstance(lifi_route, LifiRoute):
            raise RouteExecutionError("Route was not produced by the LI.FI oracle.")

        for index, step in enumerate(lifi_route.steps):
            if signer.chain_id != step.from_chain_id:
                signer = await signer.switch_chain(step.from_chain_id)
            await self._execute_step(index, step, signer, hook)

    async def _execute_step(
        self, index: int, step: LifiStep, signer: SignerBinding, hook: ProgressHook
    ) -> None:
        prepared = await self._client.step_transaction(step.raw)
        tx_request = prepared.get("transactionRequest")
        if not tx_request or not tx_request.get("to"):
            raise RouteExecutionError(f"LI.FI returned no transaction for step {step.step_id}.")

        if not step.is_native_source and step.approval_address:
            await self._ensure_allowance(index, step, signer, hook)

        process_type = ProcessType.CROSS_CHAIN if step.is_cross_chain else ProcessType.SWAP
        hook(self._update(index, step, process_type, ProcessStatus.ACTION_REQUIRED))
        tx_hash = await signer.send_transaction(
            to=tx_request["to"],
            data=tx_request.get("data") or "0x",
            value=decode_uint(tx_request.get("value") or "0x0"),
        )
        hook(self._update(index, step, process_type, ProcessStatus.PENDING, signer, tx_hash))
        await self._wait_for_receipt(signer, tx_hash)

        if step.is_cross_chain:
            await self._await_bridge(index, step, signer, tx_hash, hook)
        else:
            hook(self._update(index, step, process_type, ProcessStatus.DONE, signer, tx_hash))

    async def _ensure_allowance(
        self, index: int, step: LifiStep, signer: SignerBinding, hook: ProgressHook
    ) -> None:
        spender = step.approval_address
        current = decode_uint(
            await signer.call(step.from_token_address, encode_allowance(signer.address, spender))
        )
        if current >= step.from_amount:
            logger.debug("Allowance %s already covers step %s", current, step.step_id)
            return

        process_type = ProcessType.TOKEN_ALLOWANCE
        hook(self._update(index, step, process_type, ProcessStatus.ACTION_REQUIRED))
        tx_hash = await signer.send_transaction(
            to=step.from_token_address,
            data=encode_approve(spender, step.from_amount),
        )
        hook(self._update(index, step, process_type, ProcessStatus.PENDING, signer, tx_hash))
        await self._wait_for_receipt(signer, tx_hash)
        hook(self._update(index, step, process_type, ProcessStatus.DONE, signer, tx_hash))

    async def _wait_for_receipt(self, signer: SignerBinding, tx_hash: str) -> None:
        await signer.wait_for_receipt(
            tx_hash,
            timeout_seconds=self._receipt_timeout,
            poll_interval_seconds=min(self._poll_interval, 2.0),
            sleep=self._sleep,
            clock=self._clock,
        )

    async def _await_bridge(
        self,
        index: int,
        step: LifiStep,
        signer: SignerBinding,
        tx_hash: str,
        hook: ProgressHook,
    ) -> None:
        deadline = self._clock() + self._bridge_timeout
        while True:
            try:
                status = await self._client.status(
                    tx_hash, step.tool, step.from_chain_id, step.to_chain_id
                )
            except (TransientNetworkError, RouteUnavailableError) as exc:
                logger.debug("Bridge status for %s not available yet: %s", tx_hash, exc)
                status = {"status": "NOT_FOUND"}

            state = str(status.get("status", "NOT_FOUND")).upper()
            if state == "DONE":
                receiving = _receiving_tx(status)
                hook(self._update(index, step, ProcessType.CROSS_CHAIN, ProcessStatus.DONE, signer, tx_hash))
                hook(
                    ProcessUpdate(
                        step_index=index,
                        process_type=ProcessType.RECEIVING_CHAIN,
                        status=ProcessStatus.DONE,
                        token_symbol=step.from_token_symbol,
                        chain_id=step.to_chain_id,
                        tx_hash=receiving.get("txHash"),
                        tx_link=receiving.get("txLink"),
                    )
                )
                return
            if state in _FAILED_BRIDGE_STATUSES:
                message = status.get("substatusMessage") or f"Bridge reported {state}."
                raise RouteExecutionError(str(message))

            if status.get("substatus") == "WAIT_DESTINATION_TRANSACTION":
                hook(
                    ProcessUpdate(
                        step_index=index,
                        process_type=ProcessType.RECEIVING_CHAIN,
                        status=ProcessStatus.PENDING,
                        token_symbol=step.from_token_symbol,
                        chain_id=step.to_chain_id,
                    )
                )
            else:
                hook(self._update(index, step, ProcessType.CROSS_CHAIN, ProcessStatus.PENDING, signer, tx_hash))

            if self._clock() >= deadline:
                raise RouteExecutionError(f"Bridge transfer {tx_hash} did not settle in time.")
            await self._sleep(self._poll_interval)

    def _update(
        self,
        index: int,
        step: LifiStep,
        process_type: ProcessType,
        status: ProcessStatus,
        signer: Optional[SignerBinding] = None,
        tx_hash: Optional[str] = None,
    ) -> ProcessUpdate:
        return ProcessUpdate(
            step_index=index,
            process_type=process_type,
            status=status,
            token_symbol=step.from_token_symbol,
            chain_id=step.from_chain_id,
            tx_hash=tx_hash,
            tx_link=signer.tx_link(tx_hash) if signer is not None and tx_hash else None,
        )


def _receiving_tx(status: Mapping[str, Any]) -> Dict[str, Any]:
    receiving = status.get("receiving")
    return dict(receiving) if isinstance(receiving, Mapping) else {}
