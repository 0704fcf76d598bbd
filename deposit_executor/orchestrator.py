"""Sequential, fault-isolated execution of deposit plans."""

import asyncio
import logging

from deposit_core.config import EngineConfig
from deposit_core.erc20 import encode_transfer, require_address, to_atomic
from deposit_core.wallet import ProviderFactory, SignerBinding, primary_account
from deposit_planner.models import DepositPlan, DepositSource
from deposit_planner.planner import validate_plan
from routing_oracle.base import RoutingOracle

from .progress import UnitProgress, progress_hook
from .status import DIRECT_TRANSFER_INDEX, ExecutionStatus, UpdateCallback

logger = logging.getLogger(__name__)


class DepositOrchestrator:
    """Runs the direct settlement transfer, then each routed source in order.

    A unit's failure is reported as a ``failed`` update and never stops the
    units after it. Routed sources never overlap: each one reaches a terminal
    status before the next is started, and each gets its own signer binding.
    """

    def __init__(self, oracle: RoutingOracle, config: EngineConfig) -> None:
        self._oracle = oracle
        self._config = config

    async def execute(
        self,
        plan: DepositPlan,
        provider_factory: ProviderFactory,
        on_update: UpdateCallback,
        recipient_address: str,
    ) -> None:
        require_address(recipient_address, "Recipient address")
        validate_plan(plan)

        if plan.existing_settlement_usd > 0:
            await self._execute_direct_transfer(plan, provider_factory, on_update, recipient_address)

        for index, source in enumerate(plan.sources):
            await self._execute_source(index, source, provider_factory, on_update)

    async def _execute_direct_transfer(
        self,
        plan: DepositPlan,
        provider_factory: ProviderFactory,
        on_update: UpdateCallback,
        recipient_address: str,
    ) -> None:
        chain = self._config.settlement_chain()
        token = self._config.settlement_token()
        progress = UnitProgress(DIRECT_TRANSFER_INDEX, on_update)
        progress.advance(
            ExecutionStatus.PENDING, substep=f"Transferring {token.symbol} on {chain.name}…"
        )

        try:
            provider = await provider_factory()
            account = await primary_account(provider)
            signer = await SignerBinding(provider, chain.chain_id, account).switch_chain(
                chain.chain_id
            )
            amount = to_atomic(plan.existing_settlement_usd, token.decimals)

            progress.advance(
                ExecutionStatus.APPROVING,
                substep=f"Confirm {token.symbol} transfer in wallet…",
            )
            tx_hash = await signer.send_transaction(
                to=token.address, data=encode_transfer(recipient_address, amount)
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Direct %s transfer on %s failed", token.symbol, chain.name)
            progress.fail(_describe(exc), substep=f"{chain.name} transfer failed")
            return

        progress.advance(
            ExecutionStatus.DONE,
            substep=f"{chain.name} {token.symbol} transferred!",
            tx_hash=tx_hash,
            tx_link=chain.tx_link(tx_hash),
        )
        logger.info("Direct transfer of %s USD sent as %s", plan.existing_settlement_usd, tx_hash)

    async def _execute_source(
        self,
        index: int,
        source: DepositSource,
        provider_factory: ProviderFactory,
        on_update: UpdateCallback,
    ) -> None:
        progress = UnitProgress(index, on_update)
        progress.advance(ExecutionStatus.PENDING)
        progress.advance(
            ExecutionStatus.APPROVING,
            substep=f"Preparing {source.token_symbol} on {source.chain_name}…",
        )
        logger.info(
            "Executing source %d: %s USD of %s on %s",
            index,
            source.amount,
            source.token_symbol,
            source.chain_name,
        )

        try:
            provider = await provider_factory()
            account = await primary_account(provider)
            chain_id = source.route.from_chain_id
            signer = await SignerBinding(provider, chain_id, account).switch_chain(chain_id)
            await self._oracle.execute_route(
                source.route, signer, progress_hook(progress, source)
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Source %d on %s failed", index, source.chain_name)
            progress.fail(_describe(exc))
            return

        progress.advance(ExecutionStatus.DONE, substep="Complete!")


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__
