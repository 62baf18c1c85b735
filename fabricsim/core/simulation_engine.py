"""
Simulation Engine for FabricSim.

The engine is the single object a front end talks to. It owns the ledger, the
flow controller and the clock, and exposes:

- submit(draft): validate and queue a transaction flow
- on_phase_change / on_log / on_transaction_update: event subscriptions
- get_chain_state(): read model for tables and dashboards
- reset(): clear the ledger and cancel any in-flight flow

Flows are admitted through a FIFO queue and run one at a time on the running
asyncio event loop, so phase events of different transactions never interleave.
After a flow reports Completed the engine appends the block and marks the
transaction committed; the controller itself never writes to the ledger.
"""

import asyncio
import logging
from collections import deque
from dataclasses import replace
from typing import Any, Callable

from fabricsim.config.settings import Settings, get_settings
from fabricsim.consensus.clock import SimulationClock
from fabricsim.consensus.flow_controller import (
    TransactionFlowController,
    FailurePolicy,
    Phase,
    PhaseEvent,
)
from fabricsim.core.models import Transaction, TransactionStatus
from fabricsim.core.utils import HashChain, generate_transaction_id, short_id
from fabricsim.error_mitigation.validator import (
    DraftValidator,
    FlowCancelledError,
    SettingsValidator,
    ValidationError,
)
from fabricsim.network.topology import NetworkTopology
from fabricsim.storage.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

TransactionListener = Callable[[Transaction], None]


class SimulationEngine:
    """
    Owner of one simulation session.

    All mutating calls must happen on the event loop that runs the flows.
    submit() needs a running loop because it may start the queue worker.
    """

    def __init__(self, settings: Settings | None = None, ledger: LedgerStore | None = None,
                 clock: SimulationClock | None = None, topology: NetworkTopology | None = None,
                 failure_policy: FailurePolicy | None = None, hash_chain: HashChain | None = None):
        self.settings = settings or get_settings()
        SettingsValidator(self.settings).validate_config()
        self.ledger = ledger or LedgerStore(hash_chain)
        self.clock = clock or SimulationClock(self.settings.SIMULATION_SPEED)
        self.topology = topology or NetworkTopology.from_settings(self.settings)
        self.controller = TransactionFlowController(
            self.clock,
            self.topology,
            show_chaincode_flow=self.settings.SHOW_CHAINCODE_FLOW,
            show_ledger=self.settings.SHOW_LEDGER,
            failure_policy=failure_policy or FailurePolicy.from_settings(self.settings),
        )
        self.validator = DraftValidator(self.settings.get_draft_defaults())
        self.max_queued_flows = self.settings.MAX_QUEUED_FLOWS

        self.execution_logs: list[str] = []
        self.phase_history: dict[str, list[Phase]] = {}

        self._queue: deque[str] = deque()
        self._worker: asyncio.Task | None = None
        self._epoch = 0
        self._flow_epoch: int | None = None
        self._waiters: dict[str, list[asyncio.Future]] = {}

        self._phase_listeners: list[Callable[[PhaseEvent], None]] = []
        self._log_listeners: list[Callable[[str], None]] = []
        self._transaction_listeners: list[TransactionListener] = []

        self.controller.on_phase_change(self._dispatch_phase)
        self.controller.on_log(self._dispatch_log)

    # Subscriptions

    def on_phase_change(self, listener: Callable[[PhaseEvent], None]) -> None:
        self._phase_listeners.append(listener)

    def on_log(self, listener: Callable[[str], None]) -> None:
        self._log_listeners.append(listener)

    def on_transaction_update(self, listener: TransactionListener) -> None:
        self._transaction_listeners.append(listener)

    @staticmethod
    def _notify(listeners, payload) -> None:
        for listener in listeners:
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Event listener {listener!r} failed: {e}")

    def _is_current_flow(self) -> bool:
        return self._flow_epoch is not None and self._flow_epoch == self._epoch

    def _dispatch_phase(self, event: PhaseEvent) -> None:
        if not self._is_current_flow():
            return
        self.phase_history.setdefault(event.transaction_id, []).append(event.phase)
        self._notify(self._phase_listeners, event)

    def _dispatch_log(self, line: str) -> None:
        if not self._is_current_flow():
            return
        self.execution_logs.append(line)
        self._notify(self._log_listeners, line)

    # Submission

    @property
    def is_busy(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def queued_flows(self) -> int:
        return len(self._queue)

    @property
    def active_phase(self) -> Phase | None:
        return self.controller.active_phase

    @property
    def status_text(self) -> str:
        return self.controller.status_text

    def submit(self, draft: dict[str, Any]) -> Transaction:
        """
        Validate a draft, record it as pending and queue its flow.

        Args:
            draft: Mapping with sender and receiver; type, chaincode, function
                and args fall back to the configured draft defaults

        Returns:
            Snapshot of the pending transaction

        Raises:
            ValidationError: If sender/receiver is missing or the queue is full
            RuntimeError: If called without a running event loop
        """
        normalized = self.validator.validate(draft)
        if len(self._queue) >= self.max_queued_flows:
            raise ValidationError("queue_full", f"{len(self._queue)} flows waiting")
        loop = asyncio.get_running_loop()

        transaction = Transaction(
            id=generate_transaction_id(self.ledger.hash_chain),
            sender=normalized["sender"],
            receiver=normalized["receiver"],
            type=normalized["type"],
            chaincode=normalized["chaincode"],
            function=normalized["function"],
            args=normalized["args"],
            block_height=self.ledger.current_height + 1,
        )
        self.ledger.add_transaction(transaction)
        self._queue.append(transaction.id)
        logger.info(
            f"Queued transaction {short_id(transaction.id)} "
            f"({transaction.sender} -> {transaction.receiver}), {len(self._queue)} waiting"
        )
        self._notify(self._transaction_listeners, transaction.copy())

        if not self.is_busy:
            self._worker = loop.create_task(self._run_queue(self._epoch))
            self._worker.add_done_callback(self._on_worker_done)
        return transaction.copy()

    async def _run_queue(self, epoch: int) -> None:
        while self._queue and epoch == self._epoch:
            transaction_id = self._queue.popleft()
            transaction = self.ledger.get_transaction(transaction_id)
            self._flow_epoch = epoch
            try:
                outcome = await self.controller.submit(
                    transaction, block_number=self.ledger.current_height + 1
                )
            finally:
                if self._flow_epoch == epoch:
                    self._flow_epoch = None

            if epoch != self._epoch:
                return
            self._finish(transaction, outcome)

    def _finish(self, transaction: Transaction, outcome: Phase) -> None:
        if outcome is Phase.COMPLETED:
            sealed = replace(transaction, status=TransactionStatus.COMMITTED)
            self.ledger.append_block([sealed])
            final = self.ledger.mark_committed(transaction.id)
        else:
            final = self.ledger.mark_failed(transaction.id)
        self._notify(self._transaction_listeners, final)

        for waiter in self._waiters.pop(transaction.id, []):
            if not waiter.done():
                waiter.set_result(final)

    def _on_worker_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Flow worker stopped unexpectedly: {error!r}")

    async def wait_for(self, transaction_id: str) -> Transaction:
        """
        Wait until a transaction's flow terminates.

        Raises:
            NotFoundError: If the transaction is unknown
            FlowCancelledError: If the simulation is reset first
        """
        transaction = self.ledger.get_transaction(transaction_id)
        if transaction.status.is_terminal:
            return transaction
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(transaction_id, []).append(waiter)
        return await waiter

    async def run_until_idle(self) -> None:
        """Wait until the queue is drained (or the worker is cancelled)."""
        while self.is_busy:
            await asyncio.wait({self._worker})

    # Control

    def set_speed(self, delay: float) -> None:
        self.clock.set_speed(delay)

    def get_chain_state(self) -> dict[str, Any]:
        """Read model: {blocks, transactions, current_height}."""
        return self.ledger.get_chain_state()

    def reset(self) -> None:
        """
        Clear the ledger and cancel every in-flight and queued flow.

        No phase or log event of a flow started before the reset is delivered
        afterwards, and waiters on those flows receive FlowCancelledError.
        """
        self._epoch += 1
        dropped = len(self._queue)
        self._queue.clear()
        self.clock.cancel_all()
        if self.is_busy:
            self._worker.cancel()
        self._worker = None

        for transaction_id, waiters in self._waiters.items():
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_exception(FlowCancelledError(transaction_id))
        self._waiters.clear()

        self.ledger.reset()
        self.controller.clear()
        self.execution_logs.clear()
        self.phase_history.clear()
        logger.info(f"Simulation reset ({dropped} queued flow(s) dropped)")
