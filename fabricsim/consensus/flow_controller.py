"""
Transaction Flow Controller for FabricSim.

This module implements the phase state machine that walks one transaction
through the execute-order-validate protocol of a permissioned network:

    Proposal -> Endorsement -> Ordering -> Distribution -> Commit -> Completed

Every phase follows the same contract: mark the phase active, emit a status
line and a log entry, emit the directed edges describing who talks to whom,
then wait one SimulationClock delay. The controller never touches the ledger;
its only output is the event stream.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from fabricsim.consensus.clock import SimulationClock
from fabricsim.core.models import Transaction
from fabricsim.core.utils import format_log_line, short_id
from fabricsim.error_mitigation.validator import validate_rate
from fabricsim.network.topology import NetworkTopology, DirectedEdge

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Transaction flow phases"""
    PROPOSAL = "proposal"
    ENDORSEMENT = "endorsement"
    ORDERING = "ordering"
    DISTRIBUTION = "distribution"
    COMMIT = "commit"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETED, Phase.FAILED)


PHASE_SEQUENCE = (
    Phase.PROPOSAL,
    Phase.ENDORSEMENT,
    Phase.ORDERING,
    Phase.DISTRIBUTION,
    Phase.COMMIT,
    Phase.COMPLETED,
)

STATUS_TEXT = {
    Phase.PROPOSAL: "1. Client submits transaction proposal",
    Phase.ENDORSEMENT: "2. Peers execute transaction and return endorsement",
    Phase.ORDERING: "3. Client sends endorsed transaction to orderer",
    Phase.DISTRIBUTION: "4. Orderer creates block and distributes to all peers",
    Phase.COMMIT: "5. Peers validate and commit block to their ledger",
    Phase.COMPLETED: "Transaction completed successfully",
    Phase.FAILED: "Transaction failed",
}


@dataclass(frozen=True)
class PhaseEvent:
    """Notification emitted on every phase transition"""
    transaction_id: str
    phase: Phase
    status_text: str
    edges: tuple[DirectedEdge, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "phase": self.phase.value,
            "status_text": self.status_text,
            "edges": [edge.to_dict() for edge in self.edges],
        }


PhaseListener = Callable[[PhaseEvent], None]
LogListener = Callable[[str], None]


class FailurePolicy:
    """
    Optional failure injection for flows.

    With both rates at zero (the default) every flow reaches Completed. A
    non-zero rate lets a flow stop after endorsement (endorsement mismatch) or
    after ordering (ordering timeout), so the failed transaction status
    becomes reachable.
    """

    def __init__(self, endorsement_failure_rate: float = 0.0, ordering_timeout_rate: float = 0.0,
                 seed: int | None = None):
        self.endorsement_failure_rate = validate_rate(endorsement_failure_rate)
        self.ordering_timeout_rate = validate_rate(ordering_timeout_rate)
        self._rng = random.Random(seed)

    @classmethod
    def from_settings(cls, settings) -> "FailurePolicy":
        config = settings.get_failure_config()
        return cls(config["endorsement_failure_rate"], config["ordering_timeout_rate"], config["seed"])

    @property
    def enabled(self) -> bool:
        return self.endorsement_failure_rate > 0 or self.ordering_timeout_rate > 0

    def endorsement_mismatch(self, transaction: Transaction) -> bool:
        return self.endorsement_failure_rate > 0 and self._rng.random() < self.endorsement_failure_rate

    def ordering_timeout(self, transaction: Transaction) -> bool:
        return self.ordering_timeout_rate > 0 and self._rng.random() < self.ordering_timeout_rate


class TransactionFlowController:
    """
    Drives transactions through the phase state machine.

    The controller performs no validation of its input and holds no ledger
    state. Callers serialize flows; one controller runs one flow at a time.
    """

    def __init__(self, clock: SimulationClock, topology: NetworkTopology | None = None,
                 show_chaincode_flow: bool = True, show_ledger: bool = True,
                 failure_policy: FailurePolicy | None = None):
        self.clock = clock
        self.topology = topology or NetworkTopology()
        self.show_chaincode_flow = show_chaincode_flow
        self.show_ledger = show_ledger
        self.failure_policy = failure_policy or FailurePolicy()

        self.active_phase: Phase | None = None
        self.status_text = ""
        self.active_transaction_id: str | None = None

        self._phase_listeners: list[PhaseListener] = []
        self._log_listeners: list[LogListener] = []

    def on_phase_change(self, listener: PhaseListener) -> None:
        self._phase_listeners.append(listener)

    def on_log(self, listener: LogListener) -> None:
        self._log_listeners.append(listener)

    def clear(self) -> None:
        """Forget the active phase, e.g. after a reset."""
        self.active_phase = None
        self.status_text = ""
        self.active_transaction_id = None

    def _log(self, message: str) -> None:
        line = format_log_line(message)
        for listener in self._log_listeners:
            listener(line)

    def _enter(self, transaction: Transaction, phase: Phase, edges: list[DirectedEdge]) -> None:
        self.active_phase = phase
        self.status_text = STATUS_TEXT[phase]
        event = PhaseEvent(transaction.id, phase, self.status_text, tuple(edges))
        logger.debug(f"Transaction {short_id(transaction.id)} entered {phase.value} with {len(edges)} edge(s)")
        for listener in self._phase_listeners:
            listener(event)

    def _fail(self, transaction: Transaction, reason: str) -> Phase:
        self._enter(transaction, Phase.FAILED, [])
        self._log(f"Transaction {short_id(transaction.id)} failed: {reason}")
        logger.warning(f"Transaction {short_id(transaction.id)} failed: {reason}")
        return Phase.FAILED

    @staticmethod
    def _edge(kind: str, suffix: str, transaction: Transaction, source: str, target: str,
              animated: bool = True) -> DirectedEdge:
        edge_id = f"{kind}-{suffix}-{transaction.id}" if suffix else f"{kind}-{transaction.id}"
        return DirectedEdge(edge_id, source, target, kind, animated)

    def proposal_edges(self, tx: Transaction) -> list[DirectedEdge]:
        return [
            self._edge("proposal", str(i), tx, tx.sender, peer)
            for i, peer in enumerate(self.topology.peers_of(tx.sender))
        ]

    def chaincode_edges(self, tx: Transaction) -> list[DirectedEdge]:
        target = self.topology.chaincode_node(tx.sender)
        return [
            self._edge("chaincode", str(i), tx, peer, target)
            for i, peer in enumerate(self.topology.peers_of(tx.sender))
        ]

    def endorsement_edges(self, tx: Transaction) -> list[DirectedEdge]:
        return [
            self._edge("endorsement", str(i), tx, peer, tx.sender)
            for i, peer in enumerate(self.topology.peers_of(tx.sender))
        ]

    def ordering_edges(self, tx: Transaction) -> list[DirectedEdge]:
        return [self._edge("ordering", "", tx, tx.sender, self.topology.orderer_id)]

    def distribution_edges(self, tx: Transaction) -> list[DirectedEdge]:
        peers = self.topology.peers_of(tx.sender) + self.topology.peers_of(tx.receiver)
        return [
            self._edge("distribution", str(i), tx, self.topology.orderer_id, peer)
            for i, peer in enumerate(peers, start=1)
        ]

    def commit_edges(self, tx: Transaction) -> list[DirectedEdge]:
        edges = [self._edge("commit", "", tx, tx.sender, tx.receiver)]
        if self.show_ledger:
            index = 1
            for org in (tx.sender, tx.receiver):
                ledger = self.topology.ledger_node(org)
                for peer in self.topology.peers_of(org):
                    edges.append(self._edge("ledger", str(index), tx, peer, ledger))
                    index += 1
        return edges

    def completion_edges(self, tx: Transaction) -> list[DirectedEdge]:
        return [self._edge("final", "", tx, tx.sender, tx.receiver, animated=False)]

    async def submit(self, transaction: Transaction, block_number: int | None = None) -> Phase:
        """
        Run one transaction through every phase.

        Args:
            transaction: Pre-validated transaction to simulate
            block_number: Height of the block the orderer is about to cut,
                used only for the distribution log line

        Returns:
            Phase.COMPLETED, or Phase.FAILED when failure injection triggers

        Raises:
            asyncio.CancelledError: If the clock or the task running the flow
                is cancelled; no further events are emitted
        """
        tx = transaction
        self.active_transaction_id = tx.id
        block_label = f"#{block_number}" if block_number is not None else "#?"

        # Phase 1: Proposal
        self._log(f"Starting transaction flow for {short_id(tx.id)}...")
        self._log("Phase 1: Client submits transaction proposal to endorsing peers")
        proposal = self.proposal_edges(tx)
        if self.show_chaincode_flow:
            proposal += self.chaincode_edges(tx)
        self._enter(tx, Phase.PROPOSAL, proposal)
        await self.clock.wait()

        if self.show_chaincode_flow:
            self._log(f"Chaincode {tx.chaincode} executing on endorsing peers")
            self._log(f"Function: {tx.function}({tx.args})")
            await self.clock.wait()

        # Phase 2: Endorsement
        self._log("Phase 2: Peers execute transaction and return endorsement")
        self._enter(tx, Phase.ENDORSEMENT, self.endorsement_edges(tx))
        await self.clock.wait()

        if self.failure_policy.endorsement_mismatch(tx):
            return self._fail(tx, "endorsement mismatch between peers")

        # Phase 3: Ordering
        self._log("Phase 3: Client sends endorsed transaction to orderer")
        self._enter(tx, Phase.ORDERING, self.ordering_edges(tx))
        await self.clock.wait()

        if self.failure_policy.ordering_timeout(tx):
            return self._fail(tx, "ordering service timed out")

        # Phase 4: Distribution
        self._log("Phase 4: Orderer creates block and distributes to all peers")
        self._log(f"Block {block_label} created with transaction {short_id(tx.id)}")
        self._enter(tx, Phase.DISTRIBUTION, self.distribution_edges(tx))
        await self.clock.wait()

        # Phase 5: Validation and commit
        self._log("Phase 5: Peers validate and commit block to their ledger")
        self._enter(tx, Phase.COMMIT, self.commit_edges(tx))
        await self.clock.wait()

        # Completed
        self._enter(tx, Phase.COMPLETED, self.completion_edges(tx))
        self._log(f"Transaction {short_id(tx.id)} completed successfully")
        logger.info(f"Transaction {short_id(tx.id)} flow completed")
        return Phase.COMPLETED
