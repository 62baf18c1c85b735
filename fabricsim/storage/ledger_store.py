"""
Ledger Store Module for FabricSim

This module provides the in-memory ledger of a simulation session: an ordered,
append-only list of hash-chained blocks, the pool of every submitted transaction
and the current block height. State lives only as long as the process.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Any

import pyarrow as pa

from fabricsim.core import schemas
from fabricsim.core.models import Block, Transaction, TransactionStatus
from fabricsim.core.utils import GENESIS_HASH, HashChain, Sha256HashChain
from fabricsim.error_mitigation.validator import (
    ValidationError,
    StateTransitionError,
    NotFoundError,
    IntegrityError,
)

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", "pending", "committed", "failed")


class LedgerStore:
    """
    Append-only block store with a transaction pool.

    Every block embeds the hash of its predecessor (or the genesis sentinel for
    the first block), so the chain can be re-verified from genesis at any time.
    """

    def __init__(self, hash_chain: HashChain | None = None):
        self.hash_chain = hash_chain or Sha256HashChain()
        self._blocks: list[Block] = []
        self._transactions: dict[str, Transaction] = {}
        self._current_height = 0
        self._lock = threading.RLock()

    @property
    def current_height(self) -> int:
        return self._current_height

    @property
    def blocks(self) -> list[Block]:
        with self._lock:
            return [block.copy() for block in self._blocks]

    @property
    def transactions(self) -> list[Transaction]:
        """Snapshot of all submitted transactions in submission order."""
        with self._lock:
            return [tx.copy() for tx in self._transactions.values()]

    @property
    def last_block(self) -> Block | None:
        with self._lock:
            return self._blocks[-1].copy() if self._blocks else None

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Record a newly submitted transaction in the pool."""
        with self._lock:
            if transaction.id in self._transactions:
                raise ValidationError("invalid_input", f"duplicate transaction id {transaction.id[:8]}")
            self._transactions[transaction.id] = transaction.copy()
            logger.debug(f"Transaction {transaction.id[:8]} added to pool")
            return transaction

    def compute_block_hash(self, height: int, previous_hash: str, timestamp: float,
                           transactions) -> str:
        """Hash over height ‖ previous_hash ‖ timestamp ‖ serialized transactions."""
        data = f"{height}{previous_hash}{timestamp}{Block.serialize_transactions(transactions)}"
        return self.hash_chain.hash(data)

    def append_block(self, transactions: list[Transaction]) -> Block:
        """
        Create the next block and append it to the chain.

        Args:
            transactions: Transactions sealed into the block (non-empty)

        Returns:
            The newly appended block
        """
        if not transactions:
            raise ValidationError("empty_block")

        with self._lock:
            previous = self._blocks[-1] if self._blocks else None
            previous_hash = previous.hash if previous else GENESIS_HASH
            height = self._current_height + 1
            timestamp = time.time()
            sealed = tuple(tx.copy() for tx in transactions)

            block = Block(
                height=height,
                hash=self.compute_block_hash(height, previous_hash, timestamp, sealed),
                timestamp=timestamp,
                transactions=sealed,
                previous_hash=previous_hash,
            )
            self._blocks.append(block)
            self._current_height = height

        logger.info(f"Appended block #{block.height} ({block.hash[:10]}...) with {len(sealed)} transaction(s)")
        return block.copy()

    def update_status(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        """
        Move a pending transaction to a terminal status.

        Raises:
            NotFoundError: If the transaction is unknown
            StateTransitionError: If the transaction already left pending
        """
        with self._lock:
            current = self._transactions.get(transaction_id)
            if current is None:
                raise NotFoundError(f"Transaction {transaction_id} not found")
            if current.status is status:
                return current.copy()
            if current.status.is_terminal or status is TransactionStatus.PENDING:
                raise StateTransitionError(
                    f"Cannot move transaction {transaction_id[:8]} from {current.status.value} to {status.value}"
                )
            updated = replace(current, status=status)
            self._transactions[transaction_id] = updated
            return updated.copy()

    def mark_committed(self, transaction_id: str) -> Transaction:
        return self.update_status(transaction_id, TransactionStatus.COMMITTED)

    def mark_failed(self, transaction_id: str) -> Transaction:
        return self.update_status(transaction_id, TransactionStatus.FAILED)

    def get_transaction(self, transaction_id: str) -> Transaction:
        with self._lock:
            tx = self._transactions.get(transaction_id)
            if tx is None:
                raise NotFoundError(f"Transaction {transaction_id} not found")
            return tx.copy()

    def get_block(self, height: int) -> Block:
        with self._lock:
            if height < 1 or height > len(self._blocks):
                raise NotFoundError(f"Block #{height} not found")
            return self._blocks[height - 1].copy()

    def find_transactions(self, search: str = "", status: str = "all") -> list[Transaction]:
        """
        Filter the pool by free-text search and status.

        Args:
            search: Case-insensitive term matched against id, type, sender,
                receiver, chaincode and function
            status: One of all, pending, committed, failed
        """
        if status not in STATUS_FILTERS:
            raise ValidationError("invalid_status_filter", repr(status))

        results = []
        for tx in self.transactions:
            if status != "all" and tx.status.value != status:
                continue
            if search and not tx.matches(search):
                continue
            results.append(tx)
        return results

    def get_statistics(self) -> dict[str, int]:
        counts = {s.value: 0 for s in TransactionStatus}
        with self._lock:
            for tx in self._transactions.values():
                counts[tx.status.value] += 1
            return {
                "total_transactions": sum(counts.values()),
                **counts,
                "blocks": len(self._blocks),
                "current_height": self._current_height,
            }

    def verify_chain(self) -> list[str]:
        """
        Walk the chain from genesis and return every integrity problem found.

        Returns:
            Empty list when every link, height and hash checks out
        """
        problems = []
        expected_previous = GENESIS_HASH
        for position, block in enumerate(self.blocks, start=1):
            if block.height != position:
                problems.append(f"Block at position {position} has height {block.height}")
            if block.previous_hash != expected_previous:
                problems.append(f"Block #{block.height} previous_hash does not match its predecessor")
            if not block.transactions:
                problems.append(f"Block #{block.height} has no transactions")
            recomputed = self.compute_block_hash(
                block.height, block.previous_hash, block.timestamp, block.transactions
            )
            if recomputed != block.hash:
                problems.append(f"Block #{block.height} hash mismatch")
            expected_previous = block.hash

        if problems:
            logger.error(f"Ledger verification failed: {problems}")
        return problems

    def is_chain_valid(self) -> bool:
        return not self.verify_chain()

    def assert_valid(self) -> None:
        problems = self.verify_chain()
        if problems:
            raise IntegrityError(problems)

    def transactions_table(self) -> pa.Table:
        """All transactions as an Arrow table."""
        rows = [tx.to_dict() for tx in self.transactions]
        return pa.Table.from_pylist(rows, schema=schemas.get_transaction_schema())

    def blocks_table(self) -> pa.Table:
        """Block headers as an Arrow table."""
        rows = [
            {
                "height": block.height,
                "hash": block.hash,
                "previous_hash": block.previous_hash,
                "timestamp": block.timestamp,
                "transaction_count": len(block.transactions),
                "transaction_ids": [tx.id for tx in block.transactions],
            }
            for block in self.blocks
        ]
        return pa.Table.from_pylist(rows, schema=schemas.get_block_header_schema())

    def get_chain_state(self) -> dict[str, Any]:
        """Read model: {blocks, transactions, current_height}."""
        with self._lock:
            return {
                "blocks": [block.copy() for block in self._blocks],
                "transactions": [tx.copy() for tx in self._transactions.values()],
                "current_height": self._current_height,
            }

    def reset(self) -> None:
        """Clear blocks, transactions and height back to the empty state."""
        with self._lock:
            self._blocks.clear()
            self._transactions.clear()
            self._current_height = 0
        logger.info("Ledger reset")

    def __len__(self) -> int:
        return len(self._blocks)
