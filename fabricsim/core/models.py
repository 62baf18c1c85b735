"""
Ledger data model for FabricSim.

Transactions describe one logical operation submitted by a network participant.
Blocks are immutable ledger entries; in this simulator every completed flow
produces exactly one block holding exactly one transaction.
"""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from fabricsim.core.utils import canonical_json


class TransactionStatus(Enum):
    """Transaction lifecycle status"""
    PENDING = "pending"
    COMMITTED = "committed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


@dataclass
class Transaction:
    """A submitted transaction and its execution descriptor"""
    id: str
    sender: str
    receiver: str
    type: str = ""
    chaincode: str = ""
    function: str = ""
    args: str = ""
    timestamp: float = field(default_factory=time.time)
    block_height: int = 0
    status: TransactionStatus = TransactionStatus.PENDING

    def copy(self) -> "Transaction":
        return replace(self)

    def matches(self, term: str) -> bool:
        """Case-insensitive match against id, type, participants and descriptor."""
        needle = term.lower()
        haystack = (self.id, self.type, self.sender, self.receiver, self.chaincode, self.function)
        return any(needle in value.lower() for value in haystack if value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender,
            "receiver": self.receiver,
            "type": self.type,
            "chaincode": self.chaincode,
            "function": self.function,
            "args": self.args,
            "timestamp": self.timestamp,
            "block_height": self.block_height,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        return cls(
            id=data["id"],
            sender=data["sender"],
            receiver=data["receiver"],
            type=data.get("type", ""),
            chaincode=data.get("chaincode", ""),
            function=data.get("function", ""),
            args=data.get("args", ""),
            timestamp=data["timestamp"],
            block_height=data.get("block_height", 0),
            status=TransactionStatus(data.get("status", "pending")),
        )


@dataclass(frozen=True)
class Block:
    """
    Hash-chained ledger entry.

    The transactions are snapshots taken when the block was appended, so later
    status changes in the transaction pool never alter a block's content.
    """
    height: int
    hash: str
    timestamp: float
    transactions: tuple[Transaction, ...]
    previous_hash: str

    @staticmethod
    def serialize_transactions(transactions) -> str:
        return canonical_json([tx.to_dict() for tx in transactions])

    def copy(self) -> "Block":
        """Copy whose transactions are detached from the sealed ones."""
        return replace(self, transactions=tuple(tx.copy() for tx in self.transactions))

    def to_dict(self) -> dict[str, Any]:
        return {
            "height": self.height,
            "hash": self.hash,
            "timestamp": self.timestamp,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "previous_hash": self.previous_hash,
        }

    def __str__(self) -> str:
        return f"Block(height={self.height}, transactions={len(self.transactions)}, hash={self.hash[:10]}...)"
