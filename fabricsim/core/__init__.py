"""
Core data model and hashing utilities for FabricSim.
"""

from fabricsim.core.models import Transaction, Block, TransactionStatus
from fabricsim.core.utils import GENESIS_HASH, HashChain, Sha256HashChain, generate_hash

__all__ = [
    "Transaction",
    "Block",
    "TransactionStatus",
    "GENESIS_HASH",
    "HashChain",
    "Sha256HashChain",
    "generate_hash",
]
