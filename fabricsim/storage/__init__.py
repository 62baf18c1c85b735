"""
Storage module for FabricSim.
"""

from fabricsim.storage.ledger_store import LedgerStore

__all__ = ["LedgerStore"]
