"""
FabricSim
=========

A simulator for the transaction flow of a permissioned, Fabric-style blockchain
network: proposal, endorsement, ordering, distribution and commit, backed by a
hash-chained in-memory ledger.
"""

VERSION = (0, 1, 0, "dev", 2)

from fabricsim.units.version import get_version  # noqa: E402

__version__ = get_version(VERSION)

__all__ = ["VERSION", "__version__"]
