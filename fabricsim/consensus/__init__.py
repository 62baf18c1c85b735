"""
Transaction flow module for FabricSim.
"""

from fabricsim.consensus.clock import SimulationClock
from fabricsim.consensus.flow_controller import (
    TransactionFlowController,
    FailurePolicy,
    Phase,
    PhaseEvent,
    PHASE_SEQUENCE,
)

__all__ = [
    "SimulationClock",
    "TransactionFlowController",
    "FailurePolicy",
    "Phase",
    "PhaseEvent",
    "PHASE_SEQUENCE",
]
