"""
Error types and pre-flight validation for FabricSim.
"""

from fabricsim.error_mitigation.validator import (
    ValidationError,
    ConfigurationError,
    IntegrityError,
    StateTransitionError,
    NotFoundError,
    FlowCancelledError,
    DraftValidator,
    SettingsValidator,
)

__all__ = [
    "ValidationError",
    "ConfigurationError",
    "IntegrityError",
    "StateTransitionError",
    "NotFoundError",
    "FlowCancelledError",
    "DraftValidator",
    "SettingsValidator",
]
