"""
Error Mitigation Validator Module

This module provides the exception types used across the simulator and the
pre-flight validation of transaction drafts. Drafts are rejected synchronously,
before any flow, transaction record or log line is created.
"""

import logging
from typing import Any

LOCALIZED_MESSAGES = {
    "default": "Unknown error occurred",
    "invalid_input": "Invalid input provided",
    "missing_sender": "Transaction sender is required",
    "missing_receiver": "Transaction receiver is required",
    "invalid_status_filter": "Status filter must be one of: all, pending, committed, failed",
    "invalid_speed": "Simulation speed must be a non-negative number of seconds",
    "invalid_rate": "Failure rates must be between 0 and 1",
    "empty_block": "A block must contain at least one transaction",
    "queue_full": "Too many transaction flows are waiting to run",
}

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when validation fails with localized messages"""
    def __init__(self, msg_code, detail: str | None = None):
        self.code = msg_code
        self.message = LOCALIZED_MESSAGES.get(msg_code, LOCALIZED_MESSAGES["default"])
        if detail:
            self.message = f"{self.message}: {detail}"
        super().__init__(self.message)


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


class IntegrityError(Exception):
    """Raised when the ledger's hash chain does not verify"""
    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


class StateTransitionError(Exception):
    """Raised when a transaction status would regress"""
    pass


class NotFoundError(LookupError):
    """Raised when a transaction or block does not exist"""
    pass


class FlowCancelledError(Exception):
    """Raised to waiters whose flow was aborted by a simulation reset"""
    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Flow for transaction {transaction_id[:8]} was cancelled by reset")


class DraftValidator:
    """
    Pre-flight validator for transaction drafts.

    Only the participants are checked; the execution descriptor
    (chaincode, function, args) is opaque to the simulator. Descriptor fields
    left out of a draft (or None) are taken from the configured defaults.
    """

    REQUIRED_FIELDS = ("sender", "receiver")
    DESCRIPTOR_FIELDS = ("type", "chaincode", "function", "args")

    def __init__(self, defaults: dict[str, Any] | None = None):
        self.defaults = dict(defaults or {})

    def validate(self, draft: dict[str, Any]) -> dict[str, Any]:
        """
        Validate a draft and return a normalized copy.

        Raises:
            ValidationError: If sender or receiver is missing or blank
        """
        if not isinstance(draft, dict):
            raise ValidationError("invalid_input", "draft must be a mapping")

        normalized = {**self.defaults, **{k: v for k, v in draft.items() if v is not None}}
        for field in self.REQUIRED_FIELDS:
            value = normalized.get(field)
            if not isinstance(value, str) or not value.strip():
                logger.warning(f"Rejected transaction draft: missing {field}")
                raise ValidationError(f"missing_{field}")
            normalized[field] = value.strip()

        for field in self.DESCRIPTOR_FIELDS:
            value = normalized.get(field)
            normalized[field] = "" if value is None else str(value)

        return normalized


def validate_speed(delay: Any) -> float:
    """Validate a simulation speed (inter-phase delay in seconds)."""
    if isinstance(delay, bool) or not isinstance(delay, (int, float)):
        raise ValidationError("invalid_speed", repr(delay))
    if delay < 0 or delay != delay:
        raise ValidationError("invalid_speed", repr(delay))
    return float(delay)


def validate_rate(rate: Any) -> float:
    """Validate a failure-injection probability."""
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not 0 <= rate <= 1:
        raise ValidationError("invalid_rate", repr(rate))
    return float(rate)


class SettingsValidator:
    """Checks simulator settings before an engine is built on them"""

    def __init__(self, settings):
        self.settings = settings

    def validate_config(self) -> bool:
        """
        Validate the settings

        Returns:
            bool: True if configuration is valid

        Raises:
            ConfigurationError: If any setting is out of range
        """
        errors = self.settings.validate_config()
        if errors:
            error_msg = f"Invalid configuration: {'; '.join(errors)}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg)
        return True
