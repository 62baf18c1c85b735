"""
Configuration settings for the FabricSim transaction-flow simulator.

This module provides the configuration for the simulation engine, including the
pacing of the phase state machine, the shape of the simulated network, the
optional failure-injection hook, the REST API and logging.

The configuration supports multiple environments (development, production, testing)
selected through the FSIM_ENV environment variable.
"""

import os
from typing import Dict, Any, List


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Simulator configuration settings"""

    FRAMEWORK_NAME = "fabricsim"

    # Simulation settings
    SIMULATION_SPEED = float(os.getenv("FSIM_SIMULATION_SPEED", "2.0"))  # seconds between phases
    SHOW_CHAINCODE_FLOW = _env_bool("FSIM_SHOW_CHAINCODE_FLOW", True)
    SHOW_LEDGER = _env_bool("FSIM_SHOW_LEDGER", True)
    MAX_QUEUED_FLOWS = 100

    # Network settings
    DEFAULT_ORGANIZATIONS = ["org1", "org2"]
    PEERS_PER_ORG = 2
    ORDERER_ID = "orderer1"

    # Failure injection (0.0 disables it)
    ENDORSEMENT_FAILURE_RATE = float(os.getenv("FSIM_ENDORSEMENT_FAILURE_RATE", "0.0"))
    ORDERING_TIMEOUT_RATE = float(os.getenv("FSIM_ORDERING_TIMEOUT_RATE", "0.0"))
    FAILURE_SEED = None

    # Default draft values offered to clients
    TRANSACTION_TYPES = [
        "Asset Transfer",
        "Smart Contract Deploy",
        "Smart Contract Invoke",
        "Configuration Update",
        "Channel Create",
    ]
    CHAINCODE_TYPES = [
        "Asset Management",
        "Token Contract",
        "Supply Chain",
        "Voting System",
        "Identity Management",
    ]
    DEFAULT_FUNCTION = "createAsset"
    DEFAULT_ARGS = "asset1, blue, 5, Tomoko, 300"

    # API settings
    API_VERSION = "v1"
    API_HOST = os.getenv("FSIM_API_HOST", "localhost")
    API_PORT = int(os.getenv("FSIM_API_PORT", "8000"))

    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def get_simulation_config(cls) -> Dict[str, Any]:
        """Get simulation configuration"""
        return {
            "speed": cls.SIMULATION_SPEED,
            "show_chaincode_flow": cls.SHOW_CHAINCODE_FLOW,
            "show_ledger": cls.SHOW_LEDGER,
            "max_queued_flows": cls.MAX_QUEUED_FLOWS,
        }

    @classmethod
    def get_network_config(cls) -> Dict[str, Any]:
        """Get network topology configuration"""
        return {
            "organizations": list(cls.DEFAULT_ORGANIZATIONS),
            "peers_per_org": cls.PEERS_PER_ORG,
            "orderer_id": cls.ORDERER_ID,
        }

    @classmethod
    def get_failure_config(cls) -> Dict[str, Any]:
        """Get failure injection configuration"""
        return {
            "endorsement_failure_rate": cls.ENDORSEMENT_FAILURE_RATE,
            "ordering_timeout_rate": cls.ORDERING_TIMEOUT_RATE,
            "seed": cls.FAILURE_SEED,
        }

    @classmethod
    def get_draft_defaults(cls) -> Dict[str, str]:
        """Get the descriptor used when a draft leaves fields out"""
        return {
            "type": cls.TRANSACTION_TYPES[0],
            "chaincode": cls.CHAINCODE_TYPES[0],
            "function": cls.DEFAULT_FUNCTION,
            "args": cls.DEFAULT_ARGS,
        }

    @classmethod
    def get_draft_options(cls) -> Dict[str, Any]:
        """Get the choices offered to clients composing a draft"""
        return {
            "transaction_types": list(cls.TRANSACTION_TYPES),
            "chaincode_types": list(cls.CHAINCODE_TYPES),
            "defaults": cls.get_draft_defaults(),
        }

    @classmethod
    def get_api_config(cls) -> Dict[str, Any]:
        """Get API configuration"""
        return {
            "version": cls.API_VERSION,
            "host": cls.API_HOST,
            "port": cls.API_PORT,
        }

    @classmethod
    def validate_config(cls) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if cls.SIMULATION_SPEED < 0:
            errors.append("SIMULATION_SPEED must not be negative")

        if cls.PEERS_PER_ORG <= 0:
            errors.append("PEERS_PER_ORG must be positive")

        if cls.MAX_QUEUED_FLOWS <= 0:
            errors.append("MAX_QUEUED_FLOWS must be positive")

        for name in ("ENDORSEMENT_FAILURE_RATE", "ORDERING_TIMEOUT_RATE"):
            rate = getattr(cls, name)
            if rate < 0 or rate > 1:
                errors.append(f"{name} must be between 0 and 1")

        if not cls.TRANSACTION_TYPES or not cls.CHAINCODE_TYPES:
            errors.append("TRANSACTION_TYPES and CHAINCODE_TYPES must not be empty")

        if cls.API_PORT <= 0 or cls.API_PORT > 65535:
            errors.append("API_PORT must be between 1 and 65535")

        return errors


# Environment-specific settings
class DevelopmentSettings(Settings):
    """Development environment settings"""
    LOG_LEVEL = "DEBUG"
    API_HOST = "localhost"


class ProductionSettings(Settings):
    """Production environment settings"""
    LOG_LEVEL = "WARNING"
    API_HOST = "0.0.0.0"


class TestingSettings(Settings):
    """Testing environment settings"""
    LOG_LEVEL = "DEBUG"
    SIMULATION_SPEED = 0.0  # No pacing in tests
    ENDORSEMENT_FAILURE_RATE = 0.0
    ORDERING_TIMEOUT_RATE = 0.0
    FAILURE_SEED = 42


def get_settings() -> Settings:
    """Get settings based on environment variable"""
    env = os.getenv("FSIM_ENV", "development").lower()

    if env == "production":
        return ProductionSettings()
    elif env == "testing":
        return TestingSettings()
    else:
        return DevelopmentSettings()


# Global settings instance
settings = get_settings()
