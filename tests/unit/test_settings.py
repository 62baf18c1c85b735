"""
Test suite for configuration settings
"""

import pytest

from fabricsim.config.settings import (
    Settings,
    DevelopmentSettings,
    ProductionSettings,
    TestingSettings,
    get_settings,
)
from fabricsim.core.simulation_engine import SimulationEngine
from fabricsim.error_mitigation.validator import (
    ConfigurationError,
    DraftValidator,
    SettingsValidator,
)


class BrokenSettings(TestingSettings):
    SIMULATION_SPEED = -1
    PEERS_PER_ORG = 0
    ENDORSEMENT_FAILURE_RATE = 2.0
    API_PORT = 70000


def test_default_settings_are_valid():
    assert Settings.validate_config() == []
    assert TestingSettings.validate_config() == []
    assert SettingsValidator(TestingSettings()).validate_config() is True


def test_invalid_settings_reported():
    errors = BrokenSettings.validate_config()
    assert "SIMULATION_SPEED must not be negative" in errors
    assert "PEERS_PER_ORG must be positive" in errors
    assert "ENDORSEMENT_FAILURE_RATE must be between 0 and 1" in errors
    assert "API_PORT must be between 1 and 65535" in errors


def test_invalid_settings_raise_configuration_error():
    with pytest.raises(ConfigurationError, match="SIMULATION_SPEED must not be negative"):
        SettingsValidator(BrokenSettings()).validate_config()


def test_engine_refuses_invalid_settings():
    with pytest.raises(ConfigurationError):
        SimulationEngine(settings=BrokenSettings())


def test_testing_settings_have_no_pacing():
    config = TestingSettings.get_simulation_config()
    assert config["speed"] == 0.0
    assert TestingSettings.get_failure_config()["endorsement_failure_rate"] == 0.0


def test_network_config():
    config = Settings.get_network_config()
    assert config["organizations"] == ["org1", "org2"]
    assert config["peers_per_org"] == 2
    assert config["orderer_id"] == "orderer1"


def test_draft_defaults():
    defaults = Settings.get_draft_defaults()
    assert defaults == {
        "type": "Asset Transfer",
        "chaincode": "Asset Management",
        "function": "createAsset",
        "args": "asset1, blue, 5, Tomoko, 300",
    }
    options = Settings.get_draft_options()
    assert options["transaction_types"][0] == "Asset Transfer"
    assert "Voting System" in options["chaincode_types"]
    assert options["defaults"] == defaults


def test_draft_validator_fills_omitted_descriptor():
    class CustomSettings(TestingSettings):
        CHAINCODE_TYPES = ["Token Contract"]
        DEFAULT_FUNCTION = "mint"

    validator = DraftValidator(CustomSettings.get_draft_defaults())
    draft = validator.validate({"sender": " org1 ", "receiver": "org2", "args": None})

    assert draft["sender"] == "org1"
    assert draft["chaincode"] == "Token Contract"
    assert draft["function"] == "mint"
    assert draft["args"] == "asset1, blue, 5, Tomoko, 300"
    assert validator.validate({"sender": "org1", "receiver": "org2", "function": "burn"})["function"] == "burn"


def test_get_settings_by_environment(monkeypatch):
    monkeypatch.setenv("FSIM_ENV", "testing")
    assert isinstance(get_settings(), TestingSettings)
    monkeypatch.setenv("FSIM_ENV", "production")
    assert isinstance(get_settings(), ProductionSettings)
    monkeypatch.delenv("FSIM_ENV")
    assert isinstance(get_settings(), DevelopmentSettings)
