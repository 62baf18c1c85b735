"""
Pytest configuration for FabricSim.

Ensures the project root is on sys.path so `import fabricsim` resolves without
an installed package, and provides engines configured for fast, deterministic runs.
"""

import os
import sys
import pytest

# Compute project root (parent of this tests directory)
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from fabricsim.config.settings import TestingSettings  # noqa: E402
from fabricsim.core.simulation_engine import SimulationEngine  # noqa: E402


DRAFT = {
    "sender": "org1",
    "receiver": "org2",
    "type": "Asset Transfer",
    "chaincode": "Asset Management",
    "function": "createAsset",
    "args": "asset1, blue, 5, Tomoko, 300",
}


@pytest.fixture
def draft():
    """The reference org1 -> org2 createAsset draft."""
    return dict(DRAFT)


@pytest.fixture
def testing_settings():
    """Zero-delay settings without failure injection."""
    return TestingSettings()


@pytest.fixture
def engine(testing_settings):
    """Simulation engine with no pacing between phases."""
    return SimulationEngine(settings=testing_settings)
