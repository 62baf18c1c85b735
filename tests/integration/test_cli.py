"""
Integration tests for the fsim command-line tool
"""

import json

from click.testing import CliRunner

from fabricsim.cli import fsim
from fabricsim.core.utils import GENESIS_HASH


def test_simulate_json_output():
    runner = CliRunner()
    result = runner.invoke(fsim, [
        "--log-level", "WARNING",
        "simulate", "--sender", "org1", "--receiver", "org2",
        "--count", "2", "--speed", "0", "--json",
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["current_height"] == 2
    assert data["valid"] is True
    assert data["blocks"][0]["previous_hash"] == GENESIS_HASH
    assert data["blocks"][1]["previous_hash"] == data["blocks"][0]["hash"]
    assert [tx["status"] for tx in data["transactions"]] == ["committed", "committed"]


def test_simulate_prints_phases():
    runner = CliRunner()
    result = runner.invoke(fsim, [
        "--log-level", "WARNING",
        "simulate", "--sender", "org1", "--receiver", "org2", "--speed", "0", "--no-ledger",
    ])

    assert result.exit_code == 0, result.output
    for phase in ("proposal", "endorsement", "ordering", "distribution", "commit", "completed"):
        assert f"[{phase:<12}]" in result.stdout
    assert "ledger-org1" not in result.stdout
    assert "Chain height: 1" in result.stdout
    assert "Chain valid" in result.stdout


def test_simulate_with_failure_injection():
    runner = CliRunner()
    result = runner.invoke(fsim, [
        "--log-level", "WARNING",
        "simulate", "--sender", "org1", "--receiver", "org2", "--speed", "0",
        "--ordering-timeout-rate", "1", "--json",
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["current_height"] == 0
    assert data["transactions"][0]["status"] == "failed"


def test_simulate_rejects_blank_sender():
    runner = CliRunner()
    result = runner.invoke(fsim, ["simulate", "--sender", " ", "--receiver", "org2", "--speed", "0"])
    assert result.exit_code != 0
    assert "sender is required" in result.output


def test_simulate_rejects_negative_speed():
    runner = CliRunner()
    result = runner.invoke(fsim, ["simulate", "--sender", "org1", "--receiver", "org2", "--speed", "-1"])
    assert result.exit_code != 0


def test_topology_command():
    runner = CliRunner()
    result = runner.invoke(fsim, ["topology"])
    assert result.exit_code == 0
    assert "orderer1" in result.stdout
    assert "org1 -> org1-peer0" in result.stdout


def test_simulate_more_flows_than_queue_capacity():
    runner = CliRunner()
    result = runner.invoke(fsim, [
        "--log-level", "WARNING",
        "simulate", "--sender", "org1", "--receiver", "org2",
        "--count", "101", "--speed", "0", "--json",
    ])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["current_height"] == 101
    assert data["valid"] is True
    assert all(tx["status"] == "committed" for tx in data["transactions"])


def test_simulate_descriptor_defaults_and_overrides():
    runner = CliRunner()
    result = runner.invoke(fsim, [
        "--log-level", "WARNING",
        "simulate", "--sender", "org1", "--receiver", "org2", "--speed", "0",
        "--chaincode", "Voting System", "--json",
    ])

    assert result.exit_code == 0, result.output
    tx = json.loads(result.stdout)["transactions"][0]
    assert tx["chaincode"] == "Voting System"
    assert tx["type"] == "Asset Transfer"
    assert tx["function"] == "createAsset"
    assert tx["args"] == "asset1, blue, 5, Tomoko, 300"
