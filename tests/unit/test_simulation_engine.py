"""
Test suite for the SimulationEngine

Covers the end-to-end scenarios: single and sequential flows, FIFO admission of
concurrent submissions, commit timing, pre-flight validation, failure injection
and reset cancelling in-flight flows.
"""

import asyncio

import pytest

from fabricsim.consensus.clock import SimulationClock
from fabricsim.consensus.flow_controller import FailurePolicy, Phase, PHASE_SEQUENCE
from fabricsim.core.models import TransactionStatus
from fabricsim.core.simulation_engine import SimulationEngine
from fabricsim.core.utils import GENESIS_HASH
from fabricsim.error_mitigation.validator import (
    ValidationError,
    FlowCancelledError,
    NotFoundError,
)


@pytest.mark.asyncio
async def test_single_transaction_scenario(engine, draft):
    """org1 -> org2 createAsset: six phases, one block, committed"""
    phases = []
    engine.on_phase_change(lambda event: phases.append(event.phase))

    tx = engine.submit(draft)
    assert tx.status is TransactionStatus.PENDING
    assert tx.block_height == 1
    final = await engine.wait_for(tx.id)

    assert phases == list(PHASE_SEQUENCE)
    state = engine.get_chain_state()
    assert len(state["blocks"]) == 1
    assert state["blocks"][0].previous_hash == GENESIS_HASH
    assert state["blocks"][0].transactions[0].id == tx.id
    assert state["current_height"] == 1
    assert final.status is TransactionStatus.COMMITTED
    assert state["transactions"][0].status is TransactionStatus.COMMITTED
    assert engine.phase_history[tx.id] == list(PHASE_SEQUENCE)


@pytest.mark.asyncio
async def test_status_is_committed_only_after_completed(engine, draft):
    observed = []

    def record(event):
        observed.append((event.phase, engine.ledger.get_transaction(event.transaction_id).status))

    engine.on_phase_change(record)

    tx = engine.submit(draft)
    await engine.wait_for(tx.id)

    assert [phase for phase, _ in observed] == list(PHASE_SEQUENCE)
    assert all(status is TransactionStatus.PENDING for _, status in observed)
    assert engine.ledger.current_height == 1


@pytest.mark.asyncio
async def test_transaction_listener_sees_pending_then_committed(engine, draft):
    updates = []
    engine.on_transaction_update(lambda tx: updates.append(tx.status))

    tx = engine.submit(draft)
    await engine.wait_for(tx.id)

    assert updates == [TransactionStatus.PENDING, TransactionStatus.COMMITTED]


@pytest.mark.asyncio
async def test_sequential_transactions_chain(engine, draft):
    """Second flow submitted after the first completes"""
    first = engine.submit(draft)
    await engine.wait_for(first.id)
    second = engine.submit(draft)
    await engine.wait_for(second.id)

    blocks = engine.get_chain_state()["blocks"]
    assert [b.height for b in blocks] == [1, 2]
    assert blocks[0].previous_hash == GENESIS_HASH
    assert blocks[1].previous_hash == blocks[0].hash
    assert second.block_height == 2
    assert [b.transactions[0].id for b in blocks] == [first.id, second.id]
    assert engine.ledger.is_chain_valid()


@pytest.mark.asyncio
async def test_concurrent_submissions_run_in_fifo_order(engine, draft):
    """Flows submitted together never interleave their phase events"""
    events = []
    engine.on_phase_change(lambda event: events.append((event.transaction_id, event.phase)))

    submitted = [engine.submit(draft) for _ in range(3)]
    assert engine.queued_flows == 3
    await engine.run_until_idle()

    expected = [(tx.id, phase) for tx in submitted for phase in PHASE_SEQUENCE]
    assert events == expected
    blocks = engine.get_chain_state()["blocks"]
    assert [b.transactions[0].id for b in blocks] == [tx.id for tx in submitted]
    assert engine.ledger.is_chain_valid()
    assert not engine.is_busy


@pytest.mark.asyncio
async def test_execution_log_is_recorded(engine, draft):
    lines = []
    engine.on_log(lines.append)

    tx = engine.submit(draft)
    await engine.wait_for(tx.id)

    assert lines == engine.execution_logs
    assert lines[0].endswith(f"Starting transaction flow for {tx.id[:8]}...")
    assert lines[-1].endswith(f"Transaction {tx.id[:8]} completed successfully")
    assert any("Block #1 created" in line for line in lines)


@pytest.mark.parametrize("bad_draft", [
    {"sender": "", "receiver": "org2"},
    {"sender": "org1", "receiver": ""},
    {"sender": "   ", "receiver": "org2"},
    {"receiver": "org2"},
    {"sender": "org1", "receiver": None},
])
def test_validation_rejects_before_flow(engine, bad_draft):
    """Rejected drafts create no transaction, flow or log entry"""
    with pytest.raises(ValidationError):
        engine.submit(bad_draft)

    assert engine.get_chain_state()["transactions"] == []
    assert engine.execution_logs == []
    assert not engine.is_busy


def test_submit_requires_running_loop(engine, draft):
    with pytest.raises(RuntimeError):
        engine.submit(draft)
    assert engine.ledger.transactions == []


@pytest.mark.asyncio
async def test_queue_limit(engine, draft):
    engine.max_queued_flows = 2

    engine.submit(draft)
    engine.submit(draft)
    with pytest.raises(ValidationError):
        engine.submit(draft)
    await engine.run_until_idle()

    assert engine.ledger.current_height == 2


@pytest.mark.asyncio
async def test_failed_flow_produces_no_block(testing_settings, draft):
    engine = SimulationEngine(
        settings=testing_settings,
        failure_policy=FailurePolicy(endorsement_failure_rate=1.0),
    )
    phases = []
    engine.on_phase_change(lambda event: phases.append(event.phase))

    tx = engine.submit(draft)
    final = await engine.wait_for(tx.id)

    assert final.status is TransactionStatus.FAILED
    assert phases == [Phase.PROPOSAL, Phase.ENDORSEMENT, Phase.FAILED]
    assert engine.get_chain_state()["blocks"] == []
    assert engine.ledger.current_height == 0


@pytest.mark.asyncio
async def test_reset_cancels_in_flight_flow(testing_settings, draft):
    engine = SimulationEngine(settings=testing_settings, clock=SimulationClock(0.05))
    events, lines = [], []
    engine.on_phase_change(events.append)
    engine.on_log(lines.append)

    tx = engine.submit(draft)
    engine.submit(draft)
    waiter = asyncio.create_task(engine.wait_for(tx.id))
    await asyncio.sleep(0.01)
    assert engine.active_phase is Phase.PROPOSAL

    engine.reset()
    seen_events, seen_lines = len(events), len(lines)

    with pytest.raises(FlowCancelledError):
        await asyncio.wait_for(waiter, timeout=5)
    await asyncio.sleep(0.4)

    assert len(events) == seen_events
    assert len(lines) == seen_lines
    state = engine.get_chain_state()
    assert state["blocks"] == []
    assert state["transactions"] == []
    assert state["current_height"] == 0
    assert engine.execution_logs == []
    assert engine.active_phase is None
    assert not engine.is_busy
    assert engine.queued_flows == 0


@pytest.mark.asyncio
async def test_engine_usable_after_reset(testing_settings, draft):
    engine = SimulationEngine(settings=testing_settings, clock=SimulationClock(0.05))

    engine.submit(draft)
    await asyncio.sleep(0.01)
    engine.reset()
    engine.set_speed(0)
    tx = engine.submit(draft)
    final = await asyncio.wait_for(engine.wait_for(tx.id), timeout=5)

    assert final.status is TransactionStatus.COMMITTED
    blocks = engine.get_chain_state()["blocks"]
    assert len(blocks) == 1
    assert blocks[0].height == 1
    assert blocks[0].previous_hash == GENESIS_HASH


@pytest.mark.asyncio
async def test_wait_for_unknown_transaction(engine):
    with pytest.raises(NotFoundError):
        await engine.wait_for("missing")


@pytest.mark.asyncio
async def test_wait_for_terminal_transaction_returns_immediately(engine, draft):
    tx = engine.submit(draft)
    await engine.run_until_idle()

    final = await engine.wait_for(tx.id)
    assert final.status is TransactionStatus.COMMITTED


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_flow(engine, draft):
    def broken(_event):
        raise RuntimeError("view crashed")

    engine.on_phase_change(broken)

    tx = engine.submit(draft)
    final = await engine.wait_for(tx.id)
    assert final.status is TransactionStatus.COMMITTED


@pytest.mark.asyncio
async def test_chain_state_cannot_rewrite_sealed_blocks(engine, draft):
    """Mutating the read model leaves the stored chain intact"""
    tx = engine.submit(draft)
    await engine.wait_for(tx.id)

    state = engine.get_chain_state()
    state["blocks"][0].transactions[0].status = TransactionStatus.FAILED
    state["blocks"][0].transactions[0].args = "tampered"
    state["transactions"][0].args = "tampered"

    assert engine.ledger.verify_chain() == []
    sealed = engine.get_chain_state()["blocks"][0].transactions[0]
    assert sealed.status is TransactionStatus.COMMITTED
    assert sealed.args == draft["args"]
    assert engine.ledger.get_transaction(tx.id).args == draft["args"]
