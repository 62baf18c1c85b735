"""
API v1 endpoints for FabricSim

This module provides RESTful endpoints for driving the transaction-flow
simulation: submitting drafts, reading the chain, verifying it, reading the
execution log, changing the simulation speed and resetting the session.
"""

import time
import logging
from fastapi import APIRouter, HTTPException, Request, Query, status

from fabricsim.api.v1.schemas import (
    TransactionDraftRequest, TransactionResponse, BlockResponse,
    ChainStateResponse, VerificationResponse, SpeedRequest, MessageResponse,
    DraftOptionsResponse
)
from fabricsim.core.models import Transaction
from fabricsim.core.simulation_engine import SimulationEngine
from fabricsim.error_mitigation.validator import (
    ValidationError, NotFoundError, FlowCancelledError
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["FabricSim-v1"])


def get_engine(request: Request) -> SimulationEngine:
    return request.app.state.engine


def _transaction_response(engine: SimulationEngine, tx: Transaction) -> TransactionResponse:
    phases = [phase.value for phase in engine.phase_history.get(tx.id, [])]
    return TransactionResponse(**tx.to_dict(), phases=phases)


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for API v1"""
    engine = get_engine(request)
    return {
        "status": "healthy",
        "version": "v1",
        "timestamp": time.time(),
        "current_height": engine.ledger.current_height,
        "busy": engine.is_busy,
    }


@router.get("/draft-options", response_model=DraftOptionsResponse)
async def get_draft_options(request: Request):
    """Transaction types, chaincodes and the defaults applied to omitted fields"""
    return DraftOptionsResponse(**get_engine(request).settings.get_draft_options())


@router.post("/transactions", response_model=TransactionResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_transaction(draft: TransactionDraftRequest, request: Request,
                             wait: bool = Query(False, description="Block until the flow terminates")):
    """Validate a draft and queue its transaction flow"""
    engine = get_engine(request)
    try:
        tx = engine.submit(draft.model_dump(exclude_none=True))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if wait:
        try:
            tx = await engine.wait_for(tx.id)
        except FlowCancelledError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _transaction_response(engine, tx)


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(request: Request, search: str = "", status_filter: str = Query("all", alias="status")):
    """List transactions, optionally filtered by search term and status"""
    engine = get_engine(request)
    try:
        transactions = engine.ledger.find_transactions(search=search, status=status_filter)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return [_transaction_response(engine, tx) for tx in transactions]


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(transaction_id: str, request: Request):
    """Get a single transaction with the phases it has gone through"""
    engine = get_engine(request)
    try:
        tx = engine.ledger.get_transaction(transaction_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Transaction '{transaction_id}' not found"
        )
    return _transaction_response(engine, tx)


@router.get("/chain", response_model=ChainStateResponse)
async def get_chain_state(request: Request):
    """Get blocks, transactions and the current height"""
    engine = get_engine(request)
    state = engine.get_chain_state()
    return ChainStateResponse(
        blocks=[BlockResponse(**block.to_dict()) for block in state["blocks"]],
        transactions=[_transaction_response(engine, tx) for tx in state["transactions"]],
        current_height=state["current_height"],
        active_phase=engine.active_phase.value if engine.active_phase else None,
        status_text=engine.status_text,
        queued_flows=engine.queued_flows,
    )


@router.get("/chain/verify", response_model=VerificationResponse)
async def verify_chain(request: Request):
    """Re-verify every hash link from genesis"""
    engine = get_engine(request)
    problems = engine.ledger.verify_chain()
    return VerificationResponse(valid=not problems, problems=problems, blocks_checked=len(engine.ledger))


@router.get("/blocks/{height}", response_model=BlockResponse)
async def get_block(height: int, request: Request):
    """Get a block by height"""
    engine = get_engine(request)
    try:
        block = engine.ledger.get_block(height)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Block #{height} not found")
    return BlockResponse(**block.to_dict())


@router.get("/statistics")
async def get_statistics(request: Request):
    """Transaction counts per status, block count and height"""
    return get_engine(request).ledger.get_statistics()


@router.get("/topology")
async def get_topology(request: Request):
    """Static nodes and connections of the simulated network"""
    topology = get_engine(request).topology
    return {
        "nodes": [node.to_dict() for node in topology.nodes()],
        "edges": [edge.to_dict() for edge in topology.connections()],
    }


@router.get("/logs", response_model=list[str])
async def get_logs(request: Request):
    """Execution log lines, oldest first"""
    return list(get_engine(request).execution_logs)


@router.put("/settings/speed", response_model=MessageResponse)
async def set_speed(speed: SpeedRequest, request: Request):
    """Change the delay between phases"""
    try:
        get_engine(request).set_speed(speed.delay)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return MessageResponse(success=True, message=f"Simulation speed set to {speed.delay}s")


@router.post("/reset", response_model=MessageResponse)
async def reset_simulation(request: Request):
    """Clear the ledger and cancel any in-flight flow"""
    get_engine(request).reset()
    return MessageResponse(success=True, message="Simulation reset")
