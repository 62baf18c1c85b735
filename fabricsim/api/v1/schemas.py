"""
Pydantic schemas for API v1 requests and responses

This module defines the data models used for validating and serializing
API v1 requests and responses of the FabricSim simulation service.
"""

from typing import Any
from pydantic import BaseModel, Field, ConfigDict


class TransactionDraftRequest(BaseModel):
    """Request schema for submitting a transaction flow"""
    model_config = ConfigDict(
        json_schema_extra = {
            "example": {
                "sender": "org1",
                "receiver": "org2",
                "type": "Asset Transfer",
                "chaincode": "Asset Management",
                "function": "createAsset",
                "args": "asset1, blue, 5, Tomoko, 300"
            }
        }
    )

    sender: str = Field(..., description="Submitting organization")
    receiver: str = Field(..., description="Receiving organization")
    type: str | None = Field(None, description="Transaction category (configured default if omitted)")
    chaincode: str | None = Field(None, description="Chaincode to invoke (configured default if omitted)")
    function: str | None = Field(None, description="Chaincode function (configured default if omitted)")
    args: str | None = Field(None, description="Comma-separated function arguments (configured default if omitted)")


class TransactionResponse(BaseModel):
    """Response schema for a transaction"""
    id: str
    sender: str
    receiver: str
    type: str
    chaincode: str
    function: str
    args: str
    timestamp: float
    block_height: int
    status: str
    phases: list[str] = Field(default_factory=list, description="Phases reported so far")


class BlockResponse(BaseModel):
    """Response schema for a block"""
    height: int
    hash: str
    timestamp: float
    transactions: list[dict[str, Any]]
    previous_hash: str


class ChainStateResponse(BaseModel):
    """Response schema for the chain read model"""
    blocks: list[BlockResponse]
    transactions: list[TransactionResponse]
    current_height: int
    active_phase: str | None = None
    status_text: str = ""
    queued_flows: int = 0


class VerificationResponse(BaseModel):
    """Response schema for chain verification"""
    valid: bool
    problems: list[str]
    blocks_checked: int


class SpeedRequest(BaseModel):
    """Request schema for changing the simulation speed"""
    model_config = ConfigDict(
        json_schema_extra = {
            "example": {"delay": 0.5}
        }
    )

    delay: float = Field(..., description="Seconds between phases")


class MessageResponse(BaseModel):
    """Generic response for control operations"""
    success: bool = Field(..., description="Whether the operation was successful")
    message: str = Field(..., description="Response message")


class DraftOptionsResponse(BaseModel):
    """Response schema for the choices offered when composing a draft"""
    transaction_types: list[str]
    chaincode_types: list[str]
    defaults: dict[str, str]
