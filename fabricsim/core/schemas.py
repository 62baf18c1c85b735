"""
Arrow Schemas for FabricSim ledger exports.

This module defines the Apache Arrow schemas used for:
- Transactions: every submitted transaction, whatever its status
- BlockHeaders: one row per block in the chain
"""

import pyarrow as pa

TRANSACTION_SCHEMA = pa.schema([
    ('id', pa.string()),
    ('sender', pa.string()),
    ('receiver', pa.string()),
    ('type', pa.string()),
    ('chaincode', pa.string()),
    ('function', pa.string()),
    ('args', pa.string()),
    ('timestamp', pa.float64()),
    ('block_height', pa.int64()),
    ('status', pa.string()),
])


BLOCK_HEADER_SCHEMA = pa.schema([
    ('height', pa.int64()),
    ('hash', pa.string()),
    ('previous_hash', pa.string()),
    ('timestamp', pa.float64()),
    ('transaction_count', pa.int64()),
    ('transaction_ids', pa.list_(pa.string())),
])


def get_transaction_schema() -> pa.Schema:
    """Return the Arrow schema for a Transaction."""
    return TRANSACTION_SCHEMA


def get_block_header_schema() -> pa.Schema:
    """Return the Arrow schema for a Block Header."""
    return BLOCK_HEADER_SCHEMA
