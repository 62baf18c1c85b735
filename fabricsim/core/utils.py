"""
Utility functions for FabricSim.

This module provides the digest used to chain blocks and to derive transaction
identifiers, together with small formatting helpers shared by the engine.
"""

import hashlib
import itertools
import json
import time
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

GENESIS_HASH = "0" * 64

_id_counter = itertools.count()


@runtime_checkable
class HashChain(Protocol):
    """Digest function used for content-addressed chaining."""

    def hash(self, data: str) -> str:
        ...


class Sha256HashChain:
    """Default HashChain backed by SHA-256 hex digests."""

    def hash(self, data: str) -> str:
        return compute_hash_standalone(data)


def compute_hash_standalone(data_string: str) -> str:
    """
    Pure function to compute SHA-256 hash.
    """
    return hashlib.sha256(data_string.encode()).hexdigest()


def generate_hash(data: str | dict[str, Any]) -> str:
    """
    Generate SHA-256 hash for given data.

    Args:
        data: Data to hash (string or dictionary)

    Returns:
        SHA-256 hash as hexadecimal string
    """
    if isinstance(data, dict):
        data_string = canonical_json(data)
    else:
        data_string = str(data)

    return compute_hash_standalone(data_string)


def canonical_json(data: Any) -> str:
    """Serialize data with sorted keys and compact separators."""
    return json.dumps(data, sort_keys=True, separators=(',', ':'))


def generate_transaction_id(hash_chain: HashChain | None = None) -> str:
    """
    Derive a transaction identifier from a time-based seed.

    A process-wide counter is mixed into the seed so two submissions within
    the same clock tick still get distinct identifiers.
    """
    seed = f"{time.time_ns()}-{next(_id_counter)}"
    if hash_chain is None:
        return compute_hash_standalone(seed)
    return hash_chain.hash(seed)


def format_log_line(message: str, timestamp: float | None = None) -> str:
    """Prefix an execution-log message with a [HH:MM:SS] wall-clock stamp."""
    moment = datetime.fromtimestamp(timestamp if timestamp is not None else time.time())
    return f"[{moment.strftime('%H:%M:%S')}] {message}"


def short_id(identifier: str) -> str:
    """First eight characters of a digest, for log lines."""
    return identifier[:8]
