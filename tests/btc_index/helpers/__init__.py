"""Test helpers for btc-index unit tests."""

from __future__ import annotations

from .builders import (
    GENESIS_COINBASE_HEX,
    GENESIS_HASH,
    GENESIS_HEADER_HEX,
    GENESIS_MERKLE_ROOT,
    make_block_message,
    make_chain,
    make_hash,
    make_header,
    make_tx,
)
from .mocks import FakePeer, FakePeerFactory

__all__ = [
    # Vectors
    "GENESIS_COINBASE_HEX",
    "GENESIS_HASH",
    "GENESIS_HEADER_HEX",
    "GENESIS_MERKLE_ROOT",
    # Builders
    "make_block_message",
    "make_chain",
    "make_hash",
    "make_header",
    "make_tx",
    # Mocks
    "FakePeer",
    "FakePeerFactory",
]
