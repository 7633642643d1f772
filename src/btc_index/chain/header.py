"""
Block headers.

A header is the 80-byte summary of a block. It commits to the previous block
through `prev_hash`, which is what turns a bag of headers into a chain, and to
the block's transactions through `merkle_root`.

Headers are small enough to download for the whole chain. The index is built
from them alone; full blocks are only fetched when a caller asks for one.
"""

from __future__ import annotations

from typing import Final

from btc_index.types import Container, Hash256, Int32, Uint32

HEADER_SIZE: Final = 80
"""Serialized size of a block header in bytes."""


class BlockHeader(Container):
    """
    The header of a block.

    Field order is the wire order. All integers are little-endian.
    """

    version: Int32
    """Block version, signed on the wire (BIP-9 version bits in the high byte)."""

    prev_hash: Hash256
    """Hash of the previous block's header."""

    merkle_root: Hash256
    """Merkle root of the block's transaction ids."""

    time: Uint32
    """Block timestamp in unix seconds."""

    bits: Uint32
    """Compact encoding of the proof-of-work target."""

    nonce: Uint32
    """Proof-of-work nonce."""

    @property
    def hash(self) -> Hash256:
        """The block hash: double SHA-256 of the 80-byte serialization."""
        return Hash256.of(self.encode_bytes())
