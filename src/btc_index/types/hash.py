"""Block and transaction hashes."""

from __future__ import annotations

import hashlib

from typing_extensions import Self

from .byte_arrays import Bytes32


def double_sha256(data: bytes) -> bytes:
    """Return SHA256(SHA256(data)), the digest behind every Bitcoin identifier."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


class Hash256(Bytes32):
    """
    A 32-byte double-SHA256 digest in internal (wire) byte order.

    Bitcoin displays hashes byte-reversed, so the genesis block hash that
    explorers print as ``000000000019d6...`` starts with ``6fe28c0a...`` on
    the wire. `from_hex` parses the display form and `str()` produces it;
    `hex()` returns the wire-order bytes unchanged.
    """

    @classmethod
    def from_hex(cls, display_hex: str) -> Self:
        """Parse a hash from its byte-reversed display form."""
        return cls(bytes.fromhex(display_hex.removeprefix("0x"))[::-1])

    @classmethod
    def of(cls, data: bytes) -> Self:
        """Hash `data` with double SHA-256."""
        return cls(double_sha256(data))

    def __str__(self) -> str:
        """Return the display (byte-reversed) hex form."""
        return bytes(self)[::-1].hex()

    def __repr__(self) -> str:
        return f"Hash256({self})"
