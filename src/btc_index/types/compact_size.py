"""
CompactSize unsigned integers.

WHAT IS COMPACTSIZE?
--------------------
Bitcoin prefixes every variable-length field (scripts, lists of inputs,
locator hashes, inventory vectors) with its element count. Most counts are
small, so the protocol uses a variable-width encoding instead of a fixed
uint64.


ENCODING
--------
The first byte selects the width::

    Value 0-252:                 1 byte   [value]
    Value 253-0xffff:            3 bytes  [0xfd][uint16 LE]
    Value 0x10000-0xffffffff:    5 bytes  [0xfe][uint32 LE]
    Value above:                 9 bytes  [0xff][uint64 LE]

Example: 300 = 0x012c encodes as [0xfd, 0x2c, 0x01].


CANONICAL FORM
--------------
Each value has exactly one valid encoding: the shortest one. A decoder that
accepted [0xfd, 0x05, 0x00] for 5 would allow two different serializations
of the same message, so non-canonical encodings are rejected.


References:
    https://en.bitcoin.it/wiki/Protocol_documentation#Variable_length_integer
    https://developer.bitcoin.org/reference/transactions.html#compactsize-unsigned-integers
"""

from __future__ import annotations

from typing import IO, Final

from typing_extensions import Self

from .exceptions import WireDecodeError
from .uint import BaseInt
from .wire_base import read_exact

_PREFIX_UINT16: Final = 0xFD
"""Marker byte for a 2-byte payload."""

_PREFIX_UINT32: Final = 0xFE
"""Marker byte for a 4-byte payload."""

_PREFIX_UINT64: Final = 0xFF
"""Marker byte for an 8-byte payload."""

_WIDTHS: Final = {_PREFIX_UINT16: 2, _PREFIX_UINT32: 4, _PREFIX_UINT64: 8}
"""Payload width selected by each marker byte."""


def encode_compact_size(value: int) -> bytes:
    """
    Encode an unsigned integer as a CompactSize.

    Raises:
        ValueError: If value is negative or exceeds 64 bits.
    """
    if value < 0:
        raise ValueError("CompactSize value must be non-negative")
    if value < _PREFIX_UINT16:
        return bytes([value])
    if value <= 0xFFFF:
        return bytes([_PREFIX_UINT16]) + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return bytes([_PREFIX_UINT32]) + value.to_bytes(4, "little")
    if value <= 0xFFFFFFFFFFFFFFFF:
        return bytes([_PREFIX_UINT64]) + value.to_bytes(8, "little")
    raise ValueError(f"CompactSize value {value} exceeds 64 bits")


def read_compact_size(stream: IO[bytes]) -> int:
    """
    Read one CompactSize from the stream.

    Raises:
        WireStreamError: If the stream ends mid-value.
        WireDecodeError: If the encoding is not the shortest possible.
    """
    first = read_exact(stream, 1, "CompactSize")[0]
    width = _WIDTHS.get(first)
    if width is None:
        return first

    value = int.from_bytes(read_exact(stream, width, "CompactSize"), "little")

    # The shortest form for the value must have been used.
    minimum = {2: _PREFIX_UINT16, 4: 0x10000, 8: 0x100000000}[width]
    if value < minimum:
        raise WireDecodeError("CompactSize", f"non-canonical encoding of {value}")
    return value


class CompactSize(BaseInt):
    """A CompactSize integer usable as a container field."""

    BITS = 64

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the shortest encoding of the value."""
        return stream.write(encode_compact_size(int(self)))

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read a canonical CompactSize."""
        return cls(read_compact_size(stream))
