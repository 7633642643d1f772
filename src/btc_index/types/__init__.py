"""Wire-level type definitions for the Bitcoin peer protocol."""

from .base import StrictBaseModel
from .boolean import Boolean
from .byte_arrays import BaseBytes, Bytes4, Bytes16, Bytes32, VarBytes
from .collections import WireList
from .compact_size import CompactSize, encode_compact_size, read_compact_size
from .container import Container
from .exceptions import (
    WireDecodeError,
    WireError,
    WireLengthError,
    WireStreamError,
    WireTypeError,
    WireValueError,
)
from .hash import Hash256, double_sha256
from .uint import BaseInt, Int32, Int64, Port, Uint8, Uint16, Uint32, Uint64
from .wire_base import WireModel, WireType

__all__ = [
    # Core types
    "StrictBaseModel",
    "WireType",
    "WireModel",
    "Container",
    "WireList",
    "Boolean",
    # Integers
    "BaseInt",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Int32",
    "Int64",
    "Port",
    "CompactSize",
    "encode_compact_size",
    "read_compact_size",
    # Bytes and hashes
    "BaseBytes",
    "Bytes4",
    "Bytes16",
    "Bytes32",
    "VarBytes",
    "Hash256",
    "double_sha256",
    # Exceptions
    "WireError",
    "WireTypeError",
    "WireValueError",
    "WireLengthError",
    "WireDecodeError",
    "WireStreamError",
]
