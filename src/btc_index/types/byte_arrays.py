"""
Byte array wire types.

This module provides two kinds of byte strings:

- Fixed-length vectors (`Bytes4`, `Bytes16`, `Bytes32`): exactly LENGTH raw bytes.
- `VarBytes`: a CompactSize length prefix followed by that many bytes
  (scripts, user agent strings, witness items).
"""

from __future__ import annotations

from typing import IO, Any, ClassVar, Iterable, SupportsIndex

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .compact_size import encode_compact_size, read_compact_size
from .exceptions import WireLengthError
from .wire_base import WireType, read_exact


def _coerce_to_bytes(value: Any) -> bytes:
    """
    Coerce a variety of inputs to raw bytes.

    Accepts:
      - `bytes` / `bytearray` (returned as immutable `bytes`)
      - Iterables of integers in [0, 255]
      - Hex strings, with or without a '0x' prefix

    Raises:
      ValueError / TypeError if conversion is not possible or out-of-range.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value.removeprefix("0x"))
    if isinstance(value, Iterable):
        return bytes(bytearray(value))
    return bytes(value)


class BaseBytes(bytes, WireType):
    """
    A base class for fixed-length byte types that inherits from `bytes`.

    Subclasses set `LENGTH`, the exact number of bytes an instance holds.
    """

    LENGTH: ClassVar[int]
    """The exact number of bytes (overridden by subclasses)."""

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create and validate a new Bytes instance.

        Raises:
            ValueError: If the resulting byte length differs from `LENGTH`.
        """
        if not hasattr(cls, "LENGTH"):
            raise TypeError(f"{cls.__name__} must define LENGTH")

        b = _coerce_to_bytes(value)
        if len(b) != cls.LENGTH:
            raise ValueError(f"{cls.__name__} expects exactly {cls.LENGTH} bytes, got {len(b)}")
        return super().__new__(cls, b)

    @classmethod
    def zero(cls) -> Self:
        """Create a new instance filled with zero bytes."""
        return cls(b"\x00" * cls.LENGTH)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the raw bytes to `stream`."""
        return stream.write(self)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read exactly `LENGTH` bytes from `stream`."""
        return cls(read_exact(stream, cls.LENGTH, cls.__name__))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """
        Hook into Pydantic's validation system.

        1. If the input is already an instance of the class, accept it.
        2. Otherwise validate raw bytes of exactly LENGTH and wrap them.
        3. Serialize to a hex string.
        """
        python_schema = core_schema.chain_schema(
            [
                core_schema.bytes_schema(min_length=cls.LENGTH, max_length=cls.LENGTH),
                core_schema.no_info_plain_validator_function(cls),
            ]
        )

        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                python_schema,
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(lambda x: x.hex()),
        )

    def __repr__(self) -> str:
        """Return a string representation of the bytes."""
        return f"{type(self).__name__}({self.hex()})"

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        return bytes(self).hex() if sep is None else bytes(self).hex(sep, bytes_per_sep)


class Bytes4(BaseBytes):
    """Fixed-size byte array of exactly 4 bytes (network magic, checksums)."""

    LENGTH = 4


class Bytes16(BaseBytes):
    """Fixed-size byte array of exactly 16 bytes (IPv6-mapped addresses)."""

    LENGTH = 16


class Bytes32(BaseBytes):
    """Fixed-size byte array of exactly 32 bytes."""

    LENGTH = 32


class VarBytes(bytes, WireType):
    """
    A length-prefixed byte string.

    `LIMIT` bounds the length accepted on decode, so a hostile peer cannot
    make us allocate an arbitrarily large buffer from a forged prefix.
    """

    LIMIT: ClassVar[int] = 4_000_000
    """Maximum number of bytes accepted (the maximum block weight)."""

    def __new__(cls, value: Any = b"") -> Self:
        b = _coerce_to_bytes(value)
        if len(b) > cls.LIMIT:
            raise WireLengthError(cls.__name__, limit=cls.LIMIT, actual=len(b))
        return super().__new__(cls, b)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the CompactSize length followed by the bytes."""
        return stream.write(encode_compact_size(len(self))) + stream.write(self)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read a length-prefixed byte string."""
        length = read_compact_size(stream)
        if length > cls.LIMIT:
            raise WireLengthError(cls.__name__, limit=cls.LIMIT, actual=length)
        return cls(read_exact(stream, length, cls.__name__))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Accept instances or raw bytes within `LIMIT`."""
        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                core_schema.chain_schema(
                    [
                        core_schema.bytes_schema(max_length=cls.LIMIT),
                        core_schema.no_info_plain_validator_function(cls),
                    ]
                ),
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(lambda x: x.hex()),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({bytes(self).hex()})"
