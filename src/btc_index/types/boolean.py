"""Boolean wire type."""

from __future__ import annotations

from typing import IO, Any

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema
from typing_extensions import Self

from .exceptions import WireDecodeError
from .wire_base import WireType, read_exact


class Boolean(int, WireType):
    """
    A one-byte boolean (`0x00` or `0x01`).

    Used for flags such as the relay byte of the version message.
    """

    __slots__ = ()

    def __new__(cls, value: bool | int) -> Self:
        """
        Create and validate a new Boolean instance.

        Raises:
            TypeError: If `value` is not a bool or int.
            ValueError: If `value` is an integer other than 0 or 1.
        """
        if not isinstance(value, int):
            raise TypeError(f"Expected bool or int, got {type(value).__name__}")

        int_value = int(value)
        if int_value not in (0, 1):
            raise ValueError(f"Boolean value must be 0 or 1, not {int_value}")

        return super().__new__(cls, int_value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> CoreSchema:
        """Accept instances of the class or strict `bool` values."""
        python_schema = core_schema.chain_schema(
            [
                core_schema.bool_schema(strict=True),
                core_schema.no_info_plain_validator_function(cls),
            ]
        )

        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                python_schema,
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(bool),
        )

    def serialize(self, stream: IO[bytes]) -> int:
        """Write one byte."""
        return stream.write(b"\x01" if self else b"\x00")

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Read one byte.

        Raises:
            WireDecodeError: If the byte is neither 0 nor 1.
        """
        byte = read_exact(stream, 1, cls.__name__)[0]
        if byte not in (0, 1):
            raise WireDecodeError(cls.__name__, f"byte must be 0x00 or 0x01, got {byte:#04x}")
        return cls(byte)

    def __repr__(self) -> str:
        """Return the official string representation of the object."""
        return f"Boolean({bool(self)})"

    def __str__(self) -> str:
        """Return the informal, user-friendly string representation."""
        return str(bool(self))
