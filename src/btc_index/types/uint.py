"""Fixed-width integer types of the Bitcoin wire format."""

from __future__ import annotations

from typing import IO, Any, ClassVar, Literal, SupportsInt

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema
from typing_extensions import Self

from .wire_base import WireType, read_exact


class BaseInt(int, WireType):
    """
    A base class for fixed-width integer types that inherits from `int`.

    Subclasses set:
      - `BITS`: width of the integer on the wire.
      - `SIGNED`: whether the value is two's complement.
      - `BYTEORDER`: little-endian for almost everything; network addresses
        carry their port big-endian.
    """

    BITS: ClassVar[int]
    """The number of bits in the integer (overridden by subclasses)."""

    SIGNED: ClassVar[bool] = False
    """Whether the integer is signed."""

    BYTEORDER: ClassVar[Literal["little", "big"]] = "little"
    """Byte order used on the wire."""

    def __new__(cls, value: SupportsInt) -> Self:
        """
        Create and validate a new integer instance.

        Raises:
            TypeError: If `value` is a bool, float or string.
            OverflowError: If `value` does not fit in `BITS`.
        """
        if isinstance(value, (bool, float, str, bytes)):
            raise TypeError(f"{cls.__name__} cannot be created from {type(value).__name__}")
        int_value = int(value)
        if not (cls.min_value() <= int_value <= cls.max_value()):
            raise OverflowError(f"{int_value} is out of range for {cls.__name__}")
        return super().__new__(cls, int_value)

    @classmethod
    def min_value(cls) -> int:
        """Smallest representable value."""
        return -(2 ** (cls.BITS - 1)) if cls.SIGNED else 0

    @classmethod
    def max_value(cls) -> int:
        """Largest representable value."""
        return 2 ** (cls.BITS - 1) - 1 if cls.SIGNED else 2**cls.BITS - 1

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Hook into Pydantic's validation system."""

        def validate(value: Any) -> BaseInt:
            """Pydantic validation function that calls the class constructor."""
            try:
                return cls(value)
            except (OverflowError, TypeError) as e:
                raise ValueError(str(e)) from e

        return core_schema.json_or_python_schema(
            json_schema=core_schema.int_schema(ge=cls.min_value(), le=cls.max_value()),
            python_schema=core_schema.no_info_plain_validator_function(validate),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda instance: int(instance)
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, core_schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        """Hook into Pydantic's JSON Schema generation system."""
        json_schema = handler(core_schema)
        json_schema.update(format=f"{'int' if cls.SIGNED else 'uint'}{cls.BITS}")
        return json_schema

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the integer in its wire width and byte order."""
        return stream.write(
            int(self).to_bytes(self.BITS // 8, byteorder=self.BYTEORDER, signed=self.SIGNED)
        )

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read one integer of this width from the stream."""
        data = read_exact(stream, cls.BITS // 8, cls.__name__)
        return cls(int.from_bytes(data, byteorder=cls.BYTEORDER, signed=cls.SIGNED))

    def __repr__(self) -> str:
        """Return the official string representation of the object."""
        return f"{type(self).__name__}({int(self)})"

    def __str__(self) -> str:
        """Return the informal, user-friendly string representation."""
        return str(int(self))


class Uint8(BaseInt):
    """An 8-bit unsigned integer."""

    BITS = 8


class Uint16(BaseInt):
    """A 16-bit unsigned integer."""

    BITS = 16


class Port(BaseInt):
    """A TCP port as carried in network addresses (16-bit, big-endian)."""

    BITS = 16
    BYTEORDER = "big"


class Uint32(BaseInt):
    """A 32-bit unsigned integer."""

    BITS = 32


class Uint64(BaseInt):
    """A 64-bit unsigned integer."""

    BITS = 64


class Int32(BaseInt):
    """A 32-bit signed integer (block and transaction versions)."""

    BITS = 32
    SIGNED = True


class Int64(BaseInt):
    """A 64-bit signed integer (output values, timestamps)."""

    BITS = 64
    SIGNED = True
