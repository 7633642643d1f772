"""Base classes and interfaces for all wire types."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import IO

from typing_extensions import Self

from .base import StrictBaseModel
from .exceptions import WireDecodeError, WireStreamError


def read_exact(stream: IO[bytes], size: int, type_name: str) -> bytes:
    """
    Read exactly `size` bytes from `stream`.

    Raises:
        WireStreamError: If the stream ends first.
    """
    data = stream.read(size)
    if len(data) != size:
        raise WireStreamError(type_name, expected_bytes=size, actual_bytes=len(data))
    return data


class WireType(ABC):
    """
    Abstract base class for all wire types.

    Bitcoin's encoding is self-delimiting: every value either has a fixed
    size or carries its own CompactSize length prefix. Deserialization
    therefore only needs the stream, never an externally supplied scope.
    """

    @abstractmethod
    def serialize(self, stream: IO[bytes]) -> int:
        """
        Serialize the object and write it to a binary stream.

        Args:
            stream: The stream to write the serialized data to.

        Returns:
            The number of bytes written.
        """
        ...

    @classmethod
    @abstractmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Deserialize one object from the current position of a binary stream.

        Args:
            stream: The stream to read from.

        Returns:
            An instance of the class.
        """
        ...

    def encode_bytes(self) -> bytes:
        """Serialize the object to a byte string."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """
        Deserialize a byte string holding exactly one object.

        Raises:
            WireDecodeError: If bytes remain after the object.
        """
        with io.BytesIO(data) as stream:
            value = cls.deserialize(stream)
            if stream.tell() != len(data):
                raise WireDecodeError(
                    cls.__name__,
                    f"{len(data) - stream.tell()} trailing bytes",
                    offset=stream.tell(),
                )
            return value


class WireModel(StrictBaseModel, WireType):
    """
    Base class for wire types that use pydantic validation.

    Combines StrictBaseModel (validation + immutability) with wire
    serialization. Containers and lists derive from it; scalar types that need
    to inherit from `int` or `bytes` use WireType directly.
    """
