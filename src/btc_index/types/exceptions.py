"""Exception hierarchy for the wire type system."""

from __future__ import annotations


class WireError(Exception):
    """
    Base exception for all wire serialization errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class WireTypeError(WireError):
    """Raised when a wire type is incorrectly defined or a value has the wrong type."""


class WireValueError(WireError):
    """
    Raised when a value is invalid for a wire operation, even if the type is correct.

    Examples: an integer out of range, a list longer than its protocol limit.
    """


class WireLengthError(WireValueError):
    """
    Raised when a sequence exceeds its protocol limit.

    Attributes:
        type_name: The wire type with the length constraint.
        limit: The maximum number of elements allowed.
        actual: The length received.
    """

    def __init__(self, type_name: str, *, limit: int, actual: int) -> None:
        self.type_name = type_name
        self.limit = limit
        self.actual = actual
        super().__init__(f"{type_name} cannot exceed {limit} elements, got {actual}")


class WireDecodeError(WireError):
    """
    Raised when decoding bytes to a value fails.

    Attributes:
        type_name: The type being decoded.
        detail: Description of what went wrong.
        offset: The byte offset where the error occurred (if known).
    """

    def __init__(self, type_name: str, detail: str, *, offset: int | None = None) -> None:
        self.type_name = type_name
        self.detail = detail
        self.offset = offset

        msg = f"Failed to decode {type_name}: {detail}"
        if offset is not None:
            msg = f"{msg} (at byte offset {offset})"

        super().__init__(msg)


class WireStreamError(WireDecodeError):
    """
    Raised when the stream ends before a value is fully read.

    Attributes:
        expected_bytes: Number of bytes needed.
        actual_bytes: Number of bytes available.
    """

    def __init__(self, type_name: str, *, expected_bytes: int, actual_bytes: int) -> None:
        self.expected_bytes = expected_bytes
        self.actual_bytes = actual_bytes
        super().__init__(
            type_name,
            f"stream ended prematurely: expected {expected_bytes} bytes, got {actual_bytes}",
        )
