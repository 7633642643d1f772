"""Length-prefixed list type."""

from __future__ import annotations

from typing import (
    IO,
    Any,
    ClassVar,
    Generic,
    Iterator,
    Sequence,
    Type,
    TypeVar,
    cast,
    overload,
)

from pydantic import Field, field_validator
from typing_extensions import Self

from .compact_size import encode_compact_size, read_compact_size
from .exceptions import WireLengthError, WireTypeError
from .wire_base import WireModel, WireType

T = TypeVar("T", bound=WireType)
"""
Generic type parameter for list elements.

Bound to `WireType` so every element knows how to serialize itself, and used
with `Generic[T]` so type checkers infer the element type on indexing:

    class Locator(WireList[Hash256]):
        ELEMENT_TYPE = Hash256
        LIMIT = 101

    locator = Locator(data=[...])
    h = locator[0]  # Type checker infers `h: Hash256`
"""


class WireList(WireModel, Generic[T]):
    """
    Variable-length, immutable, bounded sequence.

    Encoded as a CompactSize element count followed by the elements
    back-to-back. Every element type is self-delimiting, so no offsets are
    needed.

    Subclasses must define:
        ELEMENT_TYPE: The wire type of each element
        LIMIT: The maximum number of elements, enforced on construction and
            before reading any element on decode
    """

    ELEMENT_TYPE: ClassVar[Type[WireType]]
    """The wire type of elements in this list."""

    LIMIT: ClassVar[int]
    """The maximum number of elements allowed."""

    data: Sequence[T] = Field(default_factory=tuple)
    """
    The immutable sequence of elements.

    Accepts lists or tuples on input; stored as a tuple after validation.
    """

    @field_validator("data", mode="before")
    @classmethod
    def _validate_list_data(cls, v: Any) -> tuple[WireType, ...]:
        """Validate and convert input to a typed tuple within LIMIT."""
        if not hasattr(cls, "ELEMENT_TYPE") or not hasattr(cls, "LIMIT"):
            raise WireTypeError(f"{cls.__name__} must define ELEMENT_TYPE and LIMIT")

        if not isinstance(v, (list, tuple)):
            v = tuple(v)

        if len(v) > cls.LIMIT:
            raise WireLengthError(cls.__name__, limit=cls.LIMIT, actual=len(v))

        # Convert each element to the declared type
        return tuple(
            item if isinstance(item, cls.ELEMENT_TYPE) else cast(Any, cls.ELEMENT_TYPE)(item)
            for item in v
        )

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the element count and then each element."""
        written = stream.write(encode_compact_size(len(self.data)))
        return written + sum(element.serialize(stream) for element in self.data)

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """
        Read a count-prefixed list.

        The count is checked against LIMIT before any element is read.
        """
        count = read_compact_size(stream)
        if count > cls.LIMIT:
            raise WireLengthError(cls.__name__, limit=cls.LIMIT, actual=count)
        return cls(data=[cls.ELEMENT_TYPE.deserialize(stream) for _ in range(count)])

    def __len__(self) -> int:
        """Return the number of elements."""
        return len(self.data)

    def __iter__(self) -> Iterator[T]:  # type: ignore[override]
        """Iterate over the elements."""
        return iter(self.data)

    @overload
    def __getitem__(self, index: int) -> T: ...
    @overload
    def __getitem__(self, index: slice) -> Sequence[T]: ...

    def __getitem__(self, index: int | slice) -> T | Sequence[T]:
        """Access an element by index or slice."""
        return self.data[index]

    def __repr__(self) -> str:
        """Return a readable string representation."""
        return f"{type(self).__name__}({list(self.data)!r})"
