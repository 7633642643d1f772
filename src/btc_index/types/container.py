"""
Container type: ordered heterogeneous structures with named fields.

Most Bitcoin messages are plain structs. A container serializes its fields in
definition order with no framing of its own, so its encoding is the
concatenation of the field encodings.

Example:
    >>> class OutPoint(Container):
    ...     hash: Hash256
    ...     n: Uint32
"""

from __future__ import annotations

from typing import IO, Type, cast

from typing_extensions import Self

from .exceptions import WireTypeError
from .wire_base import WireModel, WireType


class Container(WireModel):
    """
    A strict, ordered collection of named wire fields.

    Every field annotation must be a `WireType` subclass. Messages whose
    layout depends on their content (segwit transactions, the optional relay
    flag of `version`) override `serialize`/`deserialize`.
    """

    @classmethod
    def _field_types(cls) -> list[tuple[str, Type[WireType]]]:
        """Return the (name, wire type) pairs in definition order."""
        fields = []
        for name, info in cls.model_fields.items():
            annotation = info.annotation
            if not (isinstance(annotation, type) and issubclass(annotation, WireType)):
                raise WireTypeError(f"{cls.__name__}.{name} is not a wire type")
            fields.append((name, cast(Type[WireType], annotation)))
        return fields

    def serialize(self, stream: IO[bytes]) -> int:
        """Serialize each field in definition order."""
        return sum(getattr(self, name).serialize(stream) for name, _ in self._field_types())

    @classmethod
    def deserialize(cls, stream: IO[bytes]) -> Self:
        """Read each field in definition order."""
        return cls(
            **{name: field_type.deserialize(stream) for name, field_type in cls._field_types()}
        )
