"""Reusable, strict base models for the Bitcoin wire and domain types."""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """
    A strict, immutable pydantic base model.

    Every model in the library derives from this class:

    - Unknown fields are rejected instead of silently dropped.
    - Instances are frozen once validated, so headers and blocks can be
      shared read-only between the sync session and its callers.
    - Strict mode prevents lossy coercions ("1" for an integer, 1.0 for bytes).
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        strict=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )
