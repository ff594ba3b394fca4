from __future__ import annotations

from pydantic import Field

from .base import TimestampedModel


class Tag(TimestampedModel):
    """Edge between a note and a tag name.

    Rows are unique per (note_id, name); the set of rows sharing a name forms a
    tag family.
    """

    id: int
    note_id: int
    name: str = Field(..., min_length=1, max_length=100)
    confidence: float = Field(default=1.0, ge=0, le=1)
