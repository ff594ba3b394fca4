from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field


class AppBaseModel(PydanticBaseModel):
    """Base for domain models, service schemas and API bodies; unknown fields are rejected."""

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
    )


class TimestampedModel(AppBaseModel):
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    @property
    def last_modified(self) -> datetime:
        return self.updated_at or self.created_at


class ChatMessage(AppBaseModel):
    """One turn of a stored conversation attached to a note or cluster."""

    role: Literal["user", "assistant", "system"]
    content: str = Field(default="", max_length=20000)
