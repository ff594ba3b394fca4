from __future__ import annotations

from pydantic import Field, model_validator

from cosmic_notes.core.models.base import AppBaseModel


class ChatRequest(AppBaseModel):
    """One user turn for the assistant, optionally focused on a note or a cluster."""

    message: str = Field(..., min_length=1, max_length=8000)
    previous_response_id: str | None = Field(
        default=None,
        description="Response id of the previous turn; null starts a new conversation",
    )
    note_id: int | None = Field(default=None, description="Discuss this note")
    cluster_id: int | None = Field(default=None, description="Discuss this cluster and its member notes")

    @model_validator(mode="after")
    def validate_focus(self) -> ChatRequest:
        if self.note_id is not None and self.cluster_id is not None:
            raise ValueError("Provide at most one of note_id and cluster_id")
        return self
