from __future__ import annotations

from typing import Any

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import Note  # noqa: TCH001


class SideEffectOutcome(AppBaseModel):
    """Result of one best-effort enrichment step (tagging, cluster rebuild)."""

    operation: str
    success: bool
    target: dict[str, Any] = Field(default_factory=dict)
    detail: str | None = None


class NoteMutationResult(AppBaseModel):
    """Primary note mutation plus the outcomes of its secondary cascade.

    A failed side effect never turns the mutation itself into a failure.
    """

    note: Note
    side_effects: list[SideEffectOutcome] = Field(default_factory=list)

    @property
    def failed_side_effects(self) -> list[SideEffectOutcome]:
        return [s for s in self.side_effects if not s.success]
