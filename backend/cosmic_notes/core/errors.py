from __future__ import annotations

from typing import Any


class CosmicNotesError(Exception):
    """Base error carrying a human-readable message and diagnostic data.

    `data` is for logs only and is never sent to API callers.
    """

    def __init__(self, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data: dict[str, Any] = data or {}


class UserError(CosmicNotesError):
    """Caller-supplied input is invalid; recoverable by correcting the request."""


class NotFoundError(UserError):
    """A referenced note, tag, cluster or todo does not exist for this user."""


class ApplicationError(CosmicNotesError):
    """An internal dependency (store, model) failed."""


class ExtractionError(ApplicationError):
    """Tag extraction failed or the model returned unusable output."""
