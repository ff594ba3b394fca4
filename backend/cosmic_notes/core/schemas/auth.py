from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from cosmic_notes.core.models.base import AppBaseModel


class AuthUser(AppBaseModel):
    """Caller identity verified against the auth provider.

    Sign-in and sign-up happen at the provider; the API only checks bearers.
    """

    id: UUID
    email: str | None = None
    role: str | None = None
