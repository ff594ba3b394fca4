from __future__ import annotations

import asyncio
from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from cosmic_notes.config import settings
from cosmic_notes.utils.logging import get_logger

logger = get_logger(__name__)


def _client_options() -> ClientOptions:
    return ClientOptions(auto_refresh_token=False, persist_session=False)


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Return a cached service-role client.

    Only background jobs use it (embedding refresh); it bypasses row-level
    security, so callers must scope every query themselves.
    """
    logger.debug("Initializing Supabase admin client")
    if not settings.supabase_service_role_key:
        raise RuntimeError("supabase_service_role_key is required for admin client")
    return create_client(settings.supabase_url, settings.supabase_service_role_key, options=_client_options())


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Create a request-scoped client using the anon key.

    With a user JWT as the PostgREST bearer, row-level security scopes every
    notes/tags/clusters/todo_items query to that user.
    """
    anon_key = settings.supabase_anon_key
    if not anon_key:
        raise RuntimeError("supabase_anon_key is required for request client")

    client = create_client(settings.supabase_url, anon_key, options=_client_options())
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client


async def ping_database(client: Client) -> None:
    """Issue the cheapest possible query; raises when the store is unreachable."""
    await asyncio.to_thread(lambda: client.table("notes").select("id").limit(1).execute())
