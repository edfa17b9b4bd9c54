"""Supabase clients: one scoped to the caller's JWT, one service-role client for admin calls."""
from functools import lru_cache

from supabase import Client, create_client

from deenly.config import settings


def get_supabase_client(access_token: str) -> Client:
    """Client whose PostgREST calls run under the user's RLS policies."""
    client = create_client(settings.supabase_url, settings.supabase_anon_key)
    client.postgrest.auth(access_token)
    return client


@lru_cache(maxsize=1)
def get_service_supabase_client() -> Client:
    """Service-role client, bypasses RLS. Only used for user metadata updates
    (premium flag), so a single instance is shared by the process."""
    return create_client(settings.supabase_url, settings.supabase_service_role_key)
