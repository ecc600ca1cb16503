"""Supabase connection management."""

from supabase import AsyncClient, acreate_client

from src.shots.config import settings

_client: AsyncClient | None = None
_admin_client: AsyncClient | None = None


async def get_supabase_client() -> AsyncClient:
    """
    Get async Supabase client instance with anon key (singleton pattern).

    Use this for auth sessions and for operations that should respect RLS
    policies.

    Returns:
        Configured async Supabase client

    Example:
        >>> client = await get_supabase_client()
        >>> response = await client.table("users").select("*").execute()
    """
    global _client
    if _client is None:
        _client = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
    return _client


async def get_supabase_admin_client() -> AsyncClient:
    """
    Get async Supabase admin client with service role key (singleton pattern).

    Only needed for account deletion, which goes through the auth admin API.

    ⚠️ WARNING: This client has full database access. Only use for trusted server-side operations.

    Returns:
        Configured async Supabase client with service role key (bypasses RLS)
    """
    global _admin_client
    if _admin_client is None:
        _admin_client = await acreate_client(
            settings.supabase_url, settings.supabase_service_role_key
        )
    return _admin_client
