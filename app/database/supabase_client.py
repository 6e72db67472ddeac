from supabase import create_client, Client
from fastapi import HTTPException
from app.config import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use for admin auth calls and scripts."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def has_service_role(cls) -> bool:
        return bool(settings.supabase_service_role_key)


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def get_admin_supabase() -> Client:
    """Service-role client for auth admin calls; fails loudly when the key is missing."""
    if not SupabaseClient.has_service_role():
        raise HTTPException(
            status_code=500,
            detail="Service role key not configured. Cannot manage auth users."
        )
    return SupabaseClient.get_service_client()
