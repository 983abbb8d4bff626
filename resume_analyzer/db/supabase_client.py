"""Supabase client singletons (service role for storage/records, anon for auth)."""

from typing import Dict

from supabase import create_client, Client
from resume_analyzer.config import settings

_clients: Dict[str, Client] = {}


def get_supabase(anon: bool = False) -> Client:
    """Get or create a Supabase client.

    The service-role client backs blob and record storage; the anon client
    is only used to validate user tokens.
    """
    role = "anon" if anon else "service_role"
    if role not in _clients:
        key = settings.supabase_anon_key if anon else settings.supabase_service_role_key
        if not settings.supabase_url or not key:
            env_key = "SUPABASE_ANON_KEY" if anon else "SUPABASE_SERVICE_ROLE_KEY"
            raise RuntimeError(f"SUPABASE_URL and {env_key} must be set")
        _clients[role] = create_client(settings.supabase_url, key)
    return _clients[role]
