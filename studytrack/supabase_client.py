"""Supabase client singletons for state storage and authentication."""

from typing import Optional
from supabase import create_client, Client

from . import config

_supabase: Optional[Client] = None
_auth_client: Optional[Client] = None


def get_supabase() -> Client:
    """Get or create the service-role Supabase client used by the state store.

    Requires environment variables:
    - SUPABASE_URL: Your Supabase project URL
    - SUPABASE_SERVICE_KEY: Service role key (for backend operations)

    Raises:
        ValueError: If required environment variables are not set
    """
    global _supabase

    if _supabase is None:
        url = config.SUPABASE_URL
        key = config.SUPABASE_SERVICE_KEY

        if not url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables must be set. "
                "Get these from your Supabase project settings."
            )

        _supabase = create_client(url, key)
        print(f"[Supabase] Connected to {url}")

    return _supabase


def get_auth_client() -> Client:
    """Get or create the anon-key client used for Supabase Auth calls.

    Falls back to the service key when no anon key is configured.
    """
    global _auth_client

    if _auth_client is None:
        url = config.SUPABASE_URL
        key = config.SUPABASE_ANON_KEY or config.SUPABASE_SERVICE_KEY

        if not url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY environment variables must be set "
                "to use authentication."
            )

        _auth_client = create_client(url, key)
        print(f"[Supabase] Auth client ready for {url}")

    return _auth_client
