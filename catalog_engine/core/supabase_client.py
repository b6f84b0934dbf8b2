# catalog_engine/core/supabase_client.py
from functools import lru_cache
from supabase import Client, ClientOptions, create_client

from catalog_engine.core.config import get_settings


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - uploading product/variant media to the catalog bucket
      - deleting media that was orphaned by a rolled-back mutation

    The storage client is built with MEDIA_TIMEOUT_SECONDS so that a hung
    upload surfaces as an error instead of blocking the mutation forever.

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    settings = get_settings()
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        options=ClientOptions(storage_client_timeout=settings.MEDIA_TIMEOUT_SECONDS),
    )
