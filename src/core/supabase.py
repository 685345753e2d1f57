"""Supabase client singleton for object storage operations."""

from functools import lru_cache

from supabase import Client, create_client

from src.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for storage operations.

    Uses the secret key (sb_secret_) for backend operations, which bypasses
    bucket policies. Only call it after the caller's authorization has been
    verified.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def public_object_url(bucket: str, path: str) -> str:
    """Public URL of an object in a public bucket."""
    settings = get_settings()
    return f"{settings.supabase_url.rstrip('/')}/storage/v1/object/public/{bucket}/{path}"
