"""
Supabase client configuration.
Uses the service key: the archiver runs as a backend job, not as a user.
"""

from supabase import Client, create_client

from archiver.config import AppConfig


def create_storage_client(config: AppConfig) -> Client:
    """Admin client for service-level storage operations (bypasses RLS)."""
    return create_client(config.supabase_url, config.supabase_service_key)
