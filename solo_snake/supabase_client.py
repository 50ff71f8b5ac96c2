"""
Supabase client initialization.

A single client is shared by the leaderboard store and anonymous sign-in.
"""

import logging
from typing import Optional

from supabase import Client, create_client

from .config import Settings

logger = logging.getLogger(__name__)


_supabase_client: Optional[Client] = None


def get_supabase_client(settings: Settings) -> Client:
    """
    Get or create the Supabase client.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_ANON_KEY is missing, or the
            client rejects them
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    if not settings.supabase_url:
        raise ValueError("SUPABASE_URL environment variable is required")

    if not settings.supabase_key:
        raise ValueError("SUPABASE_ANON_KEY environment variable is required")

    try:
        _supabase_client = create_client(settings.supabase_url, settings.supabase_key)
        logger.info(f"Supabase client initialized for project: {settings.supabase_url}")
        return _supabase_client

    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        raise ValueError(f"Invalid Supabase configuration: {e}") from e


def reset_supabase_client():
    """Drop the cached client, e.g. between tests."""
    global _supabase_client
    _supabase_client = None
