"""
Supabase client construction.

The service talks to Postgres with the service-role key, so row level
security does not apply to its queries. Every repository method takes the
verified user id and filters on `user_id` (or on the owning person), which
makes the repositories the ownership boundary for request handlers and the
weekly cron alike.
"""

import logging
from functools import lru_cache

from supabase import Client, create_client

from app.core.config import settings

logger = logging.getLogger("ReMember.Database")


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the shared service-role Supabase client."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    logger.info("Supabase client initialized")
    return client
