"""
Database feature module - organized data access over Supabase.

Usage:
    from app.features.database import get_database_client

    db = get_database_client()
    contacts = db.persons.list(user_id)
"""

from app.features.database.client import (
    DatabaseClient,
    get_database_client,
)

__all__ = [
    "DatabaseClient",
    "get_database_client",
]
