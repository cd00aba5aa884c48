"""Shared plumbing for the Supabase repositories."""

import logging
from typing import Any, List

from app.shared.errors import DatabaseError

logger = logging.getLogger("ReMember.Database")


class BaseRepository:
    """Holds the Supabase client and turns client failures into DatabaseError."""

    table_name: str = ""

    def __init__(self, client):
        self.client = client

    def table(self):
        return self.client.table(self.table_name)

    def _execute(self, query, operation: str) -> List[Any]:
        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"{self.table_name}: {operation} failed: {e}")
            raise DatabaseError(f"Failed to {operation}", operation=operation) from e
        return result.data or []

    def _first(self, query, operation: str):
        rows = self._execute(query, operation)
        return rows[0] if rows else None
