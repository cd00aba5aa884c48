"""Interactions repository."""

import logging
from typing import Dict, List, Optional

from app.features.database.repositories.base import BaseRepository
from app.shared.errors import DatabaseError

logger = logging.getLogger("ReMember.Database.Interactions")


class InteractionsRepository(BaseRepository):
    table_name = "interactions"

    def create(self, user_id: str, person_id: str, interaction_type: str,
               interaction_date: str, notes: Optional[str] = None) -> Dict:
        row = {
            "user_id": user_id,
            "person_id": person_id,
            "interaction_type": interaction_type,
            "interaction_date": interaction_date,
            "notes": notes,
        }
        created = self._first(self.table().insert(row), "log interaction")
        if not created:
            raise DatabaseError("Failed to log interaction", operation="log interaction")
        return created

    def list_for_person(self, user_id: str, person_id: str, limit: int = 50) -> List[Dict]:
        query = (
            self.table()
            .select("*")
            .eq("user_id", user_id)
            .eq("person_id", person_id)
            .order("interaction_date", desc=True)
            .limit(limit)
        )
        return self._execute(query, "list interactions")

    def list_recent(self, user_id: str, limit: int = 20) -> List[Dict]:
        query = (
            self.table()
            .select("*")
            .eq("user_id", user_id)
            .order("interaction_date", desc=True)
            .limit(limit)
        )
        return self._execute(query, "list recent interactions")

    def get(self, user_id: str, interaction_id: str) -> Optional[Dict]:
        query = self.table().select("*").eq("id", interaction_id).eq("user_id", user_id).limit(1)
        return self._first(query, "get interaction")

    def delete(self, user_id: str, interaction_id: str) -> bool:
        rows = self._execute(
            self.table().delete().eq("id", interaction_id).eq("user_id", user_id),
            "delete interaction",
        )
        return bool(rows)

    def latest_for_person(self, user_id: str, person_id: str) -> Optional[Dict]:
        rows = self.list_for_person(user_id, person_id, limit=1)
        return rows[0] if rows else None

    def count_for_person(self, user_id: str, person_id: str) -> int:
        rows = self._execute(
            self.table().select("id").eq("user_id", user_id).eq("person_id", person_id),
            "count interactions",
        )
        return len(rows)
