"""Weekly rescues and per-user game stats."""

import logging
from typing import Dict, List, Optional, Set

from app.features.database.repositories.base import BaseRepository

logger = logging.getLogger("ReMember.Database.Rescues")


class WeeklyRescuesRepository(BaseRepository):
    table_name = "weekly_rescues"

    def upsert_many(self, rows: List[Dict]) -> List[Dict]:
        if not rows:
            return []
        return self._execute(
            self.table().upsert(rows, on_conflict="user_id,contact_id,week_date"),
            "save weekly rescues",
        )

    def contact_ids_for_week(self, user_id: str, week_date: str) -> Set[str]:
        query = (
            self.table()
            .select("contact_id")
            .eq("user_id", user_id)
            .eq("week_date", week_date)
        )
        return {row["contact_id"] for row in self._execute(query, "list weekly rescue contacts")}

    def list_pending(self, user_id: str, week_date: str) -> List[Dict]:
        query = (
            self.table()
            .select("*")
            .eq("user_id", user_id)
            .eq("week_date", week_date)
            .eq("status", "pending")
        )
        return self._execute(query, "list weekly rescues")

    def set_status(self, user_id: str, contact_id: str, week_date: str, status: str) -> List[Dict]:
        query = (
            self.table()
            .update({"status": status})
            .eq("user_id", user_id)
            .eq("contact_id", contact_id)
            .eq("week_date", week_date)
        )
        return self._execute(query, "update weekly rescue")


class UserStatsRepository(BaseRepository):
    table_name = "user_stats"

    def list_user_ids(self) -> List[str]:
        rows = self._execute(self.table().select("user_id"), "list users")
        return [row["user_id"] for row in rows if row.get("user_id")]

    def get(self, user_id: str) -> Optional[Dict]:
        return self._first(
            self.table().select("*").eq("user_id", user_id).limit(1),
            "get user stats",
        )

    def save(self, user_id: str, xp: int, level: int) -> Optional[Dict]:
        return self._first(
            self.table().upsert({"user_id": user_id, "xp": xp, "level": level}, on_conflict="user_id"),
            "save user stats",
        )
