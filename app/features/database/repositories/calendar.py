"""Calendar preferences and synced meetings."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.features.database.repositories.base import BaseRepository

logger = logging.getLogger("ReMember.Database.Calendar")

TOKEN_COLUMNS = ("access_token_encrypted", "refresh_token_encrypted")

DEFAULT_PREFERENCES = {
    "calendar_enabled": False,
    "notification_time": 30,
    "only_known_contacts": False,
    "provider": None,
    "last_sync_at": None,
    "last_sync_error": None,
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def public_preferences(row: Optional[Dict]) -> Dict:
    """Preferences safe to return to the client (never the tokens)."""
    if not row:
        return dict(DEFAULT_PREFERENCES)
    return {k: v for k, v in row.items() if k not in TOKEN_COLUMNS}


class CalendarPreferencesRepository(BaseRepository):
    table_name = "calendar_preferences"

    def get(self, user_id: str) -> Optional[Dict]:
        return self._first(
            self.table().select("*").eq("user_id", user_id).limit(1),
            "get calendar preferences",
        )

    def save_tokens(
        self,
        user_id: str,
        provider: str,
        access_token_encrypted: str,
        refresh_token_encrypted: Optional[str],
        token_expiry: str,
    ) -> Dict:
        row = {
            "user_id": user_id,
            "provider": provider,
            "calendar_enabled": True,
            "access_token_encrypted": access_token_encrypted,
            "token_expiry": token_expiry,
            "last_sync_at": _now_iso(),
            "last_sync_error": None,
            "notification_time": 30,
        }
        if refresh_token_encrypted:
            row["refresh_token_encrypted"] = refresh_token_encrypted
        return self._first(
            self.table().upsert(row, on_conflict="user_id"),
            "save calendar tokens",
        )

    def update(self, user_id: str, fields: Dict) -> Optional[Dict]:
        return self._first(
            self.table().update({**fields, "updated_at": _now_iso()}).eq("user_id", user_id),
            "update calendar preferences",
        )

    def record_sync_error(self, user_id: str, message: str) -> None:
        logger.warning(f"Calendar sync error for user {user_id}: {message}")
        self.update(user_id, {"last_sync_error": message})

    def delete(self, user_id: str) -> None:
        self._execute(self.table().delete().eq("user_id", user_id), "disconnect calendar")


class MeetingsRepository(BaseRepository):
    table_name = "meetings"

    def upsert(self, meeting: Dict) -> Optional[Dict]:
        return self._first(
            self.table().upsert(meeting, on_conflict="user_id,calendar_event_id"),
            "upsert meeting",
        )

    def list_upcoming(self, user_id: str, limit: int = 50) -> List[Dict]:
        query = (
            self.table()
            .select("*")
            .eq("user_id", user_id)
            .gte("start_time", _now_iso())
            .order("start_time")
            .limit(limit)
        )
        return self._execute(query, "list meetings")
