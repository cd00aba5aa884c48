"""
Persons repository.

Every query is scoped by user_id; a contact id alone never selects a row.
Archived contacts are excluded unless asked for.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.features.database.repositories.base import BaseRepository
from app.shared.constants import ACTIVE_PERSONS_FILTER
from app.shared.errors import DatabaseError

logger = logging.getLogger("ReMember.Database.Persons")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PersonsRepository(BaseRepository):
    table_name = "persons"

    def list(
        self,
        user_id: str,
        search: Optional[str] = None,
        importance: Optional[str] = None,
        favorites_only: bool = False,
        include_archived: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict]:
        query = self.table().select("*").eq("user_id", user_id)
        if search:
            # A request carries a single `or` filter; the archive check moves to Python
            term = search.replace(",", " ").strip()
            query = query.or_(
                f"name.ilike.%{term}%,email.ilike.%{term}%,company.ilike.%{term}%"
            )
        elif not include_archived:
            query = query.or_(ACTIVE_PERSONS_FILTER)
        if importance:
            query = query.eq("importance", importance)
        if favorites_only:
            query = query.eq("is_favorite", True)
        query = query.order("name")
        if limit:
            query = query.limit(limit)

        rows = self._execute(query, "list contacts")
        if search and not include_archived:
            rows = [r for r in rows if not r.get("archive_status")]
        return rows

    def list_archived(self, user_id: str) -> List[Dict]:
        query = self.table().select("*").eq("user_id", user_id).eq("archive_status", True).order("name")
        return self._execute(query, "list archived contacts")

    def get(self, user_id: str, person_id: str) -> Optional[Dict]:
        query = self.table().select("*").eq("id", person_id).eq("user_id", user_id).limit(1)
        return self._first(query, "get contact")

    def get_many(self, user_id: str, person_ids: List[str]) -> List[Dict]:
        if not person_ids:
            return []
        query = self.table().select("*").eq("user_id", user_id).in_("id", person_ids)
        return self._execute(query, "get contacts")

    def create(self, user_id: str, data: Dict) -> Dict:
        row = {**data, "user_id": user_id}
        created = self._first(self.table().insert(row), "create contact")
        if not created:
            raise DatabaseError("Failed to create contact", operation="create contact")
        logger.info(f"Created contact {created.get('id')}")
        return created

    def create_many(self, user_id: str, rows: List[Dict]) -> List[Dict]:
        if not rows:
            return []
        return self._execute(
            self.table().insert([{**row, "user_id": user_id} for row in rows]),
            "import contacts",
        )

    def update(self, user_id: str, person_id: str, data: Dict) -> Optional[Dict]:
        query = (
            self.table()
            .update({**data, "updated_at": _now_iso()})
            .eq("id", person_id)
            .eq("user_id", user_id)
        )
        return self._first(query, "update contact")

    def delete(self, user_id: str, person_id: str) -> bool:
        rows = self._execute(
            self.table().delete().eq("id", person_id).eq("user_id", user_id),
            "delete contact",
        )
        return bool(rows)

    def archive(self, user_id: str, person_id: str, archived: bool, reason: Optional[str] = None):
        query = self.client.rpc("archive_contact", {
            "p_contact_id": person_id,
            "p_user_id": user_id,
            "p_archived": archived,
            "p_reason": reason,
        })
        return self._execute(query, "archive contact")

    def merge(self, user_id: str, keeper_id: str, duplicate_id: str):
        query = self.client.rpc("merge_contacts", {
            "keeper_id": keeper_id,
            "duplicate_id": duplicate_id,
            "p_user_id": user_id,
        })
        return self._execute(query, "merge contacts")

    def existing_emails(self, user_id: str) -> List[str]:
        rows = self._execute(
            self.table().select("email").eq("user_id", user_id),
            "list contact emails",
        )
        return [r["email"].lower() for r in rows if r.get("email")]
