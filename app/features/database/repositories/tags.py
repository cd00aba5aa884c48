"""Tags (tribes) and shared memories."""

import logging
from collections import defaultdict
from typing import Dict, List

from app.features.database.repositories.base import BaseRepository

logger = logging.getLogger("ReMember.Database.Tags")


class TagsRepository(BaseRepository):
    table_name = "tags"

    def list(self, user_id: str) -> List[Dict]:
        return self._execute(
            self.table().select("id, name").eq("user_id", user_id).order("name"),
            "list tags",
        )

    def get_or_create(self, user_id: str, name: str) -> Dict:
        existing = self._first(
            self.table().select("id, name").eq("user_id", user_id).ilike("name", name).limit(1),
            "find tag",
        )
        if existing:
            return existing
        return self._first(self.table().insert({"user_id": user_id, "name": name}), "create tag")

    def add_to_person(self, person_id: str, tag_id: str) -> None:
        self._execute(
            self.client.table("person_tags").upsert(
                {"person_id": person_id, "tag_id": tag_id},
                on_conflict="person_id,tag_id",
            ),
            "tag contact",
        )

    def remove_from_person(self, person_id: str, tag_id: str) -> None:
        self._execute(
            self.client.table("person_tags").delete().eq("person_id", person_id).eq("tag_id", tag_id),
            "untag contact",
        )

    def names_for_persons(self, person_ids: List[str]) -> Dict[str, List[str]]:
        """Map person id to its tag names."""
        if not person_ids:
            return {}

        links = self._execute(
            self.client.table("person_tags").select("person_id, tag_id").in_("person_id", person_ids),
            "list contact tags",
        )
        tag_ids = list({link["tag_id"] for link in links})
        if not tag_ids:
            return {}

        tags = self._execute(self.table().select("id, name").in_("id", tag_ids), "list tags")
        names = {tag["id"]: tag["name"] for tag in tags}

        result: Dict[str, List[str]] = defaultdict(list)
        for link in links:
            if link["tag_id"] in names:
                result[link["person_id"]].append(names[link["tag_id"]])
        return dict(result)


class SharedMemoriesRepository(BaseRepository):
    table_name = "shared_memories"

    def for_persons(self, person_ids: List[str], per_person: int = 3) -> Dict[str, List[str]]:
        """Up to `per_person` memory texts for each contact."""
        if not person_ids:
            return {}

        rows = self._execute(
            self.table().select("person_id, content").in_("person_id", person_ids),
            "list shared memories",
        )
        result: Dict[str, List[str]] = defaultdict(list)
        for row in rows:
            bucket = result[row["person_id"]]
            if row.get("content") and len(bucket) < per_person:
                bucket.append(row["content"])
        return dict(result)

    def add(self, person_id: str, content: str) -> Dict:
        return self._first(
            self.table().insert({"person_id": person_id, "content": content}),
            "add shared memory",
        )
