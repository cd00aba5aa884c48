"""
Contact workflows that touch more than one table.

Logging an interaction keeps the denormalized `last_interaction_date`,
`last_contact_method` and `interaction_count` columns on `persons` in step with
the `interactions` table; merges run the merge RPC once per duplicate.
"""

import logging
from typing import Dict, List, Optional

from app.features.health.decay import parse_timestamp
from app.shared.errors import NotFoundError, ValidationFailedError

logger = logging.getLogger("ReMember.Contacts")


def _is_newer(candidate: str, current: Optional[str]) -> bool:
    new = parse_timestamp(candidate)
    old = parse_timestamp(current)
    if new is None:
        return False
    return old is None or new > old


def _require_contact(db, user_id: str, person_id: str) -> Dict:
    contact = db.persons.get(user_id, person_id)
    if not contact:
        raise NotFoundError("Contact", person_id)
    return contact


def log_interaction(db, user_id: str, person_id: str, interaction_type: str,
                    interaction_date: str, notes: Optional[str] = None) -> Dict:
    contact = _require_contact(db, user_id, person_id)
    interaction = db.interactions.create(user_id, person_id, interaction_type, interaction_date, notes)

    updates = {"interaction_count": (contact.get("interaction_count") or 0) + 1}
    # Back-dated entries must not move the last contact date backwards
    if _is_newer(interaction_date, contact.get("last_interaction_date")):
        updates["last_interaction_date"] = interaction_date
        updates["last_contact_method"] = interaction_type
    db.persons.update(user_id, person_id, updates)

    logger.info(f"Logged {interaction_type} interaction for contact {person_id}")
    return interaction


def log_group_interaction(db, user_id: str, person_ids: List[str], interaction_type: str,
                          interaction_date: str, notes: Optional[str] = None) -> List[Dict]:
    """Log the same interaction (a dinner, a call with several people) for each contact."""
    if not person_ids:
        raise ValidationFailedError("At least one contact is required")

    unique_ids = list(dict.fromkeys(person_ids))
    found = {c["id"] for c in db.persons.get_many(user_id, unique_ids)}
    missing = [pid for pid in unique_ids if pid not in found]
    if missing:
        raise NotFoundError("Contact", missing[0])

    return [
        log_interaction(db, user_id, pid, interaction_type, interaction_date, notes)
        for pid in unique_ids
    ]


def refresh_last_contact(db, user_id: str, person_id: str) -> Optional[Dict]:
    """Recompute the denormalized last-contact columns from the remaining interactions."""
    latest = db.interactions.latest_for_person(user_id, person_id)
    return db.persons.update(user_id, person_id, {
        "last_interaction_date": latest["interaction_date"] if latest else None,
        "last_contact_method": latest["interaction_type"] if latest else None,
        "interaction_count": db.interactions.count_for_person(user_id, person_id),
    })


def delete_interaction(db, user_id: str, interaction_id: str) -> Dict:
    interaction = db.interactions.get(user_id, interaction_id)
    if not interaction:
        raise NotFoundError("Interaction", interaction_id)

    db.interactions.delete(user_id, interaction_id)
    refresh_last_contact(db, user_id, interaction["person_id"])
    return interaction


def merge_duplicates(db, user_id: str, keeper_id: str, duplicate_ids: List[str]) -> Dict:
    """Fold each duplicate into the keeper, one RPC at a time."""
    if not duplicate_ids:
        raise ValidationFailedError("No duplicates selected")
    if keeper_id in duplicate_ids:
        raise ValidationFailedError("The contact to keep cannot also be merged away")

    _require_contact(db, user_id, keeper_id)

    merged = []
    for duplicate_id in dict.fromkeys(duplicate_ids):
        db.persons.merge(user_id, keeper_id, duplicate_id)
        merged.append(duplicate_id)
        logger.info(f"Merged contact {duplicate_id} into {keeper_id}")

    return {"keeper_id": keeper_id, "merged": merged, "count": len(merged)}


def set_tags(db, user_id: str, person_id: str, add: List[str], remove: List[str]) -> List[str]:
    _require_contact(db, user_id, person_id)

    for name in add:
        tag = db.tags.get_or_create(user_id, name)
        if tag:
            db.tags.add_to_person(person_id, tag["id"])

    if remove:
        by_name = {t["name"].lower(): t for t in db.tags.list(user_id)}
        for name in remove:
            tag = by_name.get(name.lower())
            if tag:
                db.tags.remove_from_person(person_id, tag["id"])

    return db.tags.names_for_persons([person_id]).get(person_id, [])


def add_shared_memory(db, user_id: str, person_id: str, content: str) -> Dict:
    _require_contact(db, user_id, person_id)
    return db.shared_memories.add(person_id, content)
