"""
vCard import.

Parses .vcf text with vobject, then merges into the user's contacts:
an existing contact (matched by e-mail, then by name) only gets its phone
refreshed so hand-written notes and interests are never overwritten; anything
else is inserted as a new, imported contact.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import vobject

from app.features.contacts.utils import build_name, has_context
from app.shared.errors import AppError, ValidationFailedError

logger = logging.getLogger("ReMember.Contacts.Import")


@dataclass
class ImportResult:
    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "errors": self.errors,
        }


def _first_value(card, attr: str) -> Optional[str]:
    items = getattr(card, f"{attr}_list", None) or []
    for item in items:
        value = item.value
        if isinstance(value, list):
            value = value[0] if value else ""
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _name_part(value) -> str:
    if isinstance(value, (list, tuple)):
        value = " ".join(v for v in value if v)
    return (value or "").strip()


def _parse_birthday(value) -> Optional[str]:
    """YYYY-MM-DD or YYYYMMDD; year-less birthdays (--MM-DD) are dropped."""
    if hasattr(value, "year"):
        return value.isoformat()[:10]
    text = str(value or "").strip()
    if text.startswith("--"):
        return None
    digits = re.sub(r"\D", "", text[:10])
    if len(digits) != 8:
        return None
    return f"{digits[:4]}-{digits[4:6]}-{digits[6:8]}"


def parse_vcards(content: str) -> List[Dict]:
    """Turn vCard text into contact dicts (cards without FN or N are skipped)."""
    try:
        cards = list(vobject.readComponents(content))
    except Exception as e:
        raise ValidationFailedError(f"Failed to parse vCard content: {e}") from e

    contacts = []
    for card in cards:
        first_name = last_name = ""
        if hasattr(card, "n"):
            first_name = _name_part(card.n.value.given)
            last_name = _name_part(card.n.value.family)

        name = card.fn.value.strip() if hasattr(card, "fn") else build_name(first_name, last_name)
        if not name:
            logger.warning("Skipping vCard without a name")
            continue

        if not first_name:
            first_name, _, rest = name.partition(" ")
            last_name = last_name or rest

        email = _first_value(card, "email")
        contacts.append({
            "name": name,
            "first_name": first_name or None,
            "last_name": last_name or None,
            "email": email.lower() if email else None,
            "phone": _first_value(card, "tel"),
            "company": _first_value(card, "org"),
            "job_title": _first_value(card, "title"),
            "notes": _first_value(card, "note"),
            "birthday": _parse_birthday(card.bday.value) if hasattr(card, "bday") else None,
        })

    return contacts


def import_contacts(db, user_id: str, contacts: List[Dict]) -> ImportResult:
    result = ImportResult(total=len(contacts))

    existing = db.persons.list(user_id, include_archived=True)
    by_email = {c["email"].lower(): c for c in existing if c.get("email")}
    by_name = {c["name"].lower(): c for c in existing if c.get("name")}

    for contact in contacts:
        match = None
        if contact.get("email"):
            match = by_email.get(contact["email"].lower())
        if match is None and contact.get("name"):
            match = by_name.get(contact["name"].lower())

        try:
            if match:
                if contact.get("phone") and contact["phone"] != match.get("phone"):
                    db.persons.update(user_id, match["id"], {"phone": contact["phone"]})
                result.updated += 1
            else:
                row = {k: v for k, v in contact.items() if v is not None}
                created = db.persons.create(user_id, {
                    **row,
                    "imported": True,
                    "has_context": has_context(row),
                })
                result.created += 1
                if created.get("email"):
                    by_email[created["email"].lower()] = created
                by_name[created.get("name", contact["name"]).lower()] = created
        except AppError as exc:
            logger.error(f"Error importing contact {contact.get('name')}: {exc.message}")
            result.failed += 1
            result.errors.append(f"{contact.get('name')}: {exc.message}")

    logger.info(
        f"vCard import for user {user_id}: {result.created} created, "
        f"{result.updated} updated, {result.failed} failed"
    )
    return result
