"""
Practice games: levels, event prep sessions, and game-ready contacts.
"""

import random
import re
from typing import Dict, List, Optional

from app.features.contacts.utils import get_initials
from app.features.health.decay import parse_timestamp

LEVEL_TWO_XP = 500
XP_PER_PREP_CONTACT = 20

LEVEL_TWO_UNLOCKS = [
    {"type": "GAME_MODE", "name": "Web Recall",
     "description": "Identify connections between your contacts"},
    {"type": "SLOT", "name": "Deep Lore Slot +1",
     "description": "Capture richer qualitative memory data for everyone"},
    {"type": "GARDEN_SKIN", "name": "Golden Hour",
     "description": "Unlock a beautiful new theme for your Garden"},
]

FACT_TYPES = ["Bio", "LastMet", "Interests", "Family"]

_GROUP_PATTERNS = [
    ("work", re.compile(r"work|job|career", re.IGNORECASE)),
    ("family", re.compile(r"family|parent|spouse", re.IGNORECASE)),
    ("friends", re.compile(r"friend", re.IGNORECASE)),
]


def check_level_up(xp: int, level: int) -> Dict:
    if xp >= LEVEL_TWO_XP and level < 2:
        return {
            "has_leveled_up": True,
            "new_level": 2,
            "title": "Garden Keeper",
            "unlocks": [dict(u) for u in LEVEL_TWO_UNLOCKS],
            # health boost applied to drifting contacts by the client
            "garden_bonus": 25,
        }
    return {"has_leveled_up": False}


def build_event_prep(event: Dict, contacts: List[Dict]) -> Optional[Dict]:
    """
    Quiz session for the people attending an event.

    `contacts` are matched by attendee e-mail; the least recently contacted
    come first. Returns None when nobody matches.
    """
    emails = {e.lower() for e in event.get("attendee_emails") or [] if e}
    matched = [c for c in contacts if (c.get("email") or "").lower() in emails]
    if not matched:
        return None

    def last_seen(contact: Dict) -> float:
        parsed = parse_timestamp(contact.get("last_interaction_date"))
        return parsed.timestamp() if parsed else 0.0

    matched.sort(key=last_seen)
    title = event.get("title") or "your event"

    return {
        "mode": "Event Prep",
        "title": f"Prep for {title}",
        "description": f"You're seeing {len(matched)} people soon. Let's refresh your memory.",
        "contacts": [c["id"] for c in matched],
        "reward_xp": len(matched) * XP_PER_PREP_CONTACT,
    }


def contact_group(tags: List[str]) -> str:
    for group, pattern in _GROUP_PATTERNS:
        if any(pattern.search(tag) for tag in tags):
            return group
    return "General"


def normalize_game_contact(person: Dict, tags: Optional[List[str]] = None) -> Dict:
    tags = tags or []
    name = person.get("name") or ""
    return {
        "id": person.get("id"),
        "name": name,
        "first_name": person.get("first_name") or (name.split(" ")[0] if name else ""),
        "initials": get_initials(name),
        "photo_url": person.get("photo_url"),
        "company": person.get("company"),
        "title": person.get("job_title"),
        "interests": person.get("interests") or [],
        "tags": tags,
        "group": contact_group(tags),
        "last_contact_date": person.get("last_interaction_date"),
    }


def recommended_fact_type(contact: Dict, rng: Optional[random.Random] = None) -> str:
    """Which flashcard to show: fill gaps first, otherwise pick at random."""
    if not contact.get("last_interaction_date"):
        return "LastMet"
    if not contact.get("importance"):
        return "Bio"
    return (rng or random).choice(FACT_TYPES)
