"""Contacts crossing their cadence deadline, and weekly rescue candidates."""

import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from app.features.health.decay import days_since, effective_target_days, parse_timestamp, utcnow

# Tipping point window around the cadence deadline
CRITICAL_HOURS_AHEAD = 24
CRITICAL_HOURS_BEHIND = 48

RESCUE_GRACE_DAYS = 5
RESCUE_LIMIT = 5

_DRIFTER_FIELDS = (
    "id",
    "name",
    "photo_url",
    "last_interaction_date",
    "deep_lore",
    "relationship_summary",
    "ai_summary",
    "where_met",
)


def get_critical_drifters(contacts: Iterable[Dict], now: Optional[datetime] = None) -> List[Dict]:
    """
    Contacts whose deadline (last contact + effective target) falls between
    48 hours ago and 24 hours from now. Never-contacted contacts are skipped.
    """
    now = parse_timestamp(now) or utcnow()
    drifters = []

    for person in contacts:
        last = parse_timestamp(person.get("last_interaction_date"))
        if last is None:
            continue

        target = effective_target_days(person.get("target_frequency_days"), person.get("importance"))
        expires_at = last + timedelta(days=target)
        hours_remaining = (expires_at - now).total_seconds() / 3600

        if -CRITICAL_HOURS_BEHIND < hours_remaining < CRITICAL_HOURS_AHEAD:
            drifter = {field: person.get(field) for field in _DRIFTER_FIELDS}
            drifter["target_frequency_days"] = target
            drifter["days_overdue"] = math.floor(hours_remaining / -24)
            drifter["shared_memories"] = person.get("shared_memories") or []
            drifters.append(drifter)

    return drifters


def is_rescue_candidate(person: Dict, now: Optional[datetime] = None) -> bool:
    days = days_since(person.get("last_interaction_date"), now)
    if days is None:
        return False
    target = effective_target_days(person.get("target_frequency_days"), person.get("importance") or "medium")
    return target + RESCUE_GRACE_DAYS <= days <= target * 1.5


def find_rescue_candidates(
    contacts: Iterable[Dict],
    now: Optional[datetime] = None,
    limit: int = RESCUE_LIMIT,
) -> List[Dict]:
    """Drifting (but not yet neglected) contacts, most valuable first."""
    drifting = [c for c in contacts if is_rescue_candidate(c, now)]
    drifting.sort(key=lambda c: c.get("relationship_value") or 0, reverse=True)
    return drifting[:limit]
