"""
Relationship health decay.

Two scales are in use:

- Garden health (blooming / nourished / thirsty / fading) from the ratio of
  days since last contact to the target cadence.
- Cadence health (nurtured / drifting / neglected) with a 50% grace window.

All functions take an explicit `now` so results are reproducible.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, Optional, Union

from app.shared.constants import DEFAULT_TARGET_DAYS, FALLBACK_TARGET_DAYS

DateLike = Union[str, date, datetime, None]

SECONDS_PER_DAY = 86400

BLOOMING = "blooming"
NOURISHED = "nourished"
THIRSTY = "thirsty"
FADING = "fading"

NURTURED = "nurtured"
DRIFTING = "drifting"
NEGLECTED = "neglected"


@dataclass
class GardenHealth:
    status: str
    ratio: Optional[float]
    days_since: Optional[int]
    target_days: int

    def to_dict(self) -> Dict:
        return {
            "status": self.status,
            "ratio": self.ratio,
            "days_since": self.days_since,
            "target_days": self.target_days,
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: DateLike) -> Optional[datetime]:
    """Parse a timestamp into an aware UTC datetime; None when missing or invalid."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(value: DateLike, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since `value` (floored)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    now = parse_timestamp(now) or utcnow()
    return math.floor((now - parsed).total_seconds() / SECONDS_PER_DAY)


def effective_target_days(target: Optional[int], importance: Optional[str] = None) -> int:
    """Explicit cadence if set, otherwise the importance default."""
    if target and target > 0:
        return int(target)
    return DEFAULT_TARGET_DAYS.get(importance or "", FALLBACK_TARGET_DAYS)


def calculate_garden_health(
    days: Optional[int],
    target_days: Optional[int],
    importance: Optional[str] = None,
) -> GardenHealth:
    """Map days since contact against the target cadence to a garden state."""
    target = effective_target_days(target_days, importance)

    if days is None:
        return GardenHealth(status=FADING, ratio=None, days_since=None, target_days=target)

    ratio = max(days, 0) / target
    if ratio <= 0.5:
        status = BLOOMING
    elif ratio <= 1.0:
        status = NOURISHED
    elif ratio <= 1.5:
        status = THIRSTY
    else:
        status = FADING

    return GardenHealth(status=status, ratio=round(ratio, 4), days_since=days, target_days=target)


def contact_garden_health(contact: Dict, now: Optional[datetime] = None) -> GardenHealth:
    return calculate_garden_health(
        days_since(contact.get("last_interaction_date"), now),
        contact.get("target_frequency_days"),
        contact.get("importance"),
    )


def get_relationship_health(
    last_contact: DateLike,
    cadence_days: int,
    now: Optional[datetime] = None,
) -> str:
    days = days_since(last_contact, now)
    if days is None:
        return NEGLECTED
    if days < cadence_days:
        return NURTURED
    if days < cadence_days * 1.5:
        return DRIFTING
    return NEGLECTED


def calculate_relationship_score(contact: Dict, now: Optional[datetime] = None) -> int:
    """
    0-100 score built from four parts:

    recency (0-40), interaction count (0-30), importance (0-20), and
    whether the contact has any recorded context (0-10).
    """
    score = 0

    days = days_since(contact.get("last_interaction_date"), now)
    if days is not None:
        if days <= 7:
            score += 40
        elif days <= 30:
            score += 30
        elif days <= 60:
            score += 20
        elif days <= 90:
            score += 10

    count = contact.get("interaction_count") or 0
    if count >= 20:
        score += 30
    elif count >= 10:
        score += 20
    elif count >= 5:
        score += 10
    elif count >= 1:
        score += 5

    score += {"high": 20, "medium": 10, "low": 5}.get(contact.get("importance") or "", 0)

    if contact.get("has_context"):
        score += 10

    return score


def health_category(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def format_days_since(value: DateLike, now: Optional[datetime] = None) -> str:
    days = days_since(value, now)
    if days is None:
        return "Never"
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"
