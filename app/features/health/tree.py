"""Relationship tree statistics: leaf health, score, and display strings."""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from app.features.health.decay import days_since

HEALTHY = "healthy"
WARNING = "warning"
DYING = "dying"
DORMANT = "dormant"

_SCORE_WEIGHTS = {HEALTHY: 100, WARNING: 60, DYING: 30, DORMANT: 0}


def calculate_tree_health(days: Optional[int]) -> str:
    if days is None:
        return DORMANT
    if days <= 7:
        return HEALTHY
    if days <= 21:
        return WARNING
    if days <= 90:
        return DYING
    return DORMANT


def calculate_tree_stats(statuses: Iterable[str]) -> Dict:
    """Count leaves per status and compute the weighted health score (0-100)."""
    stats = {"total": 0, HEALTHY: 0, WARNING: 0, DYING: 0, DORMANT: 0, "health_score": 0}

    for status in statuses:
        stats["total"] += 1
        stats[status] += 1

    if stats["total"]:
        weighted = sum(stats[s] * w for s, w in _SCORE_WEIGHTS.items())
        stats["health_score"] = round(weighted / stats["total"])

    return stats


def contacts_tree_stats(contacts: Iterable[Dict], now: Optional[datetime] = None) -> Dict:
    return calculate_tree_stats(
        calculate_tree_health(days_since(c.get("last_interaction_date"), now))
        for c in contacts
    )


def tree_leaves(contacts: Iterable[Dict], now: Optional[datetime] = None) -> List[Dict]:
    """One leaf per contact with its tree status and a relative last-contact label."""
    leaves = []
    for contact in contacts:
        days = days_since(contact.get("last_interaction_date"), now)
        leaves.append({
            "id": contact["id"],
            "name": contact.get("name"),
            "status": calculate_tree_health(days),
            "days_since": days,
            "last_contact": format_relative_time(days),
        })
    return leaves


def health_score_message(score: int) -> str:
    if score >= 90:
        return "Your tree is thriving!"
    if score >= 70:
        return "Your tree is healthy! Keep it up!"
    if score >= 50:
        return "Some relationships need attention"
    if score >= 30:
        return "Your tree needs care!"
    return "Time to water your relationships!"


def format_relative_time(days: Optional[int]) -> str:
    if days is None:
        return "Never contacted"
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"

    for limit, label in (
        (7, None),
        (14, "Last week"),
        (21, "2 weeks ago"),
        (28, "3 weeks ago"),
        (60, "About a month ago"),
        (90, "2-3 months ago"),
        (180, "3-6 months ago"),
        (365, "6-12 months ago"),
    ):
        if days < limit:
            return label or f"{days} days ago"
    return "Over a year ago"


def current_season(today: Optional[date] = None) -> str:
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"
