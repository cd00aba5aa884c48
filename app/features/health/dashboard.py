"""Aggregate statistics for the dashboard, computed from persons rows."""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from app.features.health.decay import days_since, parse_timestamp, utcnow

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _is_archived(contact: Dict) -> bool:
    return bool(contact.get("archive_status"))


def dashboard_stats(contacts: List[Dict], now: Optional[datetime] = None) -> Dict:
    """Counts over all contacts, archived included."""
    now = parse_timestamp(now) or utcnow()
    thirty_days_ago = now - timedelta(days=30)

    def needs_attention(c: Dict) -> bool:
        days = days_since(c.get("last_interaction_date"), now)
        return days is not None and days >= 30

    def recently_added(c: Dict) -> bool:
        created = parse_timestamp(c.get("created_at"))
        return created is not None and created >= thirty_days_ago

    return {
        "total_contacts": len(contacts),
        "with_context": sum(1 for c in contacts if c.get("has_context")),
        "without_context": sum(1 for c in contacts if not c.get("has_context")),
        "high_priority": sum(1 for c in contacts if c.get("importance") == "high"),
        "medium_priority": sum(1 for c in contacts if c.get("importance") == "medium"),
        "low_priority": sum(1 for c in contacts if c.get("importance") == "low"),
        "needing_attention": sum(1 for c in contacts if needs_attention(c)),
        "recently_added": sum(1 for c in contacts if recently_added(c)),
        "imported": sum(1 for c in contacts if c.get("imported")),
        "archived": sum(1 for c in contacts if _is_archived(c)),
    }


def interaction_stats(contacts: List[Dict], now: Optional[datetime] = None) -> Dict:
    """Interaction activity over active contacts."""
    now = parse_timestamp(now) or utcnow()
    active = [c for c in contacts if not _is_archived(c)]

    def contacted_since(c: Dict, days: int) -> bool:
        last = parse_timestamp(c.get("last_interaction_date"))
        return last is not None and last >= now - timedelta(days=days)

    total = sum(c.get("interaction_count") or 0 for c in active)
    average = total / len(active) if active else 0

    return {
        "avg_interaction_count": round(average, 1),
        "contacts_with_no_interactions": sum(1 for c in active if not c.get("interaction_count")),
        "contacts_this_week": sum(1 for c in active if contacted_since(c, 7)),
        "contacts_this_month": sum(1 for c in active if contacted_since(c, 30)),
        "contacts_this_year": sum(1 for c in active if contacted_since(c, 365)),
    }


def health_breakdown(contacts: Iterable[Dict], now: Optional[datetime] = None) -> Dict:
    breakdown = {"healthy": 0, "warning": 0, "needs_attention": 0, "no_data": 0}

    for contact in contacts:
        if _is_archived(contact):
            continue
        days = days_since(contact.get("last_interaction_date"), now)
        if days is None:
            breakdown["no_data"] += 1
        elif days <= 30:
            breakdown["healthy"] += 1
        elif days <= 60:
            breakdown["warning"] += 1
        else:
            breakdown["needs_attention"] += 1

    return breakdown


def growth_trend(contacts: Iterable[Dict], now: Optional[datetime] = None, months: int = 6) -> List[Dict]:
    """Contacts created per month, oldest month first."""
    now = parse_timestamp(now) or utcnow()
    counts: Dict[str, int] = {}

    for offset in range(months - 1, -1, -1):
        month_index = now.month - 1 - offset
        year = now.year + month_index // 12
        key = f"{MONTH_NAMES[month_index % 12]} {year}"
        counts[key] = 0

    for contact in contacts:
        created = parse_timestamp(contact.get("created_at"))
        if created is None:
            continue
        key = f"{MONTH_NAMES[created.month - 1]} {created.year}"
        if key in counts:
            counts[key] += 1

    return [{"month": month, "count": count} for month, count in counts.items()]


def top_contacts(contacts: Iterable[Dict], limit: int = 10) -> List[Dict]:
    active = [c for c in contacts if not _is_archived(c)]
    active.sort(key=lambda c: c.get("interaction_count") or 0, reverse=True)
    return [
        {
            "id": c.get("id"),
            "name": c.get("name"),
            "first_name": c.get("first_name"),
            "last_name": c.get("last_name"),
            "photo_url": c.get("photo_url"),
            "interaction_count": c.get("interaction_count") or 0,
            "last_interaction_date": c.get("last_interaction_date"),
            "importance": c.get("importance"),
            "relationship_summary": c.get("relationship_summary"),
        }
        for c in active[:limit]
    ]
