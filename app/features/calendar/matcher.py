"""
Calendar event to contact matching.

Attendees are matched by exact e-mail first (confidence 1.0) and by display
name as a fallback (0.6). The attendee flagged `self` is the calendar owner
and is ignored.
"""

from typing import Dict, List, Optional

EMAIL_MATCH_WEIGHT = 1.0
NAME_MATCH_WEIGHT = 0.6


def _normalize(value: Optional[str]) -> str:
    return (value or "").lower().strip()


def _find_by_email(email: str, contacts: List[Dict]) -> Optional[Dict]:
    wanted = _normalize(email)
    for contact in contacts:
        if _normalize(contact.get("email")) == wanted:
            return contact
    return None


def _find_by_name(display_name: str, contacts: List[Dict]) -> Optional[Dict]:
    wanted = _normalize(display_name)
    if not wanted:
        return None

    for contact in contacts:
        if _normalize(contact.get("name")) == wanted:
            return contact

    first, _, last = wanted.partition(" ")
    for contact in contacts:
        name = _normalize(contact.get("name"))
        contact_first, _, contact_last = name.partition(" ")
        if last and first == contact_first and last == contact_last:
            return contact
        if wanted in name:
            return contact

    return None


def _to_matched(contact: Dict) -> Dict:
    return {
        "id": contact.get("id"),
        "name": contact.get("name"),
        "email": contact.get("email") or "",
        "company": contact.get("company"),
        "job_title": contact.get("job_title"),
        "photo_url": contact.get("photo_url"),
        "tags": contact.get("tags") or [],
        "last_interaction_date": contact.get("last_interaction_date"),
    }


def confidence_label(average: float) -> str:
    if average >= 0.8:
        return "high"
    if average >= 0.4:
        return "medium"
    if average > 0:
        return "low"
    return "none"


def match_event_to_contacts(event: Dict, contacts: List[Dict]) -> Dict:
    attendees = event.get("attendees") or []
    if not attendees:
        return {
            "event": event,
            "matched_contacts": [],
            "primary_contact": None,
            "confidence": "none",
            "match_method": "none",
        }

    matched: List[Dict] = []
    total = 0.0
    method = "none"

    for attendee in attendees:
        if attendee.get("self") or not attendee.get("email"):
            continue

        contact = _find_by_email(attendee["email"], contacts)
        if contact:
            matched.append(_to_matched(contact))
            total += EMAIL_MATCH_WEIGHT
            method = "email"
            continue

        if attendee.get("displayName"):
            contact = _find_by_name(attendee["displayName"], contacts)
            if contact:
                matched.append(_to_matched(contact))
                total += NAME_MATCH_WEIGHT
                if method == "none":
                    method = "name"

    # One attendee of a multi-person event is assumed to be the owner
    average = total / (len(attendees) - 1) if len(attendees) > 1 else total

    return {
        "event": event,
        "matched_contacts": matched,
        "primary_contact": matched[0] if matched else None,
        "confidence": confidence_label(average),
        "match_method": method if matched else "none",
    }


def match_events(events: List[Dict], contacts: List[Dict]) -> Dict:
    """Match every event and summarise the outcome."""
    meetings = [match_event_to_contacts(event, contacts) for event in events]
    matched = sum(1 for m in meetings if m["matched_contacts"])

    return {
        "meetings": meetings,
        "stats": {
            "total": len(meetings),
            "matched": matched,
            "unmatched": len(meetings) - matched,
            "high_confidence": sum(1 for m in meetings if m["confidence"] == "high"),
            "medium_confidence": sum(1 for m in meetings if m["confidence"] == "medium"),
            "low_confidence": sum(1 for m in meetings if m["confidence"] == "low"),
        },
    }


def matched_only(result: Dict) -> List[Dict]:
    return [m for m in result["meetings"] if m["matched_contacts"]]
