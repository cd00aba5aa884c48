"""
Calendar sync.

Loads the user's stored (encrypted) OAuth tokens, refreshes the access token
when it has expired, pulls upcoming Google Calendar events, matches them to
contacts and upserts them into `meetings`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from app.core.tracing import get_tracer
from app.features.calendar import oauth
from app.features.calendar.encryption import decrypt_token, encrypt_token
from app.features.calendar.google_calendar import GoogleCalendarService
from app.features.calendar.matcher import match_events, matched_only
from app.features.health.decay import parse_timestamp
from app.shared.errors import (
    AppError,
    ExternalServiceError,
    TokenEncryptionError,
    UnauthorizedError,
    ValidationFailedError,
)

logger = logging.getLogger("ReMember.Calendar.Sync")
tracer = get_tracer(__name__)

SYNC_DAYS = 14
EXPIRY_MARGIN = timedelta(seconds=60)


def meeting_importance(event: Dict, contact: Optional[Dict]) -> str:
    title = (event.get("summary") or "").lower()
    if "investor" in title or "board" in title:
        return "critical"
    if "important" in title or "urgent" in title:
        return "important"

    tags = (contact or {}).get("tags") or []
    if "Investor" in tags:
        return "critical"
    if "Important" in tags:
        return "important"
    return "normal"


def is_first_meeting(contact: Optional[Dict]) -> bool:
    """Unmatched attendees and never-contacted contacts count as first meetings."""
    if not contact:
        return True
    return not contact.get("last_interaction_date")


def _event_time(value: Optional[Dict]) -> str:
    value = value or {}
    return value.get("dateTime") or value.get("date") or ""


def build_meeting_row(user_id: str, provider: str, matched: Dict) -> Dict:
    event = matched["event"]
    contact = matched["primary_contact"]
    return {
        "user_id": user_id,
        "calendar_event_id": event.get("id"),
        "calendar_provider": provider,
        "title": event.get("summary") or "Untitled Meeting",
        "description": event.get("description") or "",
        "start_time": _event_time(event.get("start")),
        "end_time": _event_time(event.get("end")),
        "location": event.get("location") or "",
        "meeting_url": event.get("hangoutLink") or "",
        "attendees": event.get("attendees") or [],
        "contact_id": contact["id"] if contact else None,
        "match_confidence": matched["confidence"],
        "is_first_meeting": is_first_meeting(contact),
        "importance": meeting_importance(event, contact),
    }


def _is_expired(token_expiry: Optional[str], now: datetime) -> bool:
    expiry = parse_timestamp(token_expiry)
    return expiry is None or expiry - EXPIRY_MARGIN <= now


async def refresh_tokens(db, user_id: str, prefs: Optional[Dict] = None) -> Dict:
    """
    Refresh the stored access token.

    The refresh token is decrypted before use and the new access token is
    encrypted before it is saved. Any failure is written to last_sync_error
    and surfaces as 401 so the client asks the user to reconnect.
    """
    prefs = prefs or db.calendar_preferences.get(user_id)
    if not prefs or not prefs.get("refresh_token_encrypted"):
        raise UnauthorizedError("No calendar refresh token stored. Please reconnect your calendar.")

    provider = prefs.get("provider") or "google"
    try:
        refresh_token = decrypt_token(prefs["refresh_token_encrypted"])
        tokens = await oauth.refresh_access_token(provider, refresh_token)
        access_token = tokens["access_token"]
        updates = {
            "access_token_encrypted": encrypt_token(access_token),
            "token_expiry": oauth.token_expiry(tokens.get("expires_in")),
            "last_sync_error": None,
        }
        # Providers may rotate the refresh token
        if tokens.get("refresh_token"):
            updates["refresh_token_encrypted"] = encrypt_token(tokens["refresh_token"])
    except (ExternalServiceError, TokenEncryptionError, KeyError) as exc:
        message = exc.message if isinstance(exc, AppError) else f"Missing {exc} in token response"
        db.calendar_preferences.record_sync_error(user_id, f"Token refresh failed: {message}")
        raise UnauthorizedError("Calendar authorization expired. Please reconnect your calendar.") from exc

    db.calendar_preferences.update(user_id, updates)
    logger.info(f"Refreshed {provider} access token for user {user_id}")
    return {"access_token": access_token, "token_expiry": updates["token_expiry"], "provider": provider}


async def get_access_token(db, user_id: str, now: Optional[datetime] = None) -> Dict:
    """Current plaintext access token and provider, refreshed first if expired."""
    prefs = db.calendar_preferences.get(user_id)
    if not prefs or not prefs.get("calendar_enabled") or not prefs.get("access_token_encrypted"):
        raise ValidationFailedError("Calendar is not connected")

    now = now or datetime.now(timezone.utc)
    if _is_expired(prefs.get("token_expiry"), now):
        return await refresh_tokens(db, user_id, prefs)

    return {
        "access_token": decrypt_token(prefs["access_token_encrypted"]),
        "token_expiry": prefs.get("token_expiry"),
        "provider": prefs.get("provider") or "google",
    }


def _contacts_with_tags(db, user_id: str) -> List[Dict]:
    contacts = db.persons.list(user_id)
    tags = db.tags.names_for_persons([c["id"] for c in contacts])
    return [{**c, "tags": tags.get(c["id"], [])} for c in contacts]


async def _fetch_events(db, user_id: str, days: int) -> tuple:
    token = await get_access_token(db, user_id)
    if token["provider"] != "google":
        raise ValidationFailedError("Calendar sync is only available for Google calendars")

    service = GoogleCalendarService(token["access_token"])
    events = await service.get_upcoming_events(days)
    return token["provider"], events


async def sync_calendar(db, user_id: str, days: int = SYNC_DAYS) -> Dict:
    with tracer.start_as_current_span("calendar.sync") as span:
        span.set_attribute("calendar.days", days)
        try:
            provider, events = await _fetch_events(db, user_id, days)
            result = match_events(events, _contacts_with_tags(db, user_id))

            for matched in result["meetings"]:
                db.meetings.upsert(build_meeting_row(user_id, provider, matched))
        except ExternalServiceError as exc:
            db.calendar_preferences.record_sync_error(user_id, exc.message)
            raise
        span.set_attribute("calendar.events", len(events))

    db.calendar_preferences.update(user_id, {
        "last_sync_at": datetime.now(timezone.utc).isoformat(),
        "last_sync_error": None,
    })
    logger.info(f"Synced {len(events)} calendar events for user {user_id}")
    return {"synced": len(events), "stats": result["stats"]}


async def get_matched_events(db, user_id: str, days: int = 7) -> Dict:
    _, events = await _fetch_events(db, user_id, days)
    result = match_events(events, _contacts_with_tags(db, user_id))
    return {"meetings": matched_only(result), "stats": result["stats"]}
