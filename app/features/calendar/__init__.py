"""Calendar integration: OAuth, token encryption, Google Calendar sync."""

from app.features.calendar.encryption import decrypt_token, encrypt_token, is_encrypted
from app.features.calendar.matcher import match_event_to_contacts, match_events
from app.features.calendar.sync import get_matched_events, refresh_tokens, sync_calendar

__all__ = [
    "decrypt_token",
    "encrypt_token",
    "is_encrypted",
    "match_event_to_contacts",
    "match_events",
    "get_matched_events",
    "refresh_tokens",
    "sync_calendar",
]
