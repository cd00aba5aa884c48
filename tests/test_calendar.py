import asyncio
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from app.features.calendar import oauth
from app.features.calendar.encryption import decrypt_token, encrypt_token
from app.features.calendar.google_calendar import EVENTS_URL
from app.features.calendar.matcher import match_event_to_contacts, match_events
from app.features.calendar.sync import (
    build_meeting_row,
    get_access_token,
    meeting_importance,
    refresh_tokens,
    sync_calendar,
)
from app.shared.errors import (
    ConfigurationError,
    ExternalServiceError,
    UnauthorizedError,
    ValidationFailedError,
)

from tests.conftest import USER_ID

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

JANE = {"id": "p1", "name": "Jane Doe", "email": "jane@example.com", "tags": ["Investor"]}
OMAR = {"id": "p2", "name": "Omar Khan", "email": "omar@example.com", "tags": []}


def _future(hours=1):
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def _past(hours=1):
    return (datetime.now(timezone.utc) - timedelta(hours=hours)).isoformat()


def _seed_preferences(supabase, provider="google", expiry=None, refresh="refresh-1"):
    supabase.seed("calendar_preferences", {
        "user_id": USER_ID,
        "provider": provider,
        "calendar_enabled": True,
        "access_token_encrypted": encrypt_token("access-1"),
        "refresh_token_encrypted": encrypt_token(refresh) if refresh else None,
        "token_expiry": expiry or _future(),
        "notification_time": 30,
    })
    return supabase.tables["calendar_preferences"][0]


def _form(request):
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestMatcher:
    def test_email_match_ignores_self(self):
        event = {"id": "e1", "attendees": [
            {"email": "me@example.com", "self": True},
            {"email": "JANE@example.com"},
        ]}
        result = match_event_to_contacts(event, [JANE, OMAR])

        assert result["primary_contact"]["id"] == "p1"
        assert result["primary_contact"]["tags"] == ["Investor"]
        assert result["match_method"] == "email"
        assert result["confidence"] == "high"

    def test_name_fallback_is_medium_confidence(self):
        event = {"id": "e2", "attendees": [
            {"email": "me@example.com", "self": True},
            {"email": "okhan@other.org", "displayName": "Omar Khan"},
        ]}
        result = match_event_to_contacts(event, [JANE, OMAR])

        assert result["primary_contact"]["id"] == "p2"
        assert result["match_method"] == "name"
        assert result["confidence"] == "medium"

    def test_no_attendees(self):
        result = match_event_to_contacts({"id": "e3"}, [JANE])
        assert result["matched_contacts"] == []
        assert result["confidence"] == "none"

    def test_match_events_stats(self):
        events = [
            {"id": "e1", "attendees": [{"email": "jane@example.com"}]},
            {"id": "e2", "attendees": [{"email": "stranger@example.com"}]},
        ]
        stats = match_events(events, [JANE, OMAR])["stats"]
        assert stats == {
            "total": 2,
            "matched": 1,
            "unmatched": 1,
            "high_confidence": 1,
            "medium_confidence": 0,
            "low_confidence": 0,
        }


class TestMeetingRows:
    @pytest.mark.parametrize("title,contact,importance", [
        ("Board review", None, "critical"),
        ("Investor update", None, "critical"),
        ("URGENT sync", None, "important"),
        ("Coffee", {"tags": ["Investor"]}, "critical"),
        ("Coffee", {"tags": ["Important"]}, "important"),
        ("Coffee", {"tags": []}, "normal"),
    ])
    def test_importance(self, title, contact, importance):
        assert meeting_importance({"summary": title}, contact) == importance

    def test_build_meeting_row(self):
        event = {
            "id": "evt-1",
            "summary": "Lunch",
            "start": {"dateTime": "2024-06-20T12:00:00Z"},
            "end": {"date": "2024-06-20"},
            "attendees": [{"email": "jane@example.com"}],
        }
        matched = match_event_to_contacts(event, [{**JANE, "last_interaction_date": "2024-06-01"}])
        row = build_meeting_row(USER_ID, "google", matched)

        assert row["calendar_event_id"] == "evt-1"
        assert row["start_time"] == "2024-06-20T12:00:00Z"
        assert row["end_time"] == "2024-06-20"
        assert row["contact_id"] == "p1"
        assert row["is_first_meeting"] is False
        assert row["importance"] == "critical"
        assert row["title"] == "Lunch"


class TestOAuth:
    def test_authorization_url(self, oauth_settings):
        url = oauth.build_authorization_url("google", USER_ID)
        parsed = urlparse(url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}

        assert parsed.netloc == "accounts.google.com"
        assert params["client_id"] == "google-client"
        assert oauth.verify_state("google", params["state"]) == USER_ID
        assert params["access_type"] == "offline"
        assert params["redirect_uri"] == "https://api.example.com/api/v1/calendar/oauth/google/callback"

    def test_state_round_trip(self, oauth_settings):
        state = oauth.sign_state("google", USER_ID)
        assert USER_ID not in state
        assert oauth.verify_state("google", state) == USER_ID

    @pytest.mark.parametrize("tamper", [
        lambda s: s[:-1] + ("0" if s[-1] != "0" else "1"),
        lambda s: oauth.sign_state("google", "user-2").split(".")[0] + s[s.index("."):],
        lambda s: "user-1",
        lambda s: s[:-1] + "\u00e9",
        lambda s: "",
    ])
    def test_tampered_state_is_rejected(self, oauth_settings, tamper):
        state = oauth.sign_state("google", USER_ID)
        with pytest.raises(ValidationFailedError):
            oauth.verify_state("google", tamper(state))

    def test_state_is_bound_to_provider(self, oauth_settings):
        state = oauth.sign_state("microsoft", USER_ID)
        with pytest.raises(ValidationFailedError):
            oauth.verify_state("google", state)

    def test_state_expires(self, oauth_settings):
        issued = datetime(2024, 6, 20, 12, 0, tzinfo=timezone.utc)
        state = oauth.sign_state("google", USER_ID, now=issued)

        assert oauth.verify_state("google", state, now=issued + timedelta(minutes=9)) == USER_ID
        with pytest.raises(ValidationFailedError):
            oauth.verify_state("google", state, now=issued + timedelta(minutes=11))

    def test_state_needs_a_secret(self, oauth_settings, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "OAUTH_STATE_SECRET", None)
        monkeypatch.setattr(settings, "ENCRYPTION_KEY", None)
        with pytest.raises(ConfigurationError):
            oauth.sign_state("google", USER_ID)

    def test_unknown_provider(self, oauth_settings):
        with pytest.raises(ValidationFailedError):
            oauth.build_authorization_url("yahoo", USER_ID)

    def test_missing_client_id(self, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", None)
        with pytest.raises(ConfigurationError):
            oauth.build_authorization_url("google", USER_ID)

    def test_exchange_code(self, oauth_settings, mock_http):
        mock_http.add("POST", GOOGLE_TOKEN_URL, json={
            "access_token": "a", "refresh_token": "r", "expires_in": 3599,
        })

        tokens = asyncio.run(oauth.exchange_code("google", "auth-code"))

        assert tokens["refresh_token"] == "r"
        form = _form(mock_http.requests[0])
        assert form["code"] == "auth-code"
        assert form["grant_type"] == "authorization_code"

    @pytest.mark.parametrize("status,expected", [(400, 401), (401, 401), (500, 502)])
    def test_token_endpoint_errors(self, oauth_settings, mock_http, status, expected):
        mock_http.add("POST", GOOGLE_TOKEN_URL, status_code=status, json={"error": "nope"})

        with pytest.raises(ExternalServiceError) as exc_info:
            asyncio.run(oauth.exchange_code("google", "bad"))
        assert exc_info.value.status_code == expected


class TestTokenRefresh:
    def test_refresh_encrypts_new_access_token(self, db, supabase, encryption_key, oauth_settings, mock_http):
        _seed_preferences(supabase, expiry=_past())
        mock_http.add("POST", GOOGLE_TOKEN_URL, json={"access_token": "access-2", "expires_in": 3600})

        result = asyncio.run(refresh_tokens(db, USER_ID))

        assert result["access_token"] == "access-2"
        assert _form(mock_http.requests[0])["refresh_token"] == "refresh-1"

        prefs = supabase.tables["calendar_preferences"][0]
        assert prefs["access_token_encrypted"] != "access-2"
        assert decrypt_token(prefs["access_token_encrypted"]) == "access-2"
        assert decrypt_token(prefs["refresh_token_encrypted"]) == "refresh-1"
        assert prefs["last_sync_error"] is None

    def test_rotated_refresh_token_is_stored(self, db, supabase, encryption_key, oauth_settings, mock_http):
        _seed_preferences(supabase, expiry=_past())
        mock_http.add("POST", GOOGLE_TOKEN_URL, json={
            "access_token": "access-2", "refresh_token": "refresh-2", "expires_in": 3600,
        })

        asyncio.run(refresh_tokens(db, USER_ID))

        prefs = supabase.tables["calendar_preferences"][0]
        assert decrypt_token(prefs["refresh_token_encrypted"]) == "refresh-2"

    def test_failed_refresh_records_error(self, db, supabase, encryption_key, oauth_settings, mock_http):
        _seed_preferences(supabase, expiry=_past())
        mock_http.add("POST", GOOGLE_TOKEN_URL, status_code=400, json={"error": "invalid_grant"})

        with pytest.raises(UnauthorizedError):
            asyncio.run(refresh_tokens(db, USER_ID))

        prefs = supabase.tables["calendar_preferences"][0]
        assert prefs["last_sync_error"].startswith("Token refresh failed")
        assert decrypt_token(prefs["access_token_encrypted"]) == "access-1"

    def test_missing_refresh_token(self, db, supabase, encryption_key):
        _seed_preferences(supabase, refresh=None)
        with pytest.raises(UnauthorizedError):
            asyncio.run(refresh_tokens(db, USER_ID))

    def test_valid_token_is_used_without_refresh(self, db, supabase, encryption_key, mock_http):
        _seed_preferences(supabase, expiry=_future(hours=2))

        token = asyncio.run(get_access_token(db, USER_ID))

        assert token["access_token"] == "access-1"
        assert mock_http.requests == []

    def test_token_expiring_within_a_minute_is_refreshed(
        self, db, supabase, encryption_key, oauth_settings, mock_http
    ):
        soon = (datetime.now(timezone.utc) + timedelta(seconds=30)).isoformat()
        _seed_preferences(supabase, expiry=soon)
        mock_http.add("POST", GOOGLE_TOKEN_URL, json={"access_token": "access-2", "expires_in": 3600})

        token = asyncio.run(get_access_token(db, USER_ID))
        assert token["access_token"] == "access-2"

    def test_not_connected(self, db):
        with pytest.raises(ValidationFailedError):
            asyncio.run(get_access_token(db, USER_ID))


class TestSync:
    EVENTS = [
        {
            "id": "evt-1",
            "summary": "Coffee",
            "start": {"dateTime": "2030-01-01T10:00:00Z"},
            "end": {"dateTime": "2030-01-01T11:00:00Z"},
            "attendees": [
                {"email": "me@example.com", "self": True},
                {"email": "jane@example.com"},
            ],
        },
        {
            "id": "evt-2",
            "summary": "Intro call",
            "start": {"dateTime": "2030-01-02T10:00:00Z"},
            "end": {"dateTime": "2030-01-02T10:30:00Z"},
            "attendees": [{"email": "stranger@example.com"}],
        },
    ]

    def _seed_contacts(self, supabase):
        jane, = supabase.seed("persons", {"user_id": USER_ID, "name": "Jane Doe", "email": "jane@example.com"})
        tag, = supabase.seed("tags", {"user_id": USER_ID, "name": "Investor"})
        supabase.seed("person_tags", {"person_id": jane["id"], "tag_id": tag["id"]})
        return jane

    def test_sync_upserts_meetings(self, db, supabase, encryption_key, mock_http):
        _seed_preferences(supabase)
        jane = self._seed_contacts(supabase)
        mock_http.add("GET", EVENTS_URL, json={"items": self.EVENTS})

        result = asyncio.run(sync_calendar(db, USER_ID))

        assert result["synced"] == 2
        assert result["stats"]["matched"] == 1

        meetings = {m["calendar_event_id"]: m for m in supabase.tables["meetings"]}
        assert meetings["evt-1"]["contact_id"] == jane["id"]
        assert meetings["evt-1"]["importance"] == "critical"
        assert meetings["evt-1"]["is_first_meeting"] is True
        assert meetings["evt-1"]["match_confidence"] == "high"
        assert meetings["evt-2"]["contact_id"] is None

        request = mock_http.requests[0]
        assert request.headers["Authorization"] == "Bearer access-1"
        assert request.url.params["singleEvents"] == "true"
        assert request.url.params["orderBy"] == "startTime"

        prefs = supabase.tables["calendar_preferences"][0]
        assert prefs["last_sync_at"]
        assert prefs["last_sync_error"] is None

    def test_resync_does_not_duplicate(self, db, supabase, encryption_key, mock_http):
        _seed_preferences(supabase)
        self._seed_contacts(supabase)
        mock_http.add("GET", EVENTS_URL, json={"items": self.EVENTS})

        asyncio.run(sync_calendar(db, USER_ID))
        asyncio.run(sync_calendar(db, USER_ID))

        assert len(supabase.tables["meetings"]) == 2

    def test_google_error_is_recorded(self, db, supabase, encryption_key, mock_http):
        _seed_preferences(supabase)
        mock_http.add("GET", EVENTS_URL, status_code=500, json={"error": "boom"})

        with pytest.raises(ExternalServiceError):
            asyncio.run(sync_calendar(db, USER_ID))

        assert supabase.tables["calendar_preferences"][0]["last_sync_error"]

    def test_microsoft_sync_not_supported(self, db, supabase, encryption_key):
        _seed_preferences(supabase, provider="microsoft")
        with pytest.raises(ValidationFailedError):
            asyncio.run(sync_calendar(db, USER_ID))
