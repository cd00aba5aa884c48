import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from app.api.dependencies import get_current_user, get_db
from app.api.models import PreferencesUpdate
from app.core.config import settings
from app.features.calendar import oauth
from app.features.calendar.encryption import encrypt_token
from app.features.calendar.sync import get_matched_events, refresh_tokens, sync_calendar
from app.features.database import DatabaseClient
from app.features.database.repositories.calendar import public_preferences
from app.features.health.decay import parse_timestamp
from app.shared.errors import AppError

router = APIRouter(tags=["Calendar"])
logger = logging.getLogger("ReMember.API.Calendar")


def _settings_redirect(**params) -> RedirectResponse:
    return RedirectResponse(f"{settings.FRONTEND_URL}/settings?{urlencode(params)}", status_code=302)


# =========================================================================
# OAUTH
# =========================================================================

@router.get("/calendar/oauth/{provider}/start")
async def oauth_start(provider: str, user_id: str = Depends(get_current_user)):
    """Authorization URL the client should send the browser to."""
    return {"provider": provider, "authorization_url": oauth.build_authorization_url(provider, user_id)}


@router.get("/calendar/oauth/{provider}/callback")
async def oauth_callback(
    provider: str,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: DatabaseClient = Depends(get_db),
):
    """
    Provider redirect target.

    Verifies the signed state, exchanges the code, encrypts both tokens and
    stores them for the user named in the state, then sends the browser back
    to the settings page with the outcome in the query string.
    """
    if error:
        logger.warning("%s OAuth denied: %s", provider, error)
        return _settings_redirect(calendar="error", reason=error)
    if not code or not state:
        return _settings_redirect(calendar="error", reason="missing_code")

    try:
        user_id = oauth.verify_state(provider, state)
    except AppError as exc:
        logger.warning("%s OAuth callback rejected: %s", provider, exc.message)
        return _settings_redirect(calendar="error", reason="invalid_state")

    try:
        tokens = await oauth.exchange_code(provider, code)
        access_token = tokens.get("access_token")
        if not access_token:
            return _settings_redirect(calendar="error", reason="no_access_token")

        refresh_token = tokens.get("refresh_token")
        db.calendar_preferences.save_tokens(
            user_id=user_id,
            provider=provider,
            access_token_encrypted=encrypt_token(access_token),
            refresh_token_encrypted=encrypt_token(refresh_token) if refresh_token else None,
            token_expiry=oauth.token_expiry(tokens.get("expires_in")),
        )
        logger.info("Connected %s calendar for user %s", provider, user_id)
        return _settings_redirect(calendar="connected", provider=provider)

    except AppError as exc:
        logger.error("%s OAuth callback failed: %s", provider, exc.message)
        return _settings_redirect(calendar="error", reason="token_exchange_failed")


@router.post("/calendar/refresh")
async def refresh_calendar_token(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    result = await refresh_tokens(db, user_id)
    return {"status": "success", "provider": result["provider"], "token_expiry": result["token_expiry"]}


# =========================================================================
# PREFERENCES
# =========================================================================

@router.get("/calendar/preferences")
async def get_preferences(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Stored preferences (defaults when none); token columns are never returned."""
    return {"preferences": public_preferences(db.calendar_preferences.get(user_id))}


@router.put("/calendar/preferences")
async def update_preferences(
    request: PreferencesUpdate,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No preferences to update")

    if db.calendar_preferences.get(user_id) is None:
        raise HTTPException(status_code=400, detail="Connect a calendar before changing preferences")

    row = db.calendar_preferences.update(user_id, updates)
    return {"status": "success", "preferences": public_preferences(row)}


@router.delete("/calendar/preferences")
async def disconnect_calendar(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Disconnect: drop the stored tokens and preferences."""
    db.calendar_preferences.delete(user_id)
    logger.info("Disconnected calendar for user %s", user_id)
    return {"status": "success"}


@router.get("/calendar/status")
async def calendar_status(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    prefs = db.calendar_preferences.get(user_id)
    if not prefs:
        return {"connected": False}

    expiry = parse_timestamp(prefs.get("token_expiry"))
    return {
        "connected": bool(prefs.get("calendar_enabled") and prefs.get("access_token_encrypted")),
        "provider": prefs.get("provider"),
        "last_sync_at": prefs.get("last_sync_at"),
        "last_sync_error": prefs.get("last_sync_error"),
        "token_expired": expiry is None or expiry <= datetime.now(timezone.utc),
    }


# =========================================================================
# SYNC
# =========================================================================

@router.post("/calendar/sync")
async def sync_events(
    days: int = Query(default=14, ge=1, le=60),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Pull upcoming events, match attendees to contacts and store them as meetings."""
    try:
        result = await sync_calendar(db, user_id, days=days)
        return {"status": "success", **result}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Calendar sync failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/calendar/events")
async def matched_events(
    days: int = Query(default=7, ge=1, le=60),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    return await get_matched_events(db, user_id, days=days)


@router.get("/calendar/meetings")
async def upcoming_meetings(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    meetings = db.meetings.list_upcoming(user_id, limit=limit)
    return {"meetings": meetings, "count": len(meetings)}
