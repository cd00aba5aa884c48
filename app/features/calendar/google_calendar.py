"""Google Calendar v3 events over REST."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx

from app.services.http_client import http_client_manager
from app.shared.errors import ExternalServiceError

logger = logging.getLogger("ReMember.Calendar.Google")

EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"


class GoogleCalendarService:
    """Read-only access to the user's primary calendar."""

    def __init__(self, access_token: str):
        self.access_token = access_token

    async def get_upcoming_events(self, days: int = 7, max_results: Optional[int] = 20) -> List[Dict]:
        now = datetime.now(timezone.utc)
        return await self.get_events_in_range(now, now + timedelta(days=days), max_results)

    async def get_events_in_range(
        self,
        start: datetime,
        end: datetime,
        max_results: Optional[int] = None,
    ) -> List[Dict]:
        params = {
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        if max_results:
            params["maxResults"] = str(max_results)

        client = await http_client_manager.get_client()
        try:
            response = await client.get(
                EVENTS_URL,
                params=params,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.HTTPError as exc:
            logger.error(f"Error fetching calendar events: {exc}")
            raise ExternalServiceError("google_calendar", f"Google Calendar API Error: {exc}")

        if response.status_code == 401:
            raise ExternalServiceError("google_calendar", "Google Calendar access token rejected", status_code=401)
        if response.status_code >= 400:
            logger.error(f"Google Calendar returned {response.status_code}: {response.text[:200]}")
            raise ExternalServiceError(
                "google_calendar", f"Google Calendar API Error: HTTP {response.status_code}"
            )

        return response.json().get("items", [])
