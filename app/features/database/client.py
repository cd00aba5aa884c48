"""
Database client - one object giving access to every repository.

Usage:
    db = get_database_client()
    contact = db.persons.get(user_id, contact_id)
    db.interactions.create(user_id, contact_id, "call", when)
"""

import logging
from functools import lru_cache

from app.core.database import get_supabase
from app.features.database.repositories import (
    CalendarPreferencesRepository,
    InteractionsRepository,
    MeetingsRepository,
    PersonsRepository,
    SharedMemoriesRepository,
    TagsRepository,
    UserStatsRepository,
    WeeklyRescuesRepository,
)

logger = logging.getLogger("ReMember.Database")


class DatabaseClient:
    """Groups the repositories around a single Supabase client."""

    def __init__(self, client):
        self._client = client

        self.persons = PersonsRepository(client)
        self.interactions = InteractionsRepository(client)
        self.tags = TagsRepository(client)
        self.shared_memories = SharedMemoriesRepository(client)
        self.calendar_preferences = CalendarPreferencesRepository(client)
        self.meetings = MeetingsRepository(client)
        self.weekly_rescues = WeeklyRescuesRepository(client)
        self.user_stats = UserStatsRepository(client)

    @property
    def client(self):
        """Direct access to the Supabase client (auth lookups)."""
        return self._client


@lru_cache(maxsize=1)
def get_database_client() -> DatabaseClient:
    logger.info("Database client initialized")
    return DatabaseClient(get_supabase())

