"""Database repositories - organized data access."""

from app.features.database.repositories.calendar import (
    CalendarPreferencesRepository,
    MeetingsRepository,
)
from app.features.database.repositories.interactions import InteractionsRepository
from app.features.database.repositories.persons import PersonsRepository
from app.features.database.repositories.rescues import UserStatsRepository, WeeklyRescuesRepository
from app.features.database.repositories.tags import SharedMemoriesRepository, TagsRepository

__all__ = [
    "CalendarPreferencesRepository",
    "InteractionsRepository",
    "MeetingsRepository",
    "PersonsRepository",
    "SharedMemoriesRepository",
    "TagsRepository",
    "UserStatsRepository",
    "WeeklyRescuesRepository",
]
