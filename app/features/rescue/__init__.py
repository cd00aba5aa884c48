"""Weekly rescue feature module."""

from app.features.rescue.weekly import WeeklyRescueJob, week_start

__all__ = ["WeeklyRescueJob", "week_start"]
