"""Shared constants for the ReMember Me service."""

SERVICE_NAME = "remember-me-service"

# Cadence used when a contact has no explicit target
DEFAULT_TARGET_DAYS = {"high": 14, "medium": 30, "low": 90}
FALLBACK_TARGET_DAYS = 30

INTERACTION_TYPES = ("call", "text", "message", "email", "in-person", "meeting", "social", "other")

# Persons are active unless archived; archive_status may be null on old rows
ACTIVE_PERSONS_FILTER = "archive_status.is.null,archive_status.eq.false"
