"""Gamified practice feature module."""

from app.features.practice.game import (
    build_event_prep,
    check_level_up,
    contact_group,
    normalize_game_contact,
    recommended_fact_type,
)

__all__ = [
    "build_event_prep",
    "check_level_up",
    "contact_group",
    "normalize_game_contact",
    "recommended_fact_type",
]
