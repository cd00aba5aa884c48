"""Relationship health feature module."""

from app.features.health.decay import (
    GardenHealth,
    calculate_garden_health,
    calculate_relationship_score,
    contact_garden_health,
    days_since,
    effective_target_days,
    get_relationship_health,
    health_category,
)
from app.features.health.drifters import find_rescue_candidates, get_critical_drifters

__all__ = [
    "GardenHealth",
    "calculate_garden_health",
    "calculate_relationship_score",
    "contact_garden_health",
    "days_since",
    "effective_target_days",
    "get_relationship_health",
    "health_category",
    "find_rescue_candidates",
    "get_critical_drifters",
]
