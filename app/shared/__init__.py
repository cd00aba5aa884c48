# Shared constants and utilities
from .constants import (
    DEFAULT_TARGET_DAYS,
    FALLBACK_TARGET_DAYS,
    INTERACTION_TYPES,
    SERVICE_NAME,
)

__all__ = [
    "DEFAULT_TARGET_DAYS",
    "FALLBACK_TARGET_DAYS",
    "INTERACTION_TYPES",
    "SERVICE_NAME",
]
