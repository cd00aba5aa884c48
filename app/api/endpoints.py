from fastapi import APIRouter

from app.api.routes import (
    ai,
    calendar,
    contacts,
    duplicates,
    garden,
    health,
    interactions,
    practice,
    relationships,
    rescue,
)


router = APIRouter()

router.include_router(contacts.router)
router.include_router(interactions.router)
router.include_router(duplicates.router)
router.include_router(relationships.router)
router.include_router(garden.router)
router.include_router(calendar.router)
router.include_router(ai.router)
router.include_router(practice.router)
router.include_router(rescue.router)
router.include_router(health.router)
