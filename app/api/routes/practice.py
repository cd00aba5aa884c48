import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_current_user, get_db
from app.api.models import AwardXPRequest, EventPrepRequest, LevelCheckRequest
from app.features.database import DatabaseClient
from app.features.practice import (
    build_event_prep,
    check_level_up,
    normalize_game_contact,
    recommended_fact_type,
)
from app.shared.errors import AppError

router = APIRouter(tags=["Practice"])
logger = logging.getLogger("ReMember.API.Practice")


@router.get("/practice/contacts")
async def game_contacts(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Contacts shaped for the practice games, with the flashcard to show first."""
    try:
        persons = db.persons.list(user_id)
        tags = db.tags.names_for_persons([p["id"] for p in persons])

        contacts = []
        for person in persons:
            contact = normalize_game_contact(person, tags.get(person["id"], []))
            contact["recommended_fact"] = recommended_fact_type(person)
            contacts.append(contact)
        return {"contacts": contacts, "count": len(contacts)}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed loading game contacts for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/practice/event-prep")
async def event_prep(
    request: EventPrepRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    session = build_event_prep(request.model_dump(), db.persons.list(user_id))
    return {"session": session}


@router.post("/practice/level-check")
async def level_check(request: LevelCheckRequest):
    return check_level_up(request.xp, request.level)


@router.get("/practice/stats")
async def practice_stats(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    stats = db.user_stats.get(user_id) or {}
    return {"xp": stats.get("xp") or 0, "level": stats.get("level") or 1}


@router.post("/practice/xp")
async def award_xp(
    request: AwardXPRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Add XP, persist it, and report a level-up when the threshold is crossed."""
    stats = db.user_stats.get(user_id) or {}
    xp = (stats.get("xp") or 0) + request.amount
    level = stats.get("level") or 1

    level_up = check_level_up(xp, level)
    if level_up["has_leveled_up"]:
        level = level_up["new_level"]
        logger.info("User %s reached level %d", user_id, level)

    db.user_stats.save(user_id, xp, level)
    return {"xp": xp, "level": level, "level_up": level_up}
