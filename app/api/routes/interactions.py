import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_current_user, get_db
from app.api.models import GroupInteractionCreate, InteractionCreate
from app.features.contacts import delete_interaction, log_group_interaction, log_interaction
from app.features.database import DatabaseClient
from app.features.health.decay import parse_timestamp
from app.shared.errors import AppError, ValidationFailedError

router = APIRouter(tags=["Interactions"])
logger = logging.getLogger("ReMember.API.Interactions")


def _interaction_date(value) -> str:
    if not value:
        return datetime.now(timezone.utc).isoformat()
    if parse_timestamp(value) is None:
        raise ValidationFailedError(f"Invalid interaction date: {value}")
    return value


@router.post("/interactions", status_code=201)
async def create_interaction(
    request: InteractionCreate,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Log an interaction and move the contact's last-contact date forward."""
    try:
        interaction = log_interaction(
            db,
            user_id,
            request.person_id,
            request.interaction_type,
            _interaction_date(request.interaction_date),
            request.notes,
        )
        return {"status": "success", "interaction": interaction}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed logging interaction for contact %s", request.person_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/interactions/group", status_code=201)
async def create_group_interaction(
    request: GroupInteractionCreate,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    try:
        interactions = log_group_interaction(
            db,
            user_id,
            request.person_ids,
            request.interaction_type,
            _interaction_date(request.interaction_date),
            request.notes,
        )
        return {"status": "success", "interactions": interactions, "count": len(interactions)}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed logging group interaction")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/interactions/recent")
async def recent_interactions(
    limit: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    return {"interactions": db.interactions.list_recent(user_id, limit=limit)}


@router.get("/contacts/{contact_id}/interactions")
async def contact_interactions(
    contact_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    interactions = db.interactions.list_for_person(user_id, contact_id, limit=limit)
    return {"contact_id": contact_id, "interactions": interactions, "count": len(interactions)}


@router.delete("/interactions/{interaction_id}")
async def remove_interaction(
    interaction_id: str,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Delete an interaction and recompute the contact's last contact from what remains."""
    interaction = delete_interaction(db, user_id, interaction_id)
    return {"status": "success", "interaction_id": interaction_id, "person_id": interaction["person_id"]}
