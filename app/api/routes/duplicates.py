import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_current_user, get_db
from app.api.models import MergeRequest
from app.features.contacts import find_potential_duplicates, merge_duplicates
from app.features.database import DatabaseClient
from app.shared.errors import AppError

router = APIRouter(tags=["Duplicates"])
logger = logging.getLogger("ReMember.API.Duplicates")


@router.get("/duplicates")
async def list_duplicates(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Groups of contacts that look like the same person, keeper first."""
    try:
        contacts = db.persons.list(user_id)
        groups = find_potential_duplicates(contacts)
        logger.info("Found %d duplicate groups for user %s", len(groups), user_id)
        return {"groups": [g.to_dict() for g in groups], "count": len(groups)}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Duplicate scan failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/duplicates/merge")
async def merge_contacts(
    request: MergeRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    result = merge_duplicates(db, user_id, request.keeper_id, request.duplicate_ids)
    return {"status": "success", **result}
