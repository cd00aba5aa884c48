import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_ai_service, get_current_user, get_db, verify_cron_secret
from app.features.ai import AIService
from app.features.contacts import log_interaction
from app.features.database import DatabaseClient
from app.features.rescue import WeeklyRescueJob, week_start
from app.shared.correlation import CorrelationContext
from app.shared.errors import AppError, NotFoundError

router = APIRouter(tags=["Rescue"])
logger = logging.getLogger("ReMember.API.Rescue")


@router.get("/cron/weekly-rescue", dependencies=[Depends(verify_cron_secret)])
async def weekly_rescue(
    db: DatabaseClient = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    """Cron entry point: generate this week's rescue suggestions for every user."""
    try:
        week = week_start()
        with CorrelationContext(f"rescue-{week}"):
            logger.info("Weekly rescue started")
            summary = await WeeklyRescueJob(db, ai).run()
        return {"success": True, "week_date": week, "summary": summary}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Weekly rescue failed")
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/rescues")
async def list_rescues(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """This week's pending rescues with the contact they are for."""
    week = week_start()
    rescues = db.weekly_rescues.list_pending(user_id, week)
    contacts = {c["id"]: c for c in db.persons.get_many(user_id, [r["contact_id"] for r in rescues])}

    items = []
    for rescue in rescues:
        contact = contacts.get(rescue["contact_id"])
        if contact is None:
            continue
        items.append({
            **rescue,
            "contact": {
                "id": contact["id"],
                "name": contact.get("name"),
                "photo_url": contact.get("photo_url"),
                "last_interaction_date": contact.get("last_interaction_date"),
            },
        })
    return {"week_date": week, "rescues": items, "count": len(items)}


def _pending_rescue(db: DatabaseClient, user_id: str, contact_id: str, week: str) -> dict:
    for rescue in db.weekly_rescues.list_pending(user_id, week):
        if rescue["contact_id"] == contact_id:
            return rescue
    raise NotFoundError("Rescue", contact_id)


@router.post("/rescues/{contact_id}/rescue")
async def rescue_contact(
    contact_id: str,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Mark the suggestion as sent and log it as a message to the contact."""
    week = week_start()
    rescue = _pending_rescue(db, user_id, contact_id, week)

    interaction = log_interaction(
        db,
        user_id,
        contact_id,
        "message",
        datetime.now(timezone.utc).isoformat(),
        rescue.get("suggested_hook"),
    )
    db.weekly_rescues.set_status(user_id, contact_id, week, "sent")
    return {"status": "success", "interaction": interaction}


@router.post("/rescues/{contact_id}/skip")
async def skip_rescue(
    contact_id: str,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    week = week_start()
    _pending_rescue(db, user_id, contact_id, week)
    db.weekly_rescues.set_status(user_id, contact_id, week, "skipped")
    return {"status": "success", "contact_id": contact_id}
