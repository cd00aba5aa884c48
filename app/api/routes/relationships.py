import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_current_user, get_db
from app.features.contacts.utils import frequency_label, get_frequency_status, get_status_message
from app.features.database import DatabaseClient
from app.features.health import dashboard, tree
from app.features.health.decay import (
    FADING,
    THIRSTY,
    calculate_relationship_score,
    contact_garden_health,
    effective_target_days,
    format_days_since,
    get_relationship_health,
    health_category,
)
from app.features.health.drifters import get_critical_drifters
from app.shared.errors import AppError, NotFoundError

router = APIRouter(tags=["Relationships"])
logger = logging.getLogger("ReMember.API.Relationships")


@router.get("/relationships/decay-alerts")
async def decay_alerts(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Contacts that are thirsty or fading, most overdue first."""
    try:
        alerts = []
        for contact in db.persons.list(user_id):
            health = contact_garden_health(contact)
            if health.status in (THIRSTY, FADING):
                alerts.append({
                    "id": contact["id"],
                    "name": contact.get("name"),
                    "photo_url": contact.get("photo_url"),
                    "importance": contact.get("importance"),
                    "last_contact": format_days_since(contact.get("last_interaction_date")),
                    "health": health.to_dict(),
                })

        # Never-contacted (ratio None) sort last
        alerts.sort(key=lambda a: a["health"]["ratio"] if a["health"]["ratio"] is not None else -1, reverse=True)
        return {"alerts": alerts, "count": len(alerts)}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed computing decay alerts for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/relationships/drifters")
async def critical_drifters(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Contacts crossing their cadence deadline right now, with shared memories."""
    contacts = db.persons.list(user_id)
    drifters = get_critical_drifters(contacts)
    memories = db.shared_memories.for_persons([d["id"] for d in drifters])
    for drifter in drifters:
        drifter["shared_memories"] = memories.get(drifter["id"], [])
    return {"drifters": drifters, "count": len(drifters)}


@router.get("/relationships/{contact_id}/health")
async def contact_health(
    contact_id: str,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    contact = db.persons.get(user_id, contact_id)
    if not contact:
        raise NotFoundError("Contact", contact_id)

    cadence = effective_target_days(contact.get("target_frequency_days"), contact.get("importance"))
    score = calculate_relationship_score(contact)
    return {
        "contact_id": contact_id,
        "garden": contact_garden_health(contact).to_dict(),
        "cadence": get_relationship_health(contact.get("last_interaction_date"), cadence),
        "cadence_days": cadence,
        "cadence_label": frequency_label(cadence),
        "frequency_status": get_frequency_status(contact.get("last_interaction_date"), cadence),
        "status": get_status_message(contact),
        "score": score,
        "category": health_category(score),
        "last_contact": format_days_since(contact.get("last_interaction_date")),
    }


@router.get("/dashboard")
async def dashboard_overview(
    months: int = Query(default=6, ge=1, le=24),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    try:
        contacts = db.persons.list(user_id, include_archived=True)
        return {
            "stats": dashboard.dashboard_stats(contacts),
            "interactions": dashboard.interaction_stats(contacts),
            "health": dashboard.health_breakdown(contacts),
            "growth": dashboard.growth_trend(contacts, months=months),
            "top_contacts": dashboard.top_contacts(contacts),
            "recent_interactions": db.interactions.list_recent(user_id, limit=10),
        }

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed building dashboard for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/tree")
async def tree_overview(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Tree-of-relationships statistics and the banner message."""
    contacts = db.persons.list(user_id)
    stats = tree.contacts_tree_stats(contacts)
    return {
        "stats": stats,
        "leaves": tree.tree_leaves(contacts),
        "message": tree.health_score_message(stats["health_score"]),
        "season": tree.current_season(),
    }
