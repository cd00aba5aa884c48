import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import ai_rate_limit, get_ai_service, get_db
from app.api.models import BriefingRequest, ParseContactRequest, StartersRequest, SummaryRequest
from app.features.ai import AIService
from app.features.database import DatabaseClient
from app.features.health.decay import days_since
from app.shared.errors import AppError, NotFoundError

router = APIRouter(tags=["AI"])
logger = logging.getLogger("ReMember.API.AI")


def _load_contact(db: DatabaseClient, user_id: str, contact_id: str) -> dict:
    contact = db.persons.get(user_id, contact_id)
    if not contact:
        raise NotFoundError("Contact", contact_id)
    return contact


def _starter_context(db: DatabaseClient, user_id: str, contact: dict) -> dict:
    context = {
        "name": contact.get("name") or contact.get("first_name") or "",
        "where_we_met": contact.get("where_met"),
        "why_stay_in_contact": contact.get("relationship_summary") or contact.get("ai_summary"),
        "interests": contact.get("interests") or [],
    }
    memories = db.shared_memories.for_persons([contact["id"]], per_person=5).get(contact["id"], [])
    if memories:
        context["what_matters_to_them"] = memories

    latest = db.interactions.latest_for_person(user_id, contact["id"])
    if latest and latest.get("notes"):
        context["last_contact"] = {
            "notes": latest["notes"],
            "days_ago": days_since(latest.get("interaction_date")),
        }
    return context


@router.post("/ai/summary")
async def generate_summary(
    request: SummaryRequest,
    user_id: str = Depends(ai_rate_limit),
    db: DatabaseClient = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    """One-line relationship summary, optionally saved to the contact as ai_summary."""
    try:
        fields = request.model_dump(exclude_none=True, exclude={"contact_id", "save"})
        contact = {}
        if request.contact_id:
            contact = _load_contact(db, user_id, request.contact_id)
            if contact.get("ai_summary"):
                contact["existing_summary"] = contact["ai_summary"]
        contact = {**contact, **fields}

        summary = await ai.generate_summary(contact, user_id=user_id)

        if request.save and request.contact_id:
            db.persons.update(user_id, request.contact_id, {"ai_summary": summary})
        return {"summary": summary}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Summary generation failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/ai/conversation-starters")
async def generate_conversation_starters(
    request: StartersRequest,
    user_id: str = Depends(ai_rate_limit),
    db: DatabaseClient = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
):
    """Four conversation starters from a stored contact or an explicit context."""
    try:
        fields = request.model_dump(exclude_none=True, exclude={"contact_id"})
        context = {}
        if request.contact_id:
            context = _starter_context(db, user_id, _load_contact(db, user_id, request.contact_id))
        context = {**context, **fields}

        if not context.get("name"):
            raise HTTPException(status_code=400, detail="A contact name or contact_id is required")

        starters = await ai.generate_starters(context, user_id=user_id)
        return {"starters": starters}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Conversation starters failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/ai/briefing")
async def generate_briefing(
    request: BriefingRequest,
    user_id: str = Depends(ai_rate_limit),
    ai: AIService = Depends(get_ai_service),
):
    """Morning briefing narrative from milestones, thirsty tribes and priority nurtures."""
    try:
        narrative = await ai.generate_briefing(
            milestones=[m.model_dump() for m in request.milestones],
            thirsty_tribes=[t.model_dump() for t in request.thirsty_tribes],
            priority_nurtures=[p.model_dump() for p in request.priority_nurtures],
            user_name=request.user_name,
            user_id=user_id,
        )
        return {"narrative": narrative}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Briefing generation failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/ai/parse-contact")
async def parse_contact(
    request: ParseContactRequest,
    user_id: str = Depends(ai_rate_limit),
    ai: AIService = Depends(get_ai_service),
):
    """Structured contact fields extracted from a dictated transcript."""
    try:
        return await ai.parse_contact(request.transcript, user_id=user_id)

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Contact extraction failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))
