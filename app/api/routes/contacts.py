import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_current_user, get_db
from app.api.models import (
    ArchiveRequest,
    ContactCreate,
    ContactUpdate,
    FavoriteRequest,
    ImportanceRequest,
    SharedMemoryRequest,
    TagsRequest,
    VCardImportRequest,
)
from app.features.contacts import import_contacts, parse_vcards
from app.features.contacts.service import add_shared_memory, set_tags
from app.features.contacts.utils import (
    CONTEXT_FIELDS,
    get_birthday_info,
    get_initials,
    get_status_message,
    has_context,
)
from app.features.database import DatabaseClient
from app.features.health.decay import (
    calculate_relationship_score,
    contact_garden_health,
    format_days_since,
    health_category,
)
from app.shared.errors import AppError, NotFoundError

router = APIRouter(tags=["Contacts"])
logger = logging.getLogger("ReMember.API.Contacts")

def _with_health(contact: dict) -> dict:
    return {
        **contact,
        "initials": get_initials(contact.get("name")),
        "health": contact_garden_health(contact).to_dict(),
    }


@router.get("/contacts")
async def list_contacts(
    search: Optional[str] = Query(default=None, max_length=100),
    importance: Optional[str] = Query(default=None, pattern="^(high|medium|low)$"),
    favorites: bool = False,
    include_archived: bool = False,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """List (or search) the user's contacts with their garden health."""
    try:
        contacts = db.persons.list(
            user_id,
            search=search,
            importance=importance,
            favorites_only=favorites,
            include_archived=include_archived,
            limit=limit,
        )
        return {"contacts": [_with_health(c) for c in contacts], "count": len(contacts)}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed listing contacts for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/contacts/archived")
async def list_archived_contacts(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    contacts = db.persons.list_archived(user_id)
    return {"contacts": contacts, "count": len(contacts)}


@router.post("/contacts", status_code=201)
async def create_contact(
    request: ContactCreate,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    try:
        payload = request.model_dump(exclude_none=True)
        payload["has_context"] = has_context(payload)
        logger.info("Creating contact for user %s", user_id)

        contact = db.persons.create(user_id, payload)
        return {"status": "success", "contact": contact}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed creating contact for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/contacts/import")
async def import_vcard(
    request: VCardImportRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Import contacts from .vcf text; existing contacts only get their phone refreshed."""
    try:
        contacts = parse_vcards(request.content)
        result = import_contacts(db, user_id, contacts)
        return {"status": "success", **result.to_dict()}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("vCard import failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/contacts/{contact_id}")
async def get_contact(
    contact_id: str,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Contact detail: tags, recent interactions, memories and derived status."""
    try:
        contact = db.persons.get(user_id, contact_id)
        if not contact:
            raise NotFoundError("Contact", contact_id)

        score = calculate_relationship_score(contact)
        return {
            "contact": _with_health(contact),
            "tags": db.tags.names_for_persons([contact_id]).get(contact_id, []),
            "interactions": db.interactions.list_for_person(user_id, contact_id, limit=10),
            "shared_memories": db.shared_memories.for_persons([contact_id], per_person=10).get(contact_id, []),
            "status": get_status_message(contact),
            "birthday": get_birthday_info(contact.get("birthday")),
            "last_contact": format_days_since(contact.get("last_interaction_date")),
            "relationship_score": score,
            "relationship_category": health_category(score),
        }

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed loading contact %s", contact_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.patch("/contacts/{contact_id}")
async def update_contact(
    contact_id: str,
    request: ContactUpdate,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    try:
        updates = request.model_dump(exclude_unset=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        if any(field in updates for field in CONTEXT_FIELDS) and has_context(updates):
            updates["has_context"] = True

        contact = db.persons.update(user_id, contact_id, updates)
        if not contact:
            raise NotFoundError("Contact", contact_id)
        return {"status": "success", "contact": contact}

    except (HTTPException, AppError):
        raise
    except Exception as exc:
        logger.exception("Failed updating contact %s", contact_id)
        raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/contacts/{contact_id}")
async def delete_contact(
    contact_id: str,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    if not db.persons.delete(user_id, contact_id):
        raise NotFoundError("Contact", contact_id)
    logger.info("Deleted contact %s", contact_id)
    return {"status": "success", "contact_id": contact_id}


@router.post("/contacts/{contact_id}/archive")
async def archive_contact(
    contact_id: str,
    request: ArchiveRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Archive or restore a contact (archive_contact RPC)."""
    if not db.persons.get(user_id, contact_id):
        raise NotFoundError("Contact", contact_id)

    db.persons.archive(user_id, contact_id, request.archived, request.reason)
    return {"status": "success", "contact_id": contact_id, "archived": request.archived}


@router.post("/contacts/{contact_id}/favorite")
async def set_favorite(
    contact_id: str,
    request: FavoriteRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    contact = db.persons.update(user_id, contact_id, {"is_favorite": request.is_favorite})
    if not contact:
        raise NotFoundError("Contact", contact_id)
    return {"status": "success", "contact": contact}


@router.post("/contacts/{contact_id}/importance")
async def set_importance(
    contact_id: str,
    request: ImportanceRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    contact = db.persons.update(user_id, contact_id, {"importance": request.importance})
    if not contact:
        raise NotFoundError("Contact", contact_id)
    return {"status": "success", "contact": contact}


@router.get("/tags")
async def list_tags(
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    return {"tags": db.tags.list(user_id)}


@router.put("/contacts/{contact_id}/tags")
async def update_tags(
    contact_id: str,
    request: TagsRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Add and remove tribes on a contact; returns the resulting tag names."""
    tags = set_tags(db, user_id, contact_id, request.add, request.remove)
    return {"status": "success", "contact_id": contact_id, "tags": tags}


@router.post("/contacts/{contact_id}/memories", status_code=201)
async def create_shared_memory(
    contact_id: str,
    request: SharedMemoryRequest,
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    memory = add_shared_memory(db, user_id, contact_id, request.content)
    return {"status": "success", "memory": memory}
