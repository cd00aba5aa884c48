import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_current_user, get_db
from app.features.database import DatabaseClient
from app.features.garden import MODES, compute_layout, phyllotaxis_position
from app.features.health.decay import contact_garden_health

router = APIRouter(tags=["Garden"])
logger = logging.getLogger("ReMember.API.Garden")


@router.get("/garden")
async def garden_layout(
    mode: str = Query(default="frequency"),
    seed: int = 0,
    jitter: float = Query(default=8.0, ge=0, le=50),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Leaf positions on concentric rings; the same seed always gives the same layout."""
    if mode not in MODES:
        raise HTTPException(status_code=400, detail=f"mode must be one of: {', '.join(MODES)}")

    leaves = compute_layout(db.persons.list(user_id), mode=mode, seed=seed, jitter=jitter)
    return {"mode": mode, "seed": seed, "leaves": leaves, "count": len(leaves)}


@router.get("/garden/phyllotaxis")
async def garden_phyllotaxis(
    max_radius: float = Query(default=300.0, gt=0, le=2000),
    user_id: str = Depends(get_current_user),
    db: DatabaseClient = Depends(get_db),
):
    """Spiral layout where healthier relationships sit closer to the centre."""
    leaves = []
    for index, contact in enumerate(db.persons.list(user_id)):
        health = contact_garden_health(contact)
        position = phyllotaxis_position(index, health.ratio, max_radius)
        leaves.append({
            "id": contact.get("id"),
            "name": contact.get("name"),
            "photo_url": contact.get("photo_url"),
            "health": health.status,
            "x": round(position["x"], 2),
            "y": round(position["y"], 2),
            "rotation": round(position["rotation"], 2),
        })
    return {"leaves": leaves, "count": len(leaves)}
