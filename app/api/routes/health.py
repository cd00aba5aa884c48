from fastapi import APIRouter

from app.shared.constants import SERVICE_NAME

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Simple health endpoint for monitoring."""
    return {"status": "healthy", "service": SERVICE_NAME}
