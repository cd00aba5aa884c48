import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from app.core.config import settings
from app.features.ai import AIService
from app.features.database import DatabaseClient, get_database_client
from app.features.security import RateLimiter, get_rate_limiter
from app.shared.errors import RateLimitedError, UnauthorizedError

logger = logging.getLogger("ReMember.API.Auth")


def get_db() -> DatabaseClient:
    """Shared repository bundle; callers pass the verified user id to every query."""
    return get_database_client()


@lru_cache(maxsize=1)
def get_ai_service() -> AIService:
    """Provide a singleton AI service for request handlers."""
    return AIService()


def get_limiter() -> RateLimiter:
    return get_rate_limiter()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: DatabaseClient = Depends(get_db),
) -> str:
    """Resolve the Supabase access token in the Authorization header to a user id."""
    token = _bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Missing bearer token")

    try:
        response = db.client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise UnauthorizedError("Invalid or expired session") from e

    user = getattr(response, "user", None)
    if user is None or not getattr(user, "id", None):
        raise UnauthorizedError("Invalid or expired session")
    return user.id


async def ai_rate_limit(
    user_id: str = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_limiter),
) -> str:
    """Per-user limit on AI endpoints; returns the user id for convenience."""
    result = limiter.check(
        f"ai:{user_id}",
        limit=settings.AI_RATE_LIMIT,
        window=settings.AI_RATE_WINDOW_SECONDS,
    )
    if not result.success:
        logger.warning(f"AI rate limit hit for user {user_id}")
        raise RateLimitedError("Too many AI requests. Please slow down.", retry_after=result.reset)
    return user_id


def verify_cron_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Cron endpoints require `Bearer <CRON_SECRET>` in production."""
    if not settings.is_production:
        return
    if not settings.CRON_SECRET or _bearer_token(authorization) != settings.CRON_SECRET:
        raise UnauthorizedError("Invalid cron secret")
