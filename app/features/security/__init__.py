"""Request protection (rate limiting)."""

from app.features.security.rate_limit import RateLimiter, RateLimitResult, get_rate_limiter

__all__ = ["RateLimiter", "RateLimitResult", "get_rate_limiter"]
