"""
Logging utilities for safe logging of user data and sensitive information.

Includes:
- PII/secret redaction for safe logging
- Structured usage logging for OpenAI calls
"""
import json
import logging
import re
from typing import Any, Optional


# Sensitive keys that should be redacted in logs
SENSITIVE_KEYS = [
    "api_key", "token", "password", "secret", "auth",
    "email", "phone", "code", "authorization",
    "access_token", "refresh_token", "bearer",
]


def sanitize_for_logging(data: Any, max_len: int = 100) -> Any:
    """
    Sanitize data for safe logging - redacts PII and secrets.

    Args:
        data: The data to sanitize (can be dict, list, str, or other types)
        max_len: Maximum length for string values before truncation

    Returns:
        Sanitized version of the data safe for logging
    """
    if data is None:
        return "None"

    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            if any(sensitive in str(k).lower() for sensitive in SENSITIVE_KEYS):
                sanitized[k] = "***REDACTED***"
            else:
                sanitized[k] = sanitize_for_logging(v, max_len)
        return sanitized

    if isinstance(data, (list, tuple)):
        return [sanitize_for_logging(item, max_len) for item in data]

    if isinstance(data, str):
        # Single-line logging
        cleaned = re.sub(r'[\x00-\x1F\x7F]', '', data)
        if len(cleaned) > max_len:
            return cleaned[:max_len] + "..."
        return cleaned

    return sanitize_for_logging(str(data), max_len)


# =============================================================================
# STRUCTURED USAGE LOGGING
# =============================================================================

_usage_logger = logging.getLogger("ReMember.AIUsage")


def log_ai_usage(
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    endpoint: str = "unknown",
    user_id: Optional[str] = None,
) -> None:
    """
    Log a structured usage event for an OpenAI chat completion.

    Produces a single JSON log line that log aggregation can pick up for
    usage dashboards.
    """
    event = {
        "event": "ai_usage",
        "model": model,
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
        "endpoint": endpoint,
    }
    if user_id:
        event["user_id"] = user_id

    _usage_logger.info("AI_USAGE %s", json.dumps(event))
