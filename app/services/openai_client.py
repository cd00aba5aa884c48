"""
Shared OpenAI client.

Summaries, conversation starters and weekly rescue hooks all use this one
AsyncOpenAI instance.
"""

import logging
from functools import lru_cache

from openai import AsyncOpenAI

from app.core.config import settings
from app.shared.errors import ConfigurationError

logger = logging.getLogger("ReMember.OpenAI")


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """
    Get the singleton OpenAI async client.

    Raises:
        ConfigurationError: If OPENAI_API_KEY is not set
    """
    if not settings.OPENAI_API_KEY:
        raise ConfigurationError("OPENAI_API_KEY environment variable not set")

    client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    logger.info("OpenAI client initialized")
    return client
