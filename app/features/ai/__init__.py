"""AI text generation feature module."""

from app.features.ai.service import AIService, parse_starters, strip_quotes

__all__ = ["AIService", "parse_starters", "strip_quotes"]
