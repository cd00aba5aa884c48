"""
Text generation for contacts.

Wraps the shared AsyncOpenAI client: one-line relationship summaries,
conversation starters, the weekly "Low-Stakes Recall" rescue hooks, the
morning briefing and contact extraction from dictated transcripts.
OpenAI failures are translated into AppError subclasses so routes return
consistent status codes (bad key -> 500, rate limited -> 429).
"""

import json
import logging
import re
from typing import Dict, List, Optional

import openai

from app.core.config import settings
from app.core.logging_utils import log_ai_usage
from app.features.ai import prompts
from app.services.openai_client import get_openai_client
from app.shared.errors import (
    ConfigurationError,
    ExternalServiceError,
    RateLimitedError,
    ValidationFailedError,
)

logger = logging.getLogger("ReMember.AI")

_NUMBERING = re.compile(r"^\d+[.):\-]\s*")
_QUOTES = re.compile(r"^[\"']|[\"']$")


def strip_quotes(text: str) -> str:
    return _QUOTES.sub("", text.strip())


def parse_starters(content: str) -> List[str]:
    """Split a model reply into starter lines, dropping numbering and quotes."""
    starters = []
    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue
        cleaned = strip_quotes(_NUMBERING.sub("", line))
        if len(cleaned) > 10 and ("?" in cleaned or len(cleaned) > 20):
            starters.append(cleaned)
    return starters


def _translate_openai_error(exc: Exception) -> Exception:
    if isinstance(exc, openai.AuthenticationError):
        return ConfigurationError(
            "Invalid OpenAI API key. Please check your OPENAI_API_KEY environment variable."
        )
    if isinstance(exc, openai.RateLimitError):
        return RateLimitedError("OpenAI API rate limit exceeded. Please try again later.")
    return ExternalServiceError("openai", f"OpenAI request failed: {exc}")


class AIService:
    """Chat Completions calls used by the contacts features."""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    async def _complete(
        self,
        endpoint: str,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
        temperature: Optional[float] = None,
        user_id: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        kwargs = {
            "model": model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            logger.error(f"OpenAI call for {endpoint} failed: {exc}")
            raise _translate_openai_error(exc) from exc

        usage = getattr(response, "usage", None)
        if usage is not None:
            log_ai_usage(
                model=model,
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                endpoint=endpoint,
                user_id=user_id,
            )

        return (response.choices[0].message.content or "").strip()

    async def generate_summary(self, contact: Dict, user_id: Optional[str] = None) -> str:
        """One sentence (at most 15 words) describing who the contact is."""
        if not contact.get("name") and not contact.get("first_name"):
            raise ValidationFailedError("At least a name or first name is required")

        context = prompts.build_summary_context(contact)
        summary = await self._complete(
            endpoint="generate_summary",
            model=settings.OPENAI_MODEL,
            system=prompts.SUMMARY_SYSTEM_PROMPT,
            user=f"Generate a relationship summary from this contact information:\n\n{context}",
            max_tokens=100,
            temperature=0.7,
            user_id=user_id,
        )
        if not summary:
            raise ExternalServiceError("openai", "Failed to generate summary")
        return summary

    async def generate_starters(self, context: Dict, user_id: Optional[str] = None) -> List[str]:
        """
        Four conversation starters.

        Short or failed generations are padded from context-based fallbacks;
        configuration and rate-limit errors still propagate.
        """
        try:
            content = await self._complete(
                endpoint="generate_starters",
                model=settings.OPENAI_MODEL,
                system=prompts.STARTERS_SYSTEM_PROMPT,
                user=prompts.build_conversation_starter_prompt(context),
                max_tokens=400,
                temperature=0.7,
                user_id=user_id,
            )
        except ExternalServiceError as exc:
            logger.warning(f"Using fallback conversation starters: {exc.message}")
            return prompts.fallback_starters(context)[:4]

        starters = parse_starters(content)
        if len(starters) < 4:
            logger.warning("AI generated fewer than 4 starters, using fallbacks")
            starters = starters + prompts.fallback_starters(context)
        return starters[:4]

    async def generate_rescue_hook(self, name: str, memories: List[str], user_id: Optional[str] = None) -> str:
        """Low-stakes message referencing shared memories; default text when there are none."""
        if not memories:
            return prompts.DEFAULT_RESCUE_HOOK

        hook = await self._complete(
            endpoint="weekly_rescue",
            model=settings.OPENAI_RESCUE_MODEL,
            system=prompts.RESCUE_SYSTEM_PROMPT,
            user=prompts.build_rescue_prompt(name, memories),
            max_tokens=60,
            user_id=user_id,
        )
        return strip_quotes(hook) or prompts.DEFAULT_RESCUE_HOOK

    async def generate_briefing(
        self,
        milestones: List[Dict],
        thirsty_tribes: List[Dict],
        priority_nurtures: List[Dict],
        user_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> str:
        """Morning briefing narrative; empty lists are skipped by the model."""
        narrative = await self._complete(
            endpoint="generate_briefing",
            model=settings.OPENAI_MODEL,
            system=prompts.BRIEFING_SYSTEM_PROMPT,
            user=prompts.build_briefing_prompt(user_name, milestones, thirsty_tribes, priority_nurtures),
            max_tokens=350,
            temperature=0.7,
            user_id=user_id,
        )
        if not narrative:
            raise ExternalServiceError("openai", "Failed to generate briefing")
        return narrative

    async def parse_contact(self, transcript: str, user_id: Optional[str] = None) -> Dict:
        """
        Structured contact fields from a dictated transcript.

        Text fields come back trimmed or None; family members without a name
        or relationship are dropped.
        """
        if not transcript or not transcript.strip():
            raise ValidationFailedError("No transcript provided")

        content = await self._complete(
            endpoint="parse_contact",
            model=settings.OPENAI_MODEL,
            system=prompts.PARSE_CONTACT_SYSTEM_PROMPT,
            user=f"Extract contact information from this transcript:\n\n{transcript.strip()}",
            max_tokens=1000,
            temperature=0.3,
            user_id=user_id,
            json_mode=True,
        )
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.error(f"Contact extraction returned unparsable JSON: {exc} | snippet={content[:200]}")
            raise ExternalServiceError("openai", "AI returned invalid contact data") from exc
        if not isinstance(parsed, dict):
            raise ExternalServiceError("openai", "AI returned invalid contact data")

        return clean_parsed_contact(parsed)


def _clean_text(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def clean_parsed_contact(parsed: Dict) -> Dict:
    cleaned = {field: _clean_text(parsed.get(field)) for field in prompts.CONTACT_TEXT_FIELDS}

    members = parsed.get("family_members")
    if isinstance(members, list):
        cleaned["family_members"] = [
            {
                "name": _clean_text(member.get("name")),
                "relationship": _clean_text(member.get("relationship")),
                "birthday": _clean_text(member.get("birthday")),
                "hobbies": _clean_text(member.get("hobbies")),
                "interests": _clean_text(member.get("interests")),
            }
            for member in members
            if isinstance(member, dict)
            and _clean_text(member.get("name"))
            and _clean_text(member.get("relationship"))
        ]
    else:
        cleaned["family_members"] = None
    return cleaned
