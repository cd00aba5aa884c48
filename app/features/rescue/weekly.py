"""
Weekly ("Monday") rescue batch.

For every user with game stats, pick up to five drifting contacts, write a
low-stakes message for each and store them in `weekly_rescues` keyed by the
Monday of the current week. Users are processed one after another with a
fixed pause between AI calls; a failing user is logged and skipped.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from app.core.config import settings
from app.core.tracing import get_tracer
from app.features.health.drifters import find_rescue_candidates
from app.shared.errors import AppError

logger = logging.getLogger("ReMember.Rescue")
tracer = get_tracer(__name__)

DEFAULT_RELATIONSHIP_VALUE = 50


def week_start(today: Optional[date] = None) -> str:
    """ISO date of the Monday of the week containing `today`."""
    today = today or date.today()
    return (today - timedelta(days=today.weekday())).isoformat()


class WeeklyRescueJob:
    def __init__(self, db, ai_service, delay_seconds: Optional[float] = None):
        self.db = db
        self.ai = ai_service
        self.delay_seconds = settings.RESCUE_AI_DELAY_SECONDS if delay_seconds is None else delay_seconds

    async def run(self, today: Optional[date] = None) -> List[Dict]:
        week = week_start(today)
        summary = []

        for user_id in self.db.user_stats.list_user_ids():
            try:
                with tracer.start_as_current_span("rescue.user"):
                    count = await self.rescue_user(user_id, week)
            except AppError as exc:
                logger.error(f"Weekly rescue failed for user {user_id}: {exc.message}")
                continue
            if count:
                summary.append({"user_id": user_id, "rescues": count})

        logger.info(f"Weekly rescue finished: {len(summary)} users, week of {week}")
        return summary

    async def rescue_user(self, user_id: str, week: str) -> int:
        # rows already written this week keep their status (skipped, sent)
        existing = self.db.weekly_rescues.contact_ids_for_week(user_id, week)
        candidates = [
            contact for contact in find_rescue_candidates(self.db.persons.list(user_id))
            if contact["id"] not in existing
        ]
        if not candidates:
            return 0

        memories = self.db.shared_memories.for_persons([c["id"] for c in candidates])
        rows = []
        for contact in candidates:
            contact_memories = memories.get(contact["id"], [])
            hook = await self.ai.generate_rescue_hook(contact.get("name") or "", contact_memories, user_id=user_id)
            if contact_memories and self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)

            rows.append({
                "user_id": user_id,
                "contact_id": contact["id"],
                "week_date": week,
                "suggested_hook": hook,
                "relationship_value_score": contact.get("relationship_value") or DEFAULT_RELATIONSHIP_VALUE,
                "status": "pending",
            })

        self.db.weekly_rescues.upsert_many(rows)
        return len(rows)
