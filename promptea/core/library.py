"""Per-user Supabase data: saved prompts, the points ledger and challenge submissions."""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any
from uuid import UUID

import structlog

from promptea.config import get_settings
from promptea.db.client import SupabaseClient, get_supabase_client

logger = structlog.get_logger()

SAVED_PROMPTS = "saved_prompts"
POINT_TRANSACTIONS = "point_transactions"
CHALLENGE_SUBMISSIONS = "challenge_submissions"


def require_uuid(user_id: str) -> str:
    try:
        return str(UUID(str(user_id)))
    except ValueError:
        raise ValueError(f"Invalid UUID format for user_id: {user_id}") from None


class SavedPromptStore:
    """Bookmarks of library prompts, unique per (user, prompt)."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def save(
        self,
        user_id: str,
        prompt_id: str,
        prompt_title: str,
        prompt_text: str,
        prompt_description: str | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        folder_name: str | None = None,
        user_notes: str | None = None,
    ) -> dict[str, Any]:
        """Save a prompt for a user; saving it again updates the stored copy."""
        row = self.db.upsert(
            SAVED_PROMPTS,
            {
                "user_id": user_id,
                "prompt_id": prompt_id,
                "prompt_title": prompt_title,
                "prompt_text": prompt_text,
                "prompt_description": prompt_description,
                "category": category,
                "tags": tags or [],
                "folder_name": folder_name,
                "user_notes": user_notes,
            },
            on_conflict="user_id,prompt_id",
        )
        logger.info("saved_prompt.saved", user_id=user_id, prompt_id=prompt_id)
        return row

    def unsave(self, user_id: str, prompt_id: str) -> None:
        self.db.delete_where(SAVED_PROMPTS, {"user_id": user_id, "prompt_id": prompt_id})
        logger.info("saved_prompt.removed", user_id=user_id, prompt_id=prompt_id)

    def list_saved(self, user_id: str) -> list[dict[str, Any]]:
        """Newest first."""
        return self.db.select(
            SAVED_PROMPTS, filters={"user_id": user_id}, order_by="created_at", ascending=False
        )

    def is_saved(self, user_id: str, prompt_id: str) -> bool:
        rows = self.db.select(
            SAVED_PROMPTS, filters={"user_id": user_id, "prompt_id": prompt_id}, limit=1
        )
        return bool(rows)


class PointsLedger:
    """Append-only point transactions."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def add_points(
        self,
        user_id: str,
        points: int,
        transaction_type: str,
        source_type: str,
        title: str,
        source_id: str | None = None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Record a transaction. Raises ValueError if ``user_id`` is not a UUID."""
        row = self.db.insert(
            POINT_TRANSACTIONS,
            {
                "user_id": require_uuid(user_id),
                "points": points,
                "transaction_type": transaction_type,
                "source_type": source_type,
                "source_id": source_id,
                "title": title,
                "description": description,
                "metadata": metadata,
            },
        )
        logger.info(
            "points.added", user_id=user_id, points=points, source_type=source_type
        )
        return row

    def recent_activity(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Most recent transactions that awarded points, newest first."""
        return self.db.select(
            POINT_TRANSACTIONS,
            filters={"user_id": user_id},
            gt={"points": 0},
            order_by="created_at",
            ascending=False,
            limit=limit,
        )

    def total_points(self, user_id: str) -> int:
        rows = self.db.select(POINT_TRANSACTIONS, filters={"user_id": user_id}, columns="points")
        return sum(r.get("points") or 0 for r in rows)


class ChallengeSubmissionStore:
    """Attempts at a challenge, numbered per (user, challenge)."""

    def __init__(self, db: SupabaseClient) -> None:
        self.db = db

    def submit(
        self,
        user_id: str,
        challenge_id: str,
        prompt_text: str,
        submission_notes: str | None = None,
    ) -> dict[str, Any]:
        """Record a new attempt with status ``submitted``. Raises ValueError on a bad user_id."""
        user_id = require_uuid(user_id)
        last = self.db.select(
            CHALLENGE_SUBMISSIONS,
            filters={"user_id": user_id, "challenge_id": challenge_id},
            order_by="attempt_number",
            ascending=False,
            limit=1,
            columns="attempt_number",
        )
        attempt = (last[0].get("attempt_number") or 0) + 1 if last else 1
        row = self.db.insert(
            CHALLENGE_SUBMISSIONS,
            {
                "user_id": user_id,
                "challenge_id": challenge_id,
                "prompt_text": prompt_text,
                "submission_notes": submission_notes,
                "attempt_number": attempt,
                "status": "submitted",
            },
        )
        logger.info(
            "submission.created", user_id=user_id, challenge_id=challenge_id, attempt=attempt
        )
        return row

    def record_evaluation(
        self,
        submission_id: str,
        overall_score: int,
        criteria_scores: dict[str, Any],
        ai_feedback: str,
        points_earned: int,
    ) -> dict[str, Any]:
        """Mark a submission completed with its grade."""
        row = self.db.update(
            CHALLENGE_SUBMISSIONS,
            submission_id,
            {
                "overall_score": overall_score,
                "criteria_scores": criteria_scores,
                "ai_feedback": ai_feedback,
                "points_earned": points_earned,
                "is_completed": True,
                "status": "completed",
                "completed_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info("submission.completed", submission_id=submission_id, score=overall_score)
        return row


@lru_cache
def get_saved_prompt_store() -> SavedPromptStore:
    return SavedPromptStore(get_supabase_client())


@lru_cache
def get_points_ledger() -> PointsLedger:
    return PointsLedger(get_supabase_client())


@lru_cache
def get_submission_store() -> ChallengeSubmissionStore:
    return ChallengeSubmissionStore(get_supabase_client())


def get_optional_points_ledger() -> PointsLedger | None:
    """The ledger, or None when Supabase is not configured."""
    return get_points_ledger() if get_settings().supabase_configured else None


def get_optional_submission_store() -> ChallengeSubmissionStore | None:
    return get_submission_store() if get_settings().supabase_configured else None
