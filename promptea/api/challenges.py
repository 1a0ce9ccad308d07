"""Challenge grading endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from promptea.api.models import EvaluateRequest, EvaluationResponse
from promptea.core.evaluator import (
    ChallengeEvaluator,
    Criterion,
    get_evaluator,
    points_earned,
)
from promptea.core.library import (
    ChallengeSubmissionStore,
    PointsLedger,
    get_optional_points_ledger,
    get_optional_submission_store,
    require_uuid,
)
from promptea.errors import ConfigurationError

router = APIRouter()


@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_challenge(
    data: EvaluateRequest,
    evaluator: ChallengeEvaluator = Depends(get_evaluator),
    ledger: PointsLedger | None = Depends(get_optional_points_ledger),
    submissions: ChallengeSubmissionStore | None = Depends(get_optional_submission_store),
) -> EvaluationResponse:
    """Grade a challenge submission and, for a known user, record it and award points."""
    user_id = None
    if data.user_id:
        # Grading without a user works without Supabase; with one it is required.
        if ledger is None or submissions is None:
            raise ConfigurationError(["SUPABASE_URL", "SUPABASE_KEY"])
        try:
            user_id = require_uuid(data.user_id)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    submission = None
    if user_id and data.challenge_id:
        submission = submissions.submit(user_id, data.challenge_id, data.prompt)

    criteria = [
        Criterion(name=c.name, weight=c.weight, description=c.description) for c in data.criteria
    ]
    evaluation = await evaluator.evaluate(data.prompt, criteria)
    earned = points_earned(data.max_points, evaluation.overall_score)

    if submission is not None:
        submissions.record_evaluation(
            submission["id"],
            overall_score=evaluation.overall_score,
            criteria_scores=evaluation.criteria_scores,
            ai_feedback=evaluation.feedback,
            points_earned=earned,
        )

    transaction_id = None
    if user_id:
        title = data.challenge_title or data.challenge_id or "challenge"
        row = ledger.add_points(
            user_id=user_id,
            points=earned,
            transaction_type="earned",
            source_type="challenge",
            source_id=None,
            title=f"Completed {title}",
            description=f"Scored {evaluation.overall_score}/100"
            + (f" on {data.difficulty} challenge" if data.difficulty else ""),
            metadata={
                "challenge_id": data.challenge_id,
                "challenge_title": data.challenge_title,
                "difficulty": data.difficulty,
                "score": evaluation.overall_score,
                "criteria_scores": evaluation.criteria_scores,
                "prompt_text": data.prompt,
            },
        )
        transaction_id = str(row.get("id")) if row.get("id") is not None else None

    return EvaluationResponse(
        overall_score=evaluation.overall_score,
        criteria_scores=evaluation.criteria_scores,
        feedback=evaluation.feedback,
        suggestions=evaluation.suggestions,
        points_earned=earned,
        transaction_id=transaction_id,
        submission_id=str(submission["id"]) if submission is not None else None,
    )
