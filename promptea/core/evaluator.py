"""Challenge Evaluator: grades a learner's prompt against weighted criteria via the chat API."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import structlog

from promptea.errors import ValidationError
from promptea.gateways.openai import ChatGateway, get_chat_gateway

logger = structlog.get_logger()

EVALUATOR_SYSTEM_PROMPT = (
    "You are an expert prompt engineering evaluator. "
    "Provide detailed, constructive feedback on prompt quality."
)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class Criterion:
    """One weighted grading criterion; ``weight`` is a percentage-like share."""

    name: str
    weight: float
    description: str = ""


@dataclass
class Evaluation:
    """Graded result. ``overall_score`` is 0-100, criteria scores are 1-10."""

    overall_score: int
    criteria_scores: dict[str, float] = field(default_factory=dict)
    feedback: str = ""
    suggestions: list[str] = field(default_factory=list)


def parse_json_reply(text: str) -> dict[str, Any]:
    """Extract the JSON object from a model reply, tolerating markdown fences.

    Raises ValidationError when no object can be decoded.
    """
    fenced = _FENCE.search(text or "")
    candidate = fenced.group(1) if fenced else (text or "")
    match = _OBJECT.search(candidate)
    if not match:
        raise ValidationError("Invalid evaluation response format: no JSON object found", raw=text)
    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid evaluation response format: {e.msg}", raw=text) from e
    if not isinstance(data, dict):
        raise ValidationError("Invalid evaluation response format: expected an object", raw=text)
    return data


def weighted_score(criteria: list[Criterion], scores: dict[str, Any]) -> int:
    """Weighted 0-100 score from 1-10 criterion scores; missing criteria count as 0."""
    total_weight = sum(c.weight for c in criteria)
    if total_weight <= 0:
        return 0
    weighted = 0.0
    for criterion in criteria:
        try:
            score = float(scores.get(criterion.name) or 0)
        except (TypeError, ValueError):
            score = 0.0
        weighted += (score / 10) * criterion.weight
    return math.floor(weighted / total_weight * 100 + 0.5)


def points_earned(max_points: int, overall_score: int) -> int:
    """Points awarded for a challenge: the score's share of the challenge's points."""
    return math.floor(max_points * overall_score / 100)


def build_evaluation_prompt(prompt: str, criteria: list[Criterion]) -> str:
    criteria_lines = "\n".join(f"- {c.name} ({c.weight:g}%): {c.description}" for c in criteria)
    score_lines = ",\n    ".join(f'"{c.name}": <score_out_of_10>' for c in criteria)
    return f"""Evaluate the following prompt based on the given criteria and provide detailed feedback.

PROMPT TO EVALUATE:
{prompt}

EVALUATION CRITERIA:
{criteria_lines}

Please provide your evaluation in the following JSON format:
{{
  "criteriaScores": {{
    {score_lines}
  }},
  "feedback": "Overall feedback about the prompt quality and effectiveness",
  "suggestions": ["Specific suggestion 1", "Specific suggestion 2", "Specific suggestion 3"]
}}

Rate each criterion on a scale of 1-10, where:
- 1-3: Poor (major issues, doesn't meet requirements)
- 4-6: Fair (meets basic requirements but has significant room for improvement)
- 7-8: Good (meets requirements well with minor improvements needed)
- 9-10: Excellent (exceeds expectations, professional quality)

Be constructive and specific in your feedback and suggestions."""


class ChallengeEvaluator:
    """Sends a canned grading prompt to the chat model and scores the JSON reply."""

    def __init__(self, chat: ChatGateway) -> None:
        self.chat = chat

    async def evaluate(self, prompt: str, criteria: list[Criterion]) -> Evaluation:
        reply = await self.chat.complete(
            [
                {"role": "system", "content": EVALUATOR_SYSTEM_PROMPT},
                {"role": "user", "content": build_evaluation_prompt(prompt, criteria)},
            ],
            temperature=0.3,
            max_tokens=1000,
        )
        data = parse_json_reply(reply)

        scores = data.get("criteriaScores")
        if not isinstance(scores, dict):
            raise ValidationError("Evaluation reply is missing criteriaScores", raw=reply)

        evaluation = Evaluation(
            overall_score=weighted_score(criteria, scores),
            criteria_scores=scores,
            feedback=str(data.get("feedback") or ""),
            suggestions=[str(s) for s in data.get("suggestions") or []],
        )
        logger.info(
            "challenge.evaluated", criteria=len(criteria), overall_score=evaluation.overall_score
        )
        return evaluation


@lru_cache
def get_evaluator() -> ChallengeEvaluator:
    """Get cached evaluator instance."""
    return ChallengeEvaluator(get_chat_gateway())
