"""Pydantic request/response models for the API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from promptea.gateways.vector_store import to_point_id


# --- Prompts ---


class PromptDocument(BaseModel):
    """A library prompt as stored in the vector store payload (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = None
    title: str = Field(..., min_length=1)
    description: str
    prompt: str = Field(..., min_length=1)
    category: str
    tags: list[str] = Field(default_factory=list)
    difficulty: str = Field(default="beginner", pattern=r"^(beginner|intermediate|advanced)$")
    contributor: str | None = None
    featured: bool = False
    stars: int = Field(default=0, ge=0)
    uses: int = Field(default=0, ge=0)
    estimated_time: str | None = Field(default=None, alias="estimatedTime")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _point_id(cls, value: object) -> str | None:
        # The vector store only accepts UUIDs and unsigned integers as point ids.
        if value is None:
            return None
        if to_point_id(value) is None:
            raise ValueError(f"id must be a UUID or unsigned integer, got {value!r}")
        return str(value)


class SearchRequest(BaseModel):
    """Semantic search when ``query`` is non-blank, filtered browsing otherwise."""

    query: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    difficulty: str | None = None
    featured: bool | None = None
    contributor: str | None = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    threshold: float = 0.3


class SearchResponse(BaseModel):
    """A page of prompts. ``total`` is the page size; ``hasMore`` means the page is full."""

    model_config = ConfigDict(populate_by_name=True)

    prompts: list[dict[str, Any]]
    total: int
    has_more: bool = Field(alias="hasMore")


class StatsUpdateRequest(BaseModel):
    """Counter action: ``star``, ``use`` or ``copy``. Anything else only touches updatedAt."""

    action: str


class StatsUpdateResponse(BaseModel):
    success: bool
    updates: dict[str, Any]


# --- Health ---


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str


# --- Challenges ---


class CriterionModel(BaseModel):
    name: str = Field(..., min_length=1)
    weight: float = Field(..., gt=0)
    description: str = ""


class EvaluateRequest(BaseModel):
    """Grade a prompt written for a challenge."""

    prompt: str = Field(..., min_length=1)
    criteria: list[CriterionModel] = Field(..., min_length=1)
    challenge_id: str | None = None
    challenge_title: str | None = None
    difficulty: str | None = None
    max_points: int = Field(default=0, ge=0)
    user_id: str | None = None


class EvaluationResponse(BaseModel):
    overall_score: int
    criteria_scores: dict[str, Any]
    feedback: str
    suggestions: list[str]
    points_earned: int
    transaction_id: str | None = None
    submission_id: str | None = None


# --- Saved prompts ---


class SavedPromptCreate(BaseModel):
    prompt_title: str = Field(..., min_length=1)
    prompt_text: str = Field(..., min_length=1)
    prompt_description: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    folder_name: str | None = None
    user_notes: str | None = None


class SavedStatusResponse(BaseModel):
    saved: bool


# --- Points ---


class PointsCreate(BaseModel):
    points: int
    transaction_type: str = Field(
        default="earned", pattern=r"^(earned|bonus|penalty|refund|adjustment)$"
    )
    source_type: str = Field(
        ...,
        pattern=r"^(challenge|practice|achievement|streak|referral|admin|course|daily_login)$",
    )
    title: str = Field(..., min_length=1)
    source_id: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None


class PointsSummaryResponse(BaseModel):
    total_points: int
    recent: list[dict[str, Any]]


# --- Refine ---


class RefineRequest(BaseModel):
    """Rewrite ``prompt`` in one of the refine modes."""

    prompt: str = Field(..., min_length=1)
    mode: str = Field(default="primer", pattern=r"^(primer|mastermind|amplifier|json)$")


class RefineResponse(BaseModel):
    refined: str
