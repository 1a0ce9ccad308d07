"""Per-user saved prompts and points endpoints (Supabase-backed)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from promptea.api.models import (
    PointsCreate,
    PointsSummaryResponse,
    SavedPromptCreate,
    SavedStatusResponse,
)
from promptea.core.library import (
    PointsLedger,
    SavedPromptStore,
    get_points_ledger,
    get_saved_prompt_store,
    require_uuid,
)

router = APIRouter()


def valid_user_id(user_id: str) -> str:
    """Path ``user_id`` as a normalized UUID; anything else is a 422."""
    try:
        return require_uuid(user_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# --- Saved prompts ---


@router.get("/{user_id}/saved-prompts")
async def list_saved_prompts(
    user_id: str = Depends(valid_user_id),
    store: SavedPromptStore = Depends(get_saved_prompt_store),
) -> list[dict[str, Any]]:
    """A user's saved prompts, newest first."""
    return store.list_saved(user_id)


@router.get("/{user_id}/saved-prompts/{prompt_id}", response_model=SavedStatusResponse)
async def saved_status(
    prompt_id: str,
    user_id: str = Depends(valid_user_id),
    store: SavedPromptStore = Depends(get_saved_prompt_store),
) -> SavedStatusResponse:
    return SavedStatusResponse(saved=store.is_saved(user_id, prompt_id))


@router.put("/{user_id}/saved-prompts/{prompt_id}")
async def save_prompt(
    prompt_id: str,
    data: SavedPromptCreate,
    user_id: str = Depends(valid_user_id),
    store: SavedPromptStore = Depends(get_saved_prompt_store),
) -> dict[str, Any]:
    """Save a prompt; saving it again updates title, text, description and notes."""
    return store.save(user_id=user_id, prompt_id=prompt_id, **data.model_dump())


@router.delete("/{user_id}/saved-prompts/{prompt_id}", status_code=204)
async def unsave_prompt(
    prompt_id: str,
    user_id: str = Depends(valid_user_id),
    store: SavedPromptStore = Depends(get_saved_prompt_store),
) -> None:
    store.unsave(user_id, prompt_id)


# --- Points ---


@router.get("/{user_id}/points", response_model=PointsSummaryResponse)
async def points_summary(
    user_id: str = Depends(valid_user_id),
    limit: int = Query(default=20, ge=1, le=100),
    ledger: PointsLedger = Depends(get_points_ledger),
) -> PointsSummaryResponse:
    """Total points and the most recent point-earning activity."""
    return PointsSummaryResponse(
        total_points=ledger.total_points(user_id),
        recent=ledger.recent_activity(user_id, limit=limit),
    )


@router.post("/{user_id}/points", status_code=201)
async def add_points(
    data: PointsCreate,
    user_id: str = Depends(valid_user_id),
    ledger: PointsLedger = Depends(get_points_ledger),
) -> dict[str, Any]:
    """Record a point transaction."""
    try:
        return ledger.add_points(user_id=user_id, **data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
