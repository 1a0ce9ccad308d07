"""Prompt refinement endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from promptea.api.models import RefineRequest, RefineResponse
from promptea.core.refiner import PromptRefiner, get_refiner

router = APIRouter()


@router.post("/refine", response_model=RefineResponse)
async def refine_prompt(
    data: RefineRequest,
    refiner: PromptRefiner = Depends(get_refiner),
) -> RefineResponse:
    """Rewrite a prompt in the requested mode (primer by default)."""
    try:
        refined = await refiner.refine(data.prompt, data.mode)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return RefineResponse(refined=refined)
