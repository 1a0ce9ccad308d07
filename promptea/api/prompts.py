"""Prompt library endpoints: search, browse, similar prompts and stats."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from promptea.api.models import (
    SearchRequest,
    SearchResponse,
    StatsUpdateRequest,
    StatsUpdateResponse,
)
from promptea.core.search import PromptSearchService, SearchPage, get_search_service

router = APIRouter()


def _page(page: SearchPage) -> SearchResponse:
    return SearchResponse(prompts=page.prompts, total=page.total, has_more=page.has_more)


@router.post("/search", response_model=SearchResponse)
async def search_prompts(
    data: SearchRequest,
    service: PromptSearchService = Depends(get_search_service),
) -> SearchResponse:
    """Semantic search, or filtered browsing when the query is blank."""
    page = await service.search(**data.model_dump())
    return _page(page)


@router.get("/featured")
async def featured_prompts(
    limit: int = Query(default=10, ge=1, le=100),
    service: PromptSearchService = Depends(get_search_service),
) -> list[dict[str, Any]]:
    """Featured prompts."""
    return await service.featured(limit=limit)


@router.get("/category/{category}", response_model=SearchResponse)
async def prompts_by_category(
    category: str,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: PromptSearchService = Depends(get_search_service),
) -> SearchResponse:
    """Browse a category; ``all`` lists every prompt."""
    page = await service.by_category(category, limit=limit, offset=offset)
    return _page(page)


@router.get("/{prompt_id}/similar")
async def similar_prompts(
    prompt_id: str,
    limit: int = Query(default=5, ge=1, le=50),
    service: PromptSearchService = Depends(get_search_service),
) -> list[dict[str, Any]]:
    """Prompts closest to the given one. Unknown ids yield an empty list."""
    return await service.similar(prompt_id, limit=limit)


@router.patch("/{prompt_id}/stats", response_model=StatsUpdateResponse)
async def update_prompt_stats(
    prompt_id: str,
    data: StatsUpdateRequest,
    service: PromptSearchService = Depends(get_search_service),
) -> StatsUpdateResponse:
    """Increment a usage counter."""
    updates = await service.update_stats(prompt_id, data.action)
    return StatsUpdateResponse(success=True, updates=updates)
