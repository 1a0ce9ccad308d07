"""Health and diagnostics endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from promptea.api.models import HealthResponse
from promptea.core.search import utc_timestamp
from promptea.gateways.vector_store import VectorStoreGateway, get_vector_store

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check; does not touch upstream services."""
    return HealthResponse(
        status="ok",
        message="Promptea API is running",
        timestamp=utc_timestamp(),
    )


@router.get("/health/collection")
async def collection_info(
    store: VectorStoreGateway = Depends(get_vector_store),
) -> dict[str, Any]:
    """Vector store collection metadata (point count, vector config)."""
    return await store.get_collection_info()
