"""FastAPI application entry point."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from promptea.api.health import health
from promptea.api.models import HealthResponse
from promptea.api.router import api_router
from promptea.config import get_settings
from promptea.errors import PrompteaError
from promptea.gateways.openai import get_http_client
from promptea.gateways.vector_store import get_vector_store
from promptea.utils.logging import setup_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)

    # Refuse to start without Qdrant and OpenAI credentials.
    settings.validate_required()

    store = get_vector_store()
    http = get_http_client()
    logger.info(
        "promptea.starting",
        port=settings.port,
        environment=settings.environment,
        collection=settings.collection_name,
        supabase=settings.supabase_configured,
    )

    yield

    await http.aclose()
    await store.close()
    logger.info("promptea.shutdown")


app = FastAPI(
    title="Promptea",
    description="Semantic prompt search and OpenAI proxy for the Promptea frontend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "http.request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return response


@app.exception_handler(PrompteaError)
async def promptea_error_handler(request: Request, exc: PrompteaError) -> JSONResponse:
    logger.error(
        "request.failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request.unhandled", path=request.url.path, error=str(exc), exc_info=True)
    message = str(exc) if get_settings().is_development else "Internal server error"
    return JSONResponse(status_code=500, content={"error": message})


app.include_router(api_router, prefix="/api")

app.add_api_route(
    "/health", health, methods=["GET"], response_model=HealthResponse, tags=["health"]
)
