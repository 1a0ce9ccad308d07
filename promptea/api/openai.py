"""OpenAI pass-through endpoints.

The request body is forwarded untouched and the upstream status and JSON come
back unchanged, error bodies included.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from promptea.gateways.openai import (
    ChatGateway,
    EmbeddingGateway,
    get_chat_gateway,
    get_embedding_gateway,
)

router = APIRouter()


@router.post("/chat/completions")
async def chat_completions(
    body: Any = Body(...),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> JSONResponse:
    status_code, data = await gateway.forward("chat/completions", body)
    return JSONResponse(status_code=status_code, content=data)


@router.post("/embeddings")
async def embeddings(
    body: Any = Body(...),
    gateway: EmbeddingGateway = Depends(get_embedding_gateway),
) -> JSONResponse:
    status_code, data = await gateway.forward("embeddings", body)
    return JSONResponse(status_code=status_code, content=data)
