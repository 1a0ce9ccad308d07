"""OpenAI gateways: embeddings, chat completions and the raw pass-through proxy.

All calls go through one shared ``httpx.AsyncClient``. Nothing is retried or
cached; every call is a fresh round-trip bounded by the client timeout.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import httpx
import structlog

from promptea.config import get_settings
from promptea.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _body_of(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"error": response.text}


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str):
            return error
    return fallback


class OpenAIGateway:
    """Shared plumbing: credential check, request, upstream error mapping."""

    def __init__(
        self,
        api_key: str,
        http: httpx.AsyncClient,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http = http

    def _require_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY")

    async def _send(self, path: str, body: Any) -> httpx.Response:
        self._require_key()
        try:
            return await self._http.post(
                f"{self.base_url}/{path.lstrip('/')}",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error("openai.transport_error", path=path, error=str(e))
            raise UpstreamError(f"OpenAI request to /{path} failed: {e}") from e

    async def forward(self, path: str, body: Any) -> tuple[int, Any]:
        """Relay a raw request body; return the upstream status and JSON unchanged."""
        response = await self._send(path, body)
        if response.is_error:
            logger.warning("openai.upstream_error", path=path, status=response.status_code)
        return response.status_code, _body_of(response)

    async def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST and return the JSON body; non-2xx raises UpstreamError."""
        response = await self._send(path, body)
        data = _body_of(response)
        if response.is_error:
            logger.warning(
                "openai.upstream_error", path=path, status=response.status_code, body=data
            )
            raise UpstreamError(
                f"OpenAI API error: {_error_message(data, response.reason_phrase)}",
                status_code=response.status_code,
                body=data,
            )
        return data


class EmbeddingGateway(OpenAIGateway):
    """Turns text into an embedding vector with a fixed model."""

    def __init__(
        self,
        api_key: str,
        http: httpx.AsyncClient,
        model: str = "text-embedding-3-small",
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        super().__init__(api_key, http, base_url)
        self.model = model

    async def embed(self, text: str) -> list[float]:
        data = await self.post("embeddings", {"input": text, "model": self.model})
        try:
            return data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("OpenAI embeddings response has no embedding", body=data) from e


class ChatGateway(OpenAIGateway):
    """Single-turn chat completions returning the assistant's text."""

    def __init__(
        self,
        api_key: str,
        http: httpx.AsyncClient,
        model: str = "gpt-4",
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        super().__init__(api_key, http, base_url)
        self.model = model

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        model: str | None = None,
    ) -> str:
        data = await self.post(
            "chat/completions",
            {
                "model": model or self.model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("OpenAI chat response has no message content", body=data) from e


@lru_cache
def get_http_client() -> httpx.AsyncClient:
    """Shared outbound HTTP client, closed in the application lifespan."""
    return httpx.AsyncClient(timeout=get_settings().request_timeout)


@lru_cache
def get_embedding_gateway() -> EmbeddingGateway:
    settings = get_settings()
    return EmbeddingGateway(
        settings.openai_api_key,
        get_http_client(),
        model=settings.embedding_model,
        base_url=settings.openai_base_url,
    )


@lru_cache
def get_chat_gateway() -> ChatGateway:
    settings = get_settings()
    return ChatGateway(
        settings.openai_api_key,
        get_http_client(),
        model=settings.chat_model,
        base_url=settings.openai_base_url,
    )
