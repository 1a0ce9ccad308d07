"""Prompt Search Service: semantic search, browsing, similar prompts and stats counters."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import structlog

from promptea.core.filters import Condition, build_filter
from promptea.errors import NotFoundError
from promptea.gateways.openai import EmbeddingGateway, get_embedding_gateway
from promptea.gateways.vector_store import (
    VectorStoreGateway,
    get_vector_store,
    to_point_id,
)

logger = structlog.get_logger()

DEFAULT_LIMIT = 20
DEFAULT_THRESHOLD = 0.3
DEFAULT_SIMILAR_LIMIT = 5
DEFAULT_FEATURED_LIMIT = 10

STAR_ACTIONS = {"star"}
USE_ACTIONS = {"use", "copy"}


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def searchable_text(document: dict[str, Any]) -> str:
    """Text the embedding of a prompt document is derived from."""
    return f"{document.get('title', '')} {document.get('description', '')} {document.get('prompt', '')}"


@dataclass
class SearchPage:
    """A page of prompts.

    ``total`` is the size of this page, not a corpus count, and ``has_more``
    is true whenever the page is full, even if it happens to be the last one.
    """

    prompts: list[dict[str, Any]] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT

    @property
    def total(self) -> int:
        return len(self.prompts)

    @property
    def has_more(self) -> bool:
        return len(self.prompts) == self.limit


class PromptSearchService:
    """Orchestrates the filter builder, embedding gateway and vector store gateway."""

    def __init__(self, store: VectorStoreGateway, embedder: EmbeddingGateway) -> None:
        self.store = store
        self.embedder = embedder

    async def search(
        self,
        query: str | None = None,
        category: str | None = None,
        tags: list[str] | None = None,
        difficulty: str | None = None,
        featured: bool | None = None,
        contributor: str | None = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> SearchPage:
        """Semantic search when ``query`` is non-blank, filter-only browse otherwise."""
        conditions = build_filter(
            category=category,
            tags=tags,
            difficulty=difficulty,
            featured=featured,
            contributor=contributor,
        )
        text = (query or "").strip()

        if text:
            logger.info("search.semantic", query=text, filters=len(conditions), limit=limit)
            vector = await self.embedder.embed(text)
            hits = await self.store.search(
                vector=vector,
                limit=limit,
                offset=offset,
                score_threshold=threshold,
                filter=conditions or None,
            )
            prompts = [{"id": h.id, **h.payload, "score": h.score} for h in hits]
        else:
            logger.info("search.browse", filters=len(conditions), limit=limit, offset=offset)
            prompts = await self._browse(conditions, limit, offset)

        return SearchPage(prompts=prompts, limit=limit)

    async def _browse(
        self, conditions: list[Condition], limit: int, offset: int | str | None
    ) -> list[dict[str, Any]]:
        page = await self.store.scroll(filter=conditions or None, limit=limit, offset=offset)
        return [{"id": p.id, **p.payload} for p in page.points]

    async def featured(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[dict[str, Any]]:
        """Prompts flagged as featured, in store order."""
        return await self._browse(build_filter(featured=True), limit, 0)

    async def by_category(
        self, category: str, limit: int = DEFAULT_LIMIT, offset: int = 0
    ) -> SearchPage:
        """Browse one category; ``"all"`` browses the whole library."""
        conditions = build_filter(category=category)
        prompts = await self._browse(conditions, limit, offset)
        return SearchPage(prompts=prompts, limit=limit)

    async def similar(self, id: str, limit: int = DEFAULT_SIMILAR_LIMIT) -> list[dict[str, Any]]:
        """Nearest neighbours of a stored prompt, excluding itself. Unknown id gives []."""
        targets = await self.store.retrieve([id], with_vector=True)
        if not targets or targets[0].vector is None:
            logger.info("search.similar_target_missing", id=id)
            return []

        target = targets[0]
        hits = await self.store.search(
            vector=target.vector,
            limit=limit + 1,
            offset=0,
            score_threshold=0,
            filter=None,
        )
        neighbours = [h for h in hits if h.id != target.id and h.id != str(id)][:limit]
        return [{"id": h.id, **h.payload, "score": h.score} for h in neighbours]

    async def update_stats(self, id: str, action: str) -> dict[str, Any]:
        """Increment a counter for ``action`` and refresh ``updatedAt``.

        Read-then-write without concurrency control: two concurrent updates of
        the same prompt can lose an increment. Unrecognised actions only touch
        ``updatedAt``.
        """
        current = await self.store.retrieve([id])
        if not current:
            raise NotFoundError("Prompt not found")

        payload = current[0].payload
        updates: dict[str, Any] = {"updatedAt": utc_timestamp()}
        if action in STAR_ACTIONS:
            updates["stars"] = (payload.get("stars") or 0) + 1
        elif action in USE_ACTIONS:
            updates["uses"] = (payload.get("uses") or 0) + 1

        await self.store.set_payload(current[0].id, updates)
        logger.info("stats.updated", id=id, action=action, fields=sorted(updates))
        return updates

    async def index_prompt(self, document: dict[str, Any]) -> str:
        """Embed and upsert a full prompt document; returns its id.

        The id must be a UUID or an unsigned integer; without one a UUID is generated.
        """
        now = utc_timestamp()
        payload = {
            "stars": 0,
            "uses": 0,
            "featured": False,
            "tags": [],
            "createdAt": now,
            **document,
            "updatedAt": now,
        }
        payload["id"] = str(payload.get("id") or uuid.uuid4())
        if to_point_id(payload["id"]) is None:
            raise ValueError(f"Prompt id must be a UUID or unsigned integer: {payload['id']}")
        vector = await self.embedder.embed(searchable_text(payload))
        await self.store.upsert(payload["id"], vector, payload)
        logger.info("prompt.indexed", id=payload["id"], title=payload.get("title"))
        return payload["id"]


@lru_cache
def get_search_service() -> PromptSearchService:
    """Get cached search service instance."""
    return PromptSearchService(get_vector_store(), get_embedding_gateway())
