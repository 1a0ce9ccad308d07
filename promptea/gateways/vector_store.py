"""Vector Store Gateway: thin async wrapper around the Qdrant prompts collection."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import structlog
from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qdrant_models

from promptea.config import get_settings
from promptea.core.filters import Condition
from promptea.errors import UpstreamError

logger = structlog.get_logger()

# Payload fields indexed for filtering, with their Qdrant schema type.
PAYLOAD_INDEXES = {
    "category": qdrant_models.PayloadSchemaType.KEYWORD,
    "tags": qdrant_models.PayloadSchemaType.KEYWORD,
    "difficulty": qdrant_models.PayloadSchemaType.KEYWORD,
    "featured": qdrant_models.PayloadSchemaType.BOOL,
}


@dataclass
class ScoredPrompt:
    """A search hit: id, similarity score (vendor-defined, never renormalised) and payload."""

    id: str
    score: float
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class StoredPrompt:
    """A point read back from the store, optionally with its vector."""

    id: str
    payload: dict[str, Any] = field(default_factory=dict)
    vector: list[float] | None = None


@dataclass
class ScrollPage:
    """One page of filter-only browsing."""

    points: list[StoredPrompt]
    next_offset: str | None = None


def to_point_id(value: Any) -> int | str | None:
    """Normalise an external id to a Qdrant point id, or None if it can never exist.

    Qdrant accepts unsigned integers and UUIDs only; anything else would be
    rejected by the store with a 400, which callers treat as "unknown id".
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value >= 0 else None
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    try:
        return str(uuid.UUID(text))
    except ValueError:
        return None


def to_filter(conditions: list[Condition] | None) -> qdrant_models.Filter | None:
    """Translate conditions into a ``must`` filter; no conditions means no filter at all."""
    if not conditions:
        return None
    must: list[qdrant_models.Condition] = []
    for condition in conditions:
        if condition.is_any:
            match = qdrant_models.MatchAny(any=list(condition.any_of))
        else:
            match = qdrant_models.MatchValue(value=condition.value)
        must.append(qdrant_models.FieldCondition(key=condition.key, match=match))
    return qdrant_models.Filter(must=must)


def _vector_of(record: Any) -> list[float] | None:
    vector = getattr(record, "vector", None)
    if isinstance(vector, dict):
        # Named vectors: the collection uses a single unnamed vector.
        vector = next(iter(vector.values()), None)
    return list(vector) if vector is not None else None


class VectorStoreGateway:
    """Pass-through operations on one fixed collection. Store failures become UpstreamError."""

    def __init__(self, client: AsyncQdrantClient, collection_name: str = "prompts") -> None:
        self._client = client
        self.collection_name = collection_name

    @asynccontextmanager
    async def _call(self, operation: str, **context: Any):
        try:
            yield
        except UpstreamError:
            raise
        except Exception as e:
            logger.error(
                "qdrant.call_failed",
                operation=operation,
                collection=self.collection_name,
                error=str(e),
                **context,
            )
            status = getattr(e, "status_code", None)
            raise UpstreamError(f"Vector store {operation} failed: {e}", status_code=status) from e

    async def search(
        self,
        vector: list[float],
        limit: int = 20,
        offset: int = 0,
        score_threshold: float | None = None,
        filter: list[Condition] | None = None,
    ) -> list[ScoredPrompt]:
        """Similarity search, ordered by descending score."""
        async with self._call("search", limit=limit, offset=offset):
            response = await self._client.query_points(
                collection_name=self.collection_name,
                query=vector,
                query_filter=to_filter(filter),
                limit=limit,
                offset=offset,
                score_threshold=score_threshold,
                with_payload=True,
                with_vectors=False,
            )
        return [
            ScoredPrompt(id=str(point.id), score=point.score, payload=point.payload or {})
            for point in response.points
        ]

    async def scroll(
        self,
        filter: list[Condition] | None = None,
        limit: int = 20,
        offset: int | str | None = None,
    ) -> ScrollPage:
        """Filter-only browsing in store-internal order."""
        start = to_point_id(offset) if offset else None
        async with self._call("scroll", limit=limit):
            records, next_offset = await self._client.scroll(
                collection_name=self.collection_name,
                scroll_filter=to_filter(filter),
                limit=limit,
                offset=start,
                with_payload=True,
                with_vectors=False,
            )
        return ScrollPage(
            points=[StoredPrompt(id=str(r.id), payload=r.payload or {}) for r in records],
            next_offset=str(next_offset) if next_offset is not None else None,
        )

    async def retrieve(self, ids: list[Any], with_vector: bool = False) -> list[StoredPrompt]:
        """Fetch points by id. Unknown or malformed ids simply yield no result."""
        point_ids = [pid for pid in (to_point_id(i) for i in ids) if pid is not None]
        if not point_ids:
            return []
        async with self._call("retrieve", ids=point_ids):
            records = await self._client.retrieve(
                collection_name=self.collection_name,
                ids=point_ids,
                with_payload=True,
                with_vectors=with_vector,
            )
        return [
            StoredPrompt(
                id=str(r.id),
                payload=r.payload or {},
                vector=_vector_of(r) if with_vector else None,
            )
            for r in records
        ]

    async def set_payload(self, id: Any, payload: dict[str, Any]) -> None:
        """Merge fields into an existing payload. Never use for title/description/prompt."""
        async with self._call("set_payload", id=id):
            await self._client.set_payload(
                collection_name=self.collection_name,
                payload=payload,
                points=[to_point_id(id)],
                wait=True,
            )

    async def upsert(self, id: Any, vector: list[float], payload: dict[str, Any]) -> None:
        """Insert or replace a point together with its embedding."""
        async with self._call("upsert", id=id):
            await self._client.upsert(
                collection_name=self.collection_name,
                points=[qdrant_models.PointStruct(id=to_point_id(id), vector=vector, payload=payload)],
                wait=True,
            )

    async def delete(self, ids: list[Any]) -> None:
        """Delete points by id."""
        point_ids = [pid for pid in (to_point_id(i) for i in ids) if pid is not None]
        if not point_ids:
            return
        async with self._call("delete", ids=point_ids):
            await self._client.delete(
                collection_name=self.collection_name,
                points_selector=qdrant_models.PointIdsList(points=point_ids),
            )

    async def get_collection_info(self) -> dict[str, Any]:
        """Collection metadata (point count, vector config) as plain JSON data."""
        async with self._call("get_collection"):
            info = await self._client.get_collection(collection_name=self.collection_name)
        return info.model_dump(mode="json")

    async def ensure_collection(self, vector_size: int = 1536) -> bool:
        """Create the collection and its payload indexes if missing. Returns True if created."""
        async with self._call("ensure_collection"):
            if await self._client.collection_exists(collection_name=self.collection_name):
                return False
            await self._client.create_collection(
                collection_name=self.collection_name,
                vectors_config=qdrant_models.VectorParams(
                    size=vector_size,
                    distance=qdrant_models.Distance.COSINE,
                ),
            )
            for field_name, schema in PAYLOAD_INDEXES.items():
                await self._client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=schema,
                )
        logger.info("qdrant.collection_created", collection=self.collection_name, size=vector_size)
        return True

    async def close(self) -> None:
        await self._client.close()


@lru_cache
def get_vector_store() -> VectorStoreGateway:
    """Get cached vector store gateway instance."""
    settings = get_settings()
    client = AsyncQdrantClient(
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key or None,
        timeout=int(settings.request_timeout),
    )
    logger.info("qdrant.connected", url=settings.qdrant_url, collection=settings.collection_name)
    return VectorStoreGateway(client, collection_name=settings.collection_name)
