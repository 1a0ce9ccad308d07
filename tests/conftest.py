"""Test fixtures: in-memory vector store, fake OpenAI gateways, mock Supabase client."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from promptea.core.filters import Condition
from promptea.db.client import SupabaseClient
from promptea.errors import UpstreamError
from promptea.gateways.vector_store import ScoredPrompt, ScrollPage, StoredPrompt

CODE_VECTOR = [1.0, 0.0, 0.0, 0.0]
WRITING_VECTOR = [0.0, 1.0, 0.0, 0.0]
FAR_VECTOR = [0.0, 0.0, 1.0, 0.0]

USER_ID = "5f0c7a52-1f4e-4b8e-9d38-0a3f2f4b6c11"


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeVectorStore:
    """In-memory stand-in for VectorStoreGateway with cosine scoring.

    Records the filter of every search/scroll call and every payload write so
    tests can assert on what would have been sent to the store.
    """

    def __init__(self) -> None:
        self.points: dict[str, dict[str, Any]] = {}
        self.filters: list[list[Condition] | None] = []
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.search_calls: list[dict[str, Any]] = []
        self.collection_name = "prompts"
        self.fail_with: Exception | None = None

    def add(self, id: str, vector: list[float], **payload: Any) -> None:
        self.points[str(id)] = {"vector": vector, "payload": {"id": str(id), **payload}}

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _matching(self, filter: list[Condition] | None):
        for id, point in self.points.items():
            if all(c.matches(point["payload"]) for c in filter or []):
                yield id, point

    @property
    def last_filter(self) -> list[Condition] | None:
        return self.filters[-1] if self.filters else None

    async def search(self, vector, limit=20, offset=0, score_threshold=None, filter=None):
        self._check()
        self.filters.append(filter)
        self.search_calls.append(
            {"limit": limit, "offset": offset, "score_threshold": score_threshold}
        )
        hits = [
            ScoredPrompt(id=id, score=_cosine(vector, p["vector"]), payload=dict(p["payload"]))
            for id, p in self._matching(filter)
        ]
        if score_threshold is not None:
            hits = [h for h in hits if h.score >= score_threshold]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[offset : offset + limit]

    async def scroll(self, filter=None, limit=20, offset=None):
        self._check()
        self.filters.append(filter)
        ids = [id for id, _ in self._matching(filter)]
        start = ids.index(str(offset)) if offset and str(offset) in ids else 0
        page = ids[start : start + limit]
        rest = ids[start + limit :]
        return ScrollPage(
            points=[StoredPrompt(id=id, payload=dict(self.points[id]["payload"])) for id in page],
            next_offset=rest[0] if rest else None,
        )

    async def retrieve(self, ids, with_vector=False):
        self._check()
        return [
            StoredPrompt(
                id=str(id),
                payload=dict(self.points[str(id)]["payload"]),
                vector=list(self.points[str(id)]["vector"]) if with_vector else None,
            )
            for id in ids
            if str(id) in self.points
        ]

    async def set_payload(self, id, payload):
        self._check()
        self.writes.append((str(id), dict(payload)))
        self.points[str(id)]["payload"].update(payload)

    async def upsert(self, id, vector, payload):
        self._check()
        self.writes.append((str(id), dict(payload)))
        self.points[str(id)] = {"vector": vector, "payload": dict(payload)}

    async def delete(self, ids):
        for id in ids:
            self.points.pop(str(id), None)

    async def get_collection_info(self):
        self._check()
        return {"status": "green", "points_count": len(self.points)}

    async def ensure_collection(self, vector_size=1536):
        return False

    async def close(self):
        pass


class FakeEmbeddingGateway:
    """Maps text onto fixed vectors by keyword; unknown text lands far from everything."""

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = vectors or {"code": CODE_VECTOR, "writ": WRITING_VECTOR}
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        lowered = text.lower()
        for keyword, vector in self.vectors.items():
            if keyword in lowered:
                return vector
        return [0.0, 0.0, 0.0, 1.0]


class FakeChatGateway:
    """Returns canned replies in order and records the messages it was sent."""

    def __init__(self, replies: list[str] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[dict[str, Any]] = []

    async def complete(self, messages, temperature=0.3, max_tokens=1000, model=None) -> str:
        self.calls.append(
            {
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "model": model,
            }
        )
        if not self.replies:
            raise UpstreamError("no canned reply")
        return self.replies.pop(0)


class MockSupabaseClient(SupabaseClient):
    """In-memory mock of the Supabase client for testing.

    Every select is recorded in ``queries`` so tests can check which filters,
    ordering and limit were handed to the database.
    """

    def __init__(self):
        self._client = MagicMock()
        self._tables: dict[str, list[dict[str, Any]]] = {
            "saved_prompts": [],
            "point_transactions": [],
            "challenge_submissions": [],
        }
        self._clock = 0
        self.queries: list[dict[str, Any]] = []

    def _stamp(self) -> str:
        # Strictly increasing so created_at ordering is deterministic.
        self._clock += 1
        return datetime.fromtimestamp(1_700_000_000 + self._clock, timezone.utc).isoformat()

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        now = self._stamp()
        record = {"id": str(uuid4()), "created_at": now, "updated_at": now, **data}
        self._tables.setdefault(table, []).append(record)
        return record

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        for row in self._tables.get(table, []):
            if row["id"] == id:
                row.update(data)
                row["updated_at"] = self._stamp()
                return row
        raise IndexError(f"no {table} row with id {id}")

    def upsert(self, table: str, data: dict[str, Any], on_conflict: str) -> dict[str, Any]:
        keys = [k.strip() for k in on_conflict.split(",")]
        for row in self._tables.setdefault(table, []):
            if all(row.get(k) == data.get(k) for k in keys):
                row.update(data)
                row["updated_at"] = self._stamp()
                return row
        return self.insert(table, data)

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        gt: dict[str, Any] | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        self.queries.append(
            {
                "table": table,
                "filters": filters,
                "gt": gt,
                "order_by": order_by,
                "ascending": ascending,
                "limit": limit,
                "columns": columns,
            }
        )
        rows = self._tables.get(table, [])
        if filters:
            for key, value in filters.items():
                rows = [r for r in rows if r.get(key) == value]
        if gt:
            for key, value in gt.items():
                rows = [r for r in rows if r.get(key) is not None and r[key] > value]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by, 0), reverse=not ascending)
        if limit:
            rows = rows[:limit]
        if columns != "*":
            names = [c.strip() for c in columns.split(",")]
            rows = [{k: r.get(k) for k in names} for r in rows]
        return rows

    def delete_where(self, table: str, filters: dict[str, Any]) -> None:
        self._tables[table] = [
            r
            for r in self._tables.get(table, [])
            if not all(r.get(k) == v for k, v in filters.items())
        ]


@pytest.fixture
def store() -> FakeVectorStore:
    """Fresh vector store seeded with a few library prompts."""
    s = FakeVectorStore()
    s.add(
        "abc123",
        CODE_VECTOR,
        title="Code Review Assistant",
        description="Reviews pull requests",
        prompt="Review this code for bugs.",
        category="coding",
        tags=["review", "python"],
        difficulty="intermediate",
        featured=True,
        stars=3,
        uses=10,
        updatedAt="2024-01-01T00:00:00.000Z",
    )
    s.add(
        "def456",
        WRITING_VECTOR,
        title="Blog Post Outliner",
        description="Outlines articles",
        prompt="Outline a blog post about {topic}.",
        category="writing",
        tags=["blog"],
        difficulty="beginner",
        featured=False,
        stars=0,
        uses=0,
    )
    s.add(
        "ghi789",
        [0.9, 0.1, 0.0, 0.0],
        title="Refactoring Coach",
        description="Suggests refactors",
        prompt="Suggest refactors.",
        category="coding",
        tags=["refactor"],
        difficulty="advanced",
        featured=False,
        stars=1,
        uses=2,
    )
    return s


@pytest.fixture
def embedder() -> FakeEmbeddingGateway:
    return FakeEmbeddingGateway()


@pytest.fixture
def chat() -> FakeChatGateway:
    return FakeChatGateway()


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """Fresh mock database for each test."""
    return MockSupabaseClient()


@pytest.fixture
def app(store, embedder, chat, mock_db):
    """FastAPI test app with mocked dependencies."""
    from promptea.core.evaluator import ChallengeEvaluator, get_evaluator
    from promptea.core.library import (
        ChallengeSubmissionStore,
        PointsLedger,
        SavedPromptStore,
        get_optional_points_ledger,
        get_optional_submission_store,
        get_points_ledger,
        get_saved_prompt_store,
    )
    from promptea.core.refiner import PromptRefiner, get_refiner
    from promptea.core.search import PromptSearchService, get_search_service
    from promptea.gateways.vector_store import get_vector_store
    from promptea.main import app as _app

    service = PromptSearchService(store, embedder)

    _app.dependency_overrides[get_search_service] = lambda: service
    _app.dependency_overrides[get_vector_store] = lambda: store
    _app.dependency_overrides[get_evaluator] = lambda: ChallengeEvaluator(chat)
    _app.dependency_overrides[get_refiner] = lambda: PromptRefiner(chat)
    _app.dependency_overrides[get_saved_prompt_store] = lambda: SavedPromptStore(mock_db)
    _app.dependency_overrides[get_points_ledger] = lambda: PointsLedger(mock_db)
    _app.dependency_overrides[get_optional_points_ledger] = lambda: PointsLedger(mock_db)
    _app.dependency_overrides[get_optional_submission_store] = (
        lambda: ChallengeSubmissionStore(mock_db)
    )

    yield _app

    _app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """Test client (lifespan not started, so no credentials are required)."""
    return TestClient(app)
