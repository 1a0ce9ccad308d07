"""API client for the Promptea REST API."""

from __future__ import annotations

from typing import Any

import httpx


class PrompteaClient:
    """HTTP client wrapping the Promptea API endpoints."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=f"{self.base_url}/api", timeout=timeout)

    def _handle(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("error", resp.text)
            except ValueError:
                detail = resp.text
            raise RuntimeError(f"API error ({resp.status_code}): {detail}")
        return resp.json()

    def health(self) -> dict:
        return self._handle(self._client.get("/health"))

    def collection_info(self) -> dict:
        return self._handle(self._client.get("/health/collection"))

    # --- Prompts ---

    def search(self, query: str | None = None, **filters: Any) -> dict:
        body = {k: v for k, v in filters.items() if v is not None}
        if query:
            body["query"] = query
        return self._handle(self._client.post("/prompts/search", json=body))

    def featured(self, limit: int = 10) -> list[dict]:
        return self._handle(self._client.get("/prompts/featured", params={"limit": limit}))

    def by_category(self, category: str, limit: int = 20, offset: int = 0) -> dict:
        return self._handle(self._client.get(
            f"/prompts/category/{category}",
            params={"limit": limit, "offset": offset},
        ))

    def similar(self, prompt_id: str, limit: int = 5) -> list[dict]:
        return self._handle(self._client.get(
            f"/prompts/{prompt_id}/similar", params={"limit": limit}
        ))

    def update_stats(self, prompt_id: str, action: str) -> dict:
        return self._handle(self._client.patch(
            f"/prompts/{prompt_id}/stats", json={"action": action}
        ))

    # --- Refine ---

    def refine(self, prompt: str, mode: str = "primer") -> dict:
        return self._handle(self._client.post("/refine", json={"prompt": prompt, "mode": mode}))
