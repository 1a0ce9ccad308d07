"""Supabase client initialization and helper methods."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog
from supabase import Client, create_client

from promptea.config import get_settings
from promptea.errors import ConfigurationError

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper around the Supabase client with convenience methods."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return the created row."""
        result = self._client.table(table).insert(data).execute()
        return result.data[0]

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID and return the updated row."""
        result = self._client.table(table).update(data).eq("id", id).execute()
        return result.data[0]

    def upsert(self, table: str, data: dict[str, Any], on_conflict: str) -> dict[str, Any]:
        """Insert or update on the given unique columns and return the row."""
        result = self._client.table(table).upsert(data, on_conflict=on_conflict).execute()
        return result.data[0]

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
        """Select records with optional equality and greater-than filters, ordering, and limit.

        Every filter, the ordering and the limit are applied by the database.
        """
        query = self._client.table(table).select(columns)

        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)

        if gt:
            for key, value in gt.items():
                query = query.gt(key, value)

        if order_by:
            query = query.order(order_by, desc=not ascending)

        if limit:
            query = query.limit(limit)

        result = query.execute()
        return result.data

    def delete_where(self, table: str, filters: dict[str, Any]) -> None:
        """Delete every record matching all equality filters."""
        query = self._client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        query.execute()


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Get cached Supabase client instance. Fails when Supabase is not configured."""
    settings = get_settings()
    if not settings.supabase_configured:
        raise ConfigurationError(["SUPABASE_URL", "SUPABASE_KEY"])
    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("supabase.connected", url=settings.supabase_url)
    return SupabaseClient(client)
