"""RecordStore backed by a hosted Supabase (PostgREST) database.

Conditional writes are plain filtered updates and deletes: PostgREST
returns the affected rows, and an empty list means the version filter
matched nothing.
"""

from __future__ import annotations

import logging
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client

from shopdesk.domain.exceptions import StoreError
from shopdesk.domain.repository.record_store import RecordStore, Row

logger = logging.getLogger(__name__)


def connect(url: str, key: str) -> Client:
    if not url or not key:
        raise StoreError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


class SupabaseRecordStore(RecordStore):

    def __init__(self, client: Client) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        return self._client

    def fetch(self, table: str, record_id: str) -> Row | None:
        rows = self.execute(
            table,
            self._client.table(table).select("*").eq("id", record_id).limit(1),
        )
        return rows[0] if rows else None

    def select(self, table: str, filters: dict[str, Any] | None = None) -> list[Row]:
        query = self._client.table(table).select("*")
        for column, value in (filters or {}).items():
            query = query.is_(column, "null") if value is None else query.eq(column, value)
        return self.execute(table, query)

    def insert(self, table: str, row: Row) -> Row:
        rows = self.execute(table, self._client.table(table).insert(row))
        if not rows:
            raise StoreError(f"Insert into {table} returned no row")
        return rows[0]

    def update_where(
        self,
        table: str,
        record_id: str,
        values: Row,
        expected_version: int | None = None,
    ) -> list[Row]:
        query = self._client.table(table).update(values).eq("id", record_id)
        if expected_version is not None:
            query = query.eq("version", expected_version)
        return self.execute(table, query)

    def delete_where(
        self,
        table: str,
        record_id: str,
        expected_version: int | None = None,
    ) -> list[Row]:
        query = self._client.table(table).delete().eq("id", record_id)
        if expected_version is not None:
            query = query.eq("version", expected_version)
        return self.execute(table, query)

    @staticmethod
    def execute(table: str, query) -> list[Row]:
        try:
            response = query.execute()
        except APIError as exc:
            logger.error("Supabase request on %s failed: %s", table, exc.message)
            raise StoreError(exc.message or f"Request on {table} failed") from exc
        return list(response.data or [])
