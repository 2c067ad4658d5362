"""JobPartRepository on Supabase.

The database trigger on ``job_parts`` does the stock work; a rejected
insert comes back as an ``APIError`` and is raised as ``StoreError``.
"""

from __future__ import annotations

from datetime import datetime

from supabase import Client

from shopdesk.domain.model.inventory import StockSource
from shopdesk.domain.model.job_part import JobPartLink
from shopdesk.domain.repository.job_part_repository import JobPartRepository
from shopdesk.infrastructure.persistence.rows import (
    JOB_PARTS,
    STOCK_COLUMNS,
    is_inventory_linked,
    job_part_from_raw,
    job_part_to_raw,
)
from shopdesk.infrastructure.persistence.supabase_record_store import SupabaseRecordStore


class SupabaseJobPartRepository(JobPartRepository):

    def __init__(self, store: SupabaseRecordStore) -> None:
        self._store = store

    @property
    def _client(self) -> Client:
        return self._store.client

    def get_by_id(self, link_id: str) -> JobPartLink | None:
        raw = self._store.fetch(JOB_PARTS, link_id)
        if raw is None or not is_inventory_linked(raw):
            return None
        return job_part_from_raw(raw)

    def find_recent(
        self,
        job_id: str,
        source: StockSource,
        item_id: str,
        quantity: int,
        since: datetime,
    ) -> JobPartLink | None:
        query = (
            self._client.table(JOB_PARTS)
            .select("*")
            .eq("job_id", job_id)
            .eq(STOCK_COLUMNS[source], item_id)
            .eq("quantity", quantity)
            .gte("created_at", since.isoformat())
            .order("created_at", desc=True)
            .limit(1)
        )
        rows = self._store.execute(JOB_PARTS, query)
        return job_part_from_raw(rows[0]) if rows else None

    def list_for_job(self, job_id: str) -> list[JobPartLink]:
        query = (
            self._client.table(JOB_PARTS)
            .select("*")
            .eq("job_id", job_id)
            .order("created_at", desc=True)
        )
        rows = self._store.execute(JOB_PARTS, query)
        return [job_part_from_raw(raw) for raw in rows if is_inventory_linked(raw)]

    def insert(self, link: JobPartLink) -> JobPartLink:
        raw = job_part_to_raw(link)
        raw["deducted"] = False
        return job_part_from_raw(self._store.insert(JOB_PARTS, raw))

    def delete(self, link_id: str) -> JobPartLink | None:
        deleted = self._store.delete_where(JOB_PARTS, link_id)
        return job_part_from_raw(deleted[0]) if deleted else None
