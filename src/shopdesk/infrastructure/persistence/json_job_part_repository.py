"""JobPartRepository over the JSON-file store.

Runs the simulated stock trigger around every insert and delete so local
stock behaves the way the hosted database does.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from shopdesk.domain.exceptions import StoreError
from shopdesk.domain.model.inventory import StockSource
from shopdesk.domain.model.job_part import JobPartLink
from shopdesk.domain.repository.job_part_repository import JobPartRepository
from shopdesk.domain.repository.record_store import RecordStore
from shopdesk.infrastructure.persistence.rows import (
    JOB_PARTS,
    STOCK_COLUMNS,
    is_inventory_linked,
    job_part_from_raw,
    job_part_to_raw,
)
from shopdesk.infrastructure.persistence.stock_trigger import SimulatedStockTrigger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JsonJobPartRepository(JobPartRepository):

    def __init__(
        self,
        store: RecordStore,
        trigger: SimulatedStockTrigger,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._trigger = trigger
        self._now = now

    # --- JobPartRepository interface ------------------------------------------

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
        filters = {"job_id": job_id, STOCK_COLUMNS[source]: item_id, "quantity": quantity}
        recent = [
            link
            for link in (job_part_from_raw(raw) for raw in self._store.select(JOB_PARTS, filters))
            if link.created_at is not None and link.created_at >= since
        ]
        recent.sort(key=lambda link: link.created_at, reverse=True)
        return recent[0] if recent else None

    def list_for_job(self, job_id: str) -> list[JobPartLink]:
        rows = [
            raw
            for raw in self._store.select(JOB_PARTS, {"job_id": job_id})
            if is_inventory_linked(raw)
        ]
        rows.sort(key=lambda raw: raw.get("created_at") or "", reverse=True)
        return [job_part_from_raw(raw) for raw in rows]

    def insert(self, link: JobPartLink) -> JobPartLink:
        raw = job_part_to_raw(link)
        raw["deducted"] = False
        raw.setdefault("created_at", self._now().isoformat())
        # Raises StoreError before anything is written when stock is short
        self._trigger.on_insert(raw)
        try:
            stored = self._store.insert(JOB_PARTS, raw)
        except StoreError:
            # No row to return the stock later, so return it now
            self._trigger.on_delete(raw)
            raise
        return job_part_from_raw(stored)

    def delete(self, link_id: str) -> JobPartLink | None:
        deleted = self._store.delete_where(JOB_PARTS, link_id)
        if not deleted:
            return None
        self._trigger.on_delete(deleted[0])
        return job_part_from_raw(deleted[0])

