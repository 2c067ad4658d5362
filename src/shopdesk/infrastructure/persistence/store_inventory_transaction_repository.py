"""InventoryTransactionRepository over any RecordStore."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from shopdesk.domain.model.job_part import InventoryTransaction
from shopdesk.domain.repository.inventory_transaction_repository import (
    InventoryTransactionRepository,
)
from shopdesk.domain.repository.record_store import RecordStore
from shopdesk.infrastructure.persistence.rows import (
    INVENTORY_TRANSACTIONS,
    transaction_from_raw,
    transaction_to_raw,
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreInventoryTransactionRepository(InventoryTransactionRepository):

    def __init__(self, store: RecordStore, now: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._now = now

    def record(self, transaction: InventoryTransaction) -> InventoryTransaction:
        if transaction.created_at is None:
            transaction = replace(transaction, created_at=self._now())
        return transaction_from_raw(
            self._store.insert(INVENTORY_TRANSACTIONS, transaction_to_raw(transaction))
        )

    def list_for_shop(
        self,
        shop_id: str,
        item_id: str | None = None,
        job_id: str | None = None,
        limit: int | None = None,
    ) -> list[InventoryTransaction]:
        filters = {"shop_id": shop_id}
        if job_id is not None:
            filters["job_id"] = job_id
        entries = [
            transaction_from_raw(raw)
            for raw in self._store.select(INVENTORY_TRANSACTIONS, filters)
        ]
        if item_id is not None:
            # Either stock table may hold the item
            entries = [e for e in entries if e.item_id == item_id]
        entries.sort(key=lambda e: e.created_at or _EPOCH, reverse=True)
        return entries[:limit] if limit is not None else entries
