"""Local stand-in for the database stock trigger.

The hosted database adjusts stock in a trigger on ``job_parts``.  The
JSON store has no triggers, so this class plays that role with the same
contract:

* on insert, reject with ``StoreError`` if stock is short at commit time,
  otherwise decrement once and set ``deducted``;
* on delete, return the quantity once, and only if it was deducted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from shopdesk.domain.exceptions import StoreError
from shopdesk.domain.model.inventory import StockSource
from shopdesk.domain.repository.record_store import RecordStore, Row
from shopdesk.infrastructure.persistence.rows import STOCK_COLUMNS, STOCK_TABLES

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SimulatedStockTrigger:

    def __init__(
        self, store: RecordStore, now: Callable[[], datetime] = _utcnow
    ) -> None:
        self._store = store
        self._now = now

    def on_insert(self, job_part: Row) -> None:
        """Deduct stock for a job-part row that is about to be stored."""
        located = self._locate(job_part)
        if located is None:
            return
        table, item_id = located
        stock = self._store.fetch(table, item_id)
        if stock is None:
            raise StoreError(f"Inventory item {item_id} not found")

        on_hand = int(stock.get("qty") or 0)
        quantity = int(job_part["quantity"])
        if on_hand < quantity:
            raise StoreError(
                f"Insufficient stock at commit for {stock.get('name')}: "
                f"available {on_hand}, requested {quantity}"
            )

        remaining = on_hand - quantity
        self._store.update_where(table, item_id, {
            "qty": remaining,
            "out_of_stock_date": self._now().isoformat() if remaining == 0 else None,
        })
        job_part["deducted"] = True
        logger.debug("Deducted %d of %s (%d left)", quantity, item_id, remaining)

    def on_delete(self, job_part: Row) -> None:
        """Return stock for a job-part row that has just been deleted."""
        if not job_part.get("deducted"):
            return
        located = self._locate(job_part)
        if located is None:
            return
        table, item_id = located
        stock = self._store.fetch(table, item_id)
        if stock is None:
            logger.warning("Inventory item %s vanished; cannot return stock", item_id)
            return

        restored = int(stock.get("qty") or 0) + int(job_part["quantity"])
        self._store.update_where(table, item_id, {"qty": restored, "out_of_stock_date": None})
        logger.debug("Returned %s of %s (%d on hand)", job_part["quantity"], item_id, restored)

    @staticmethod
    def _locate(job_part: Row) -> tuple[str, str] | None:
        for source in StockSource:
            item_id = job_part.get(STOCK_COLUMNS[source])
            if item_id:
                return STOCK_TABLES[source], item_id
        return None
