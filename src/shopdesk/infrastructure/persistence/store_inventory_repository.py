"""Read-only InventoryRepository over any RecordStore.

Reads both stock tables: ``inventory_items`` and the folder-organised
``inventory_folder_items``.
"""

from __future__ import annotations

from shopdesk.domain.model.inventory import StockLevel, StockSource
from shopdesk.domain.repository.inventory_repository import InventoryRepository
from shopdesk.domain.repository.record_store import RecordStore
from shopdesk.infrastructure.persistence.rows import STOCK_TABLES, stock_from_raw


class StoreInventoryRepository(InventoryRepository):

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def get_stock(self, item_id: str, source: StockSource) -> StockLevel | None:
        raw = self._store.fetch(STOCK_TABLES[source], item_id)
        return stock_from_raw(raw, source) if raw is not None else None

    def list_for_shop(self, shop_id: str) -> list[StockLevel]:
        levels: list[StockLevel] = []
        for source in StockSource:
            rows = self._store.select(STOCK_TABLES[source], {"shop_id": shop_id})
            levels.extend(stock_from_raw(raw, source) for raw in rows)
        return levels
