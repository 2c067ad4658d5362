"""Abstract, read-only repository for stock levels."""

from __future__ import annotations

from abc import ABC, abstractmethod

from shopdesk.domain.model.inventory import StockLevel, StockSource


class InventoryRepository(ABC):

    @abstractmethod
    def get_stock(self, item_id: str, source: StockSource) -> StockLevel | None:
        """Return the current stock row for an item, or None."""

    @abstractmethod
    def list_for_shop(self, shop_id: str) -> list[StockLevel]:
        """Return every stock row (both sources) for a shop."""

    def low_stock(self, shop_id: str, threshold: int) -> list[StockLevel]:
        """Return rows at or below ``threshold``, lowest first."""
        rows = [s for s in self.list_for_shop(shop_id) if s.is_low(threshold)]
        return sorted(rows, key=lambda s: (s.quantity_on_hand, s.name))
