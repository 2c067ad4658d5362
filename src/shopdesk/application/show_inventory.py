"""Application service: Show Inventory use cases (queries)."""

from __future__ import annotations

from shopdesk.application.dto import StockLineDTO
from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.inventory import StockLevel
from shopdesk.domain.repository.inventory_repository import InventoryRepository

DEFAULT_LOW_STOCK_THRESHOLD = 3


class ShowInventoryHandler:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def handle(self, shop_id: str) -> list[StockLineDTO]:
        return [self._to_dto(s) for s in self._inventory_repo.list_for_shop(shop_id)]

    def low_stock(
        self, shop_id: str, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    ) -> list[StockLineDTO]:
        if threshold < 0:
            raise ValidationError("Low-stock threshold cannot be negative")
        return [
            self._to_dto(s) for s in self._inventory_repo.low_stock(shop_id, threshold)
        ]

    @staticmethod
    def _to_dto(stock: StockLevel) -> StockLineDTO:
        return StockLineDTO(
            item_id=stock.item_id,
            name=stock.name,
            source=stock.source.value,
            on_hand=stock.quantity_on_hand,
        )
