"""Abstract repository for the inventory audit trail."""

from __future__ import annotations

from abc import ABC, abstractmethod

from shopdesk.domain.model.job_part import InventoryTransaction


class InventoryTransactionRepository(ABC):

    @abstractmethod
    def record(self, transaction: InventoryTransaction) -> InventoryTransaction:
        """Append an entry; returns it with its id and timestamp."""

    @abstractmethod
    def list_for_shop(
        self,
        shop_id: str,
        item_id: str | None = None,
        job_id: str | None = None,
        limit: int | None = None,
    ) -> list[InventoryTransaction]:
        """Return a shop's entries, newest first, optionally narrowed."""
