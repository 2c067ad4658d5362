"""Application service: Show Inventory History use case (query)."""

from __future__ import annotations

from shopdesk.application.dto import TransactionDTO
from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.repository.inventory_transaction_repository import (
    InventoryTransactionRepository,
)


class ShowInventoryTransactionsHandler:

    def __init__(self, transaction_repo: InventoryTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def handle(
        self,
        shop_id: str,
        item_id: str | None = None,
        job_id: str | None = None,
        limit: int | None = None,
    ) -> list[TransactionDTO]:
        if limit is not None and limit <= 0:
            raise ValidationError("Limit must be positive")
        return [
            TransactionDTO(
                created_at=(
                    entry.created_at.strftime("%Y-%m-%d %H:%M:%S UTC")
                    if entry.created_at else None
                ),
                item_id=entry.item_id,
                source=entry.source.value,
                transaction_type=entry.transaction_type.value,
                quantity=entry.quantity,
                job_id=entry.job_id,
                notes=entry.notes,
            )
            for entry in self._transaction_repo.list_for_shop(shop_id, item_id, job_id, limit)
        ]
