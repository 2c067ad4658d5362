"""Inventory audit trail: one transaction per published stock movement."""

from __future__ import annotations

import logging

from shopdesk.domain.model.job_part import (
    ChangeDirection,
    InventoryChange,
    InventoryTransaction,
    TransactionType,
)
from shopdesk.domain.repository.inventory_transaction_repository import (
    InventoryTransactionRepository,
)

logger = logging.getLogger(__name__)


class InventoryTransactionRecorder:
    """ChangeNotifier subscriber that writes the audit trail."""

    def __init__(self, transaction_repo: InventoryTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def __call__(self, change: InventoryChange) -> None:
        if change.direction is ChangeDirection.DEDUCT:
            kind, notes = TransactionType.QUANTITY_DECREASE, f"Attached to job {change.job_id}"
        else:
            kind, notes = TransactionType.QUANTITY_INCREASE, f"Removed from job {change.job_id}"
        self._transaction_repo.record(
            InventoryTransaction(
                id=None,
                item_id=change.item_id,
                source=change.source,
                transaction_type=kind,
                quantity=change.quantity,
                shop_id=change.shop_id,
                job_id=change.job_id,
                notes=notes,
            )
        )
        logger.debug("Recorded %s of %d for %s", kind.value, change.quantity, change.item_id)
