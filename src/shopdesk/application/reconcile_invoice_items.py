"""Application service: bring job parts in line with an edited invoice.

Called when staff save an invoice.  Compares the inventory-linked parts
before and after the edit:

* a part that disappeared has its job-part link removed;
* a part whose quantity changed has its link replaced by one with the new
  quantity.

Both go through job-part deletes and inserts only, so the stock trigger
stays the single writer of stock counts.  Parts added during the edit are
attached through ``AttachPartHandler`` when they are picked, not here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shopdesk.application.attach_part import AttachPartHandler
from shopdesk.application.detach_part import DetachPartHandler
from shopdesk.application.dto import PartDetails
from shopdesk.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    StoreError,
    ValidationError,
)
from shopdesk.domain.model.job_part import JobPartLink
from shopdesk.domain.model.line_item import LineItem, PartItem
from shopdesk.domain.repository.inventory_repository import InventoryRepository
from shopdesk.domain.repository.job_part_repository import JobPartRepository
from shopdesk.domain.result import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemAdjustment:
    """What happened to one invoice line's job part."""

    item_id: str
    action: str  # "detached" | "replaced" | "unlinked"
    result: Result[JobPartLink]


class ReconcileInvoiceItemsHandler:

    def __init__(
        self,
        job_part_repo: JobPartRepository,
        inventory_repo: InventoryRepository,
        attach: AttachPartHandler,
        detach: DetachPartHandler,
    ) -> None:
        self._job_part_repo = job_part_repo
        self._inventory_repo = inventory_repo
        self._attach = attach
        self._detach = detach

    def handle(
        self,
        job_id: str,
        shop_id: str | None,
        before: list[LineItem],
        after: list[LineItem],
    ) -> list[ItemAdjustment]:
        after_by_id = {item.id: item for item in after}
        adjustments: list[ItemAdjustment] = []

        for old in before:
            if not isinstance(old, PartItem) or not old.is_inventory_linked:
                continue
            new = after_by_id.get(old.id)
            if new is None or new.quantity == 0:
                adjustments.append(self._remove(job_id, old))
            elif new.quantity != old.quantity:
                adjustments.append(self._change_quantity(job_id, shop_id, old, new))

        logger.info("Reconciled %d job part(s) for job %s", len(adjustments), job_id)
        return adjustments

    # --- Removal --------------------------------------------------------------

    def _remove(self, job_id: str, item: PartItem) -> ItemAdjustment:
        try:
            link = self._find_link(job_id, item)
        except StoreError as exc:
            return ItemAdjustment(item.id, "detached", Result.failure(exc))
        if link is None:
            logger.info("No job part for '%s' on job %s; nothing to return",
                        item.name, job_id)
            return ItemAdjustment(item.id, "unlinked", Result.success(None))
        return ItemAdjustment(item.id, "detached", self._detach.handle(link.id))

    # --- Quantity change ------------------------------------------------------

    def _change_quantity(
        self, job_id: str, shop_id: str | None, old: PartItem, new: LineItem
    ) -> ItemAdjustment:
        new_quantity = new.quantity
        if not float(new_quantity).is_integer():
            return ItemAdjustment(old.id, "replaced", Result.failure(
                ValidationError(f"Part quantity must be a whole number, got {new_quantity}")
            ))
        new_quantity = int(new_quantity)

        try:
            link = self._find_link(job_id, old)
            if link is None:
                return ItemAdjustment(old.id, "unlinked", Result.success(None))
            stock = self._inventory_repo.get_stock(link.item_id, link.source)
        except StoreError as exc:
            return ItemAdjustment(old.id, "replaced", Result.failure(exc))

        if stock is None:
            return ItemAdjustment(old.id, "replaced", Result.failure(
                EntityNotFoundError(f"No inventory record for item '{link.item_id}'")
            ))

        # The old link's quantity comes back to stock before the new one is taken
        available = stock.quantity_on_hand + link.quantity
        if available < new_quantity:
            return ItemAdjustment(old.id, "replaced", Result.failure(
                InsufficientStock(stock.name, available, new_quantity)
            ))

        detached = self._detach.handle(link.id)
        if not detached.ok:
            return ItemAdjustment(old.id, "replaced", detached)

        attached = self._attach.handle(
            job_id, link.item_id, new_quantity, shop_id,
            details=self._details_of(link), source=link.source,
        )
        if not attached.ok:
            logger.error(
                "Re-attaching %s x%d to job %s failed (%s); restoring x%d",
                link.part_name, new_quantity, job_id, attached.error, link.quantity,
            )
            restored = self._attach.handle(
                job_id, link.item_id, link.quantity, shop_id,
                details=self._details_of(link), source=link.source,
            )
            if not restored.ok:
                logger.error("Restoring job part for %s failed: %s",
                             link.part_name, restored.error)
        return ItemAdjustment(old.id, "replaced", attached)

    # --- Internal helpers -----------------------------------------------------

    def _find_link(self, job_id: str, item: PartItem) -> JobPartLink | None:
        """The job part behind an invoice line; same quantity preferred."""
        candidates = [
            link
            for link in self._job_part_repo.list_for_job(job_id)
            if link.source is item.stock_source and link.item_id == item.stock_item_id
        ]
        for link in candidates:
            if link.quantity == item.quantity:
                return link
        return candidates[0] if candidates else None

    @staticmethod
    def _details_of(link: JobPartLink) -> PartDetails:
        return PartDetails(
            part_name=link.part_name,
            part_number=link.part_number,
            cost_price=link.cost_price,
            sell_price=link.sell_price,
            markup_percent=link.markup_percent,
        )
