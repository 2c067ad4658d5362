"""Application service: attach an inventory part to a job.

Steps:
1. Validate the request.
2. Duplicate suppression: local claim, then the store-side recent-row
   check.  A suppressed call is a success carrying the earlier link.
3. Read stock and fail fast on a shortage.  This read may be stale; the
   stock trigger re-checks at commit and its rejection wins.
4. Insert the job-part row with ``deducted=False``.  The trigger owns the
   decrement and the flag.
5. Publish an inventory change.
"""

from __future__ import annotations

import logging

from shopdesk.application.dto import PartDetails
from shopdesk.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    StoreError,
    ValidationError,
)
from shopdesk.domain.model.inventory import StockSource
from shopdesk.domain.model.job_part import ChangeDirection, InventoryChange, JobPartLink
from shopdesk.domain.model.value_objects import Quantity
from shopdesk.domain.repository.inventory_repository import InventoryRepository
from shopdesk.domain.repository.job_part_repository import JobPartRepository
from shopdesk.domain.result import Result
from shopdesk.domain.service.change_notifier import ChangeNotifier
from shopdesk.domain.service.duplicate_guard import DuplicateSuppressionGuard
from shopdesk.domain.service.part_pricing import fill_prices

logger = logging.getLogger(__name__)


class AttachPartHandler:

    def __init__(
        self,
        job_part_repo: JobPartRepository,
        inventory_repo: InventoryRepository,
        guard: DuplicateSuppressionGuard,
        notifier: ChangeNotifier,
    ) -> None:
        self._job_part_repo = job_part_repo
        self._inventory_repo = inventory_repo
        self._guard = guard
        self._notifier = notifier

    def handle(
        self,
        job_id: str,
        item_id: str,
        quantity: int,
        shop_id: str | None = None,
        details: PartDetails | None = None,
        source: StockSource = StockSource.INVENTORY,
    ) -> Result[JobPartLink]:
        try:
            self._validate(job_id, item_id, quantity)
        except ValidationError as exc:
            return Result.failure(exc)

        key = self._guard.key(job_id, source, item_id, quantity)
        if not self._guard.claim(key):
            return Result.success(self._guard.previous(key), suppressed=True)

        result = self._attach(job_id, item_id, quantity, shop_id, details, source)
        if result.ok:
            self._guard.remember(key, result.value)
        else:
            self._guard.release(key)
        return result

    def _attach(
        self,
        job_id: str,
        item_id: str,
        quantity: int,
        shop_id: str | None,
        details: PartDetails | None,
        source: StockSource,
    ) -> Result[JobPartLink]:
        details = details or PartDetails()
        try:
            existing = self._guard.find_store_duplicate(job_id, source, item_id, quantity)
            if existing is not None:
                return Result.success(existing, suppressed=True)

            stock = self._inventory_repo.get_stock(item_id, source)
            if stock is None:
                return Result.failure(
                    EntityNotFoundError(f"No inventory record for item '{item_id}'")
                )
            if not stock.covers(quantity):
                logger.info(
                    "Not attaching %s x%d to job %s: only %d on hand",
                    stock.name, quantity, job_id, stock.quantity_on_hand,
                )
                return Result.failure(
                    InsufficientStock(stock.name, stock.quantity_on_hand, quantity)
                )

            sell_price, markup_percent = fill_prices(
                details.cost_price, details.sell_price, details.markup_percent
            )
            link = JobPartLink(
                id=None,
                job_id=job_id,
                item_id=item_id,
                quantity=quantity,
                source=source,
                shop_id=shop_id,
                part_name=details.part_name or stock.name,
                part_number=details.part_number,
                cost_price=details.cost_price,
                sell_price=sell_price,
                markup_percent=markup_percent,
                deducted=False,
            )
            saved = self._job_part_repo.insert(link)
        except StoreError as exc:
            logger.error("Attaching %s to job %s failed: %s", item_id, job_id, exc)
            return Result.failure(exc)

        logger.info("Attached %s x%d to job %s as job part %s",
                    saved.part_name, quantity, job_id, saved.id)
        self._notifier.publish(
            InventoryChange(
                item_id=item_id,
                source=source,
                job_id=job_id,
                quantity=quantity,
                direction=ChangeDirection.DEDUCT,
                shop_id=shop_id,
            )
        )
        return Result.success(saved)

    @staticmethod
    def _validate(job_id: str, item_id: str, quantity: int) -> None:
        if not job_id or not str(job_id).strip():
            raise ValidationError("Job ID is required")
        if not item_id or not str(item_id).strip():
            raise ValidationError("Inventory item ID is required")
        Quantity(quantity)
