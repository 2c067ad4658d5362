"""Application service: customer response to an estimate item.

Approval stamps the approval time.  Declining removes the item from the
invoice altogether; a declined inventory part also loses its job-part
link, which returns its stock.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from shopdesk.application.reconcile_invoice_items import ReconcileInvoiceItemsHandler
from shopdesk.domain.exceptions import DomainException, EntityNotFoundError
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.result import Result

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RespondToEstimateHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        now: Callable[[], datetime] = _utcnow,
        reconcile: ReconcileInvoiceItemsHandler | None = None,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._now = now
        self._reconcile = reconcile

    def approve(self, invoice_id: str, item_id: str) -> Result[Invoice]:
        return self._respond(
            invoice_id, item_id, lambda inv: inv.approve_estimate(item_id, self._now())
        )

    def decline(self, invoice_id: str, item_id: str) -> Result[Invoice]:
        return self._respond(invoice_id, item_id, lambda inv: inv.decline_estimate(item_id))

    def _respond(
        self,
        invoice_id: str,
        item_id: str,
        action: Callable[[Invoice], object],
    ) -> Result[Invoice]:
        try:
            invoice = self._invoice_repo.get_by_id(invoice_id)
            if invoice is None:
                raise EntityNotFoundError(f"Invoice '{invoice_id}' not found")
            before = copy.deepcopy(invoice.items)
            action(invoice)
        except DomainException as exc:
            return Result.failure(exc)

        result = self._invoice_repo.save(invoice)
        if not result.ok:
            return result
        logger.info("Estimate response recorded for item %s on invoice %s",
                    item_id, invoice_id)

        if self._reconcile is not None and invoice.job_id is not None:
            adjustments = self._reconcile.handle(
                invoice.job_id, invoice.shop_id, before, invoice.items
            )
            for adjustment in adjustments:
                if not adjustment.result.ok:
                    logger.error("Job part for item %s not returned: %s",
                                 adjustment.item_id, adjustment.result.error)
        return result
