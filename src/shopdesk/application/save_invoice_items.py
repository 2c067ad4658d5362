"""Application service: save an edited item list on an invoice.

The invoice is written first, with a single version check.  Only once
that write has landed are job parts reconciled with the new list; a
conflicting save leaves stock and job parts untouched.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field

from shopdesk.application.reconcile_invoice_items import (
    ItemAdjustment,
    ReconcileInvoiceItemsHandler,
)
from shopdesk.domain.exceptions import DomainException, EntityNotFoundError
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.model.line_item import LineItem
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.result import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavedInvoice:
    invoice: Invoice
    adjustments: list[ItemAdjustment] = field(default_factory=list)

    @property
    def failed_adjustments(self) -> list[ItemAdjustment]:
        return [adj for adj in self.adjustments if not adj.result.ok]


class SaveInvoiceItemsHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        reconcile: ReconcileInvoiceItemsHandler,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._reconcile = reconcile

    def handle(
        self, invoice_id: str, expected_version: int, items: list[LineItem]
    ) -> Result[SavedInvoice]:
        try:
            invoice = self._invoice_repo.get_by_id(invoice_id)
            if invoice is None:
                raise EntityNotFoundError(f"Invoice '{invoice_id}' not found")
            before = copy.deepcopy(invoice.items)
            invoice.replace_items(items)
        except DomainException as exc:
            return Result.failure(exc)

        # The caller's version, not the freshly loaded one, guards the write
        invoice.version = expected_version
        saved = self._invoice_repo.save(invoice)
        if not saved.ok:
            logger.warning("Invoice %s not saved: %s", invoice_id, saved.error)
            return Result.failure(saved.error)  # type: ignore[arg-type]

        stored: Invoice = saved.value  # type: ignore[assignment]
        if stored.job_id is None:
            return Result.success(SavedInvoice(stored))

        adjustments = self._reconcile.handle(stored.job_id, stored.shop_id, before, stored.items)
        for adjustment in adjustments:
            if not adjustment.result.ok:
                logger.warning("Job part for item %s not reconciled: %s",
                               adjustment.item_id, adjustment.result.error)
        return Result.success(SavedInvoice(stored, adjustments))
