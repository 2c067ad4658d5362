"""Application service: Add Line Item use case.

Steps:
1. Load the invoice and append the items in memory (this validates them).
2. Attach every inventory part to the invoice's job, so stock is taken
   before the line appears.  A repeat of an attach made moments ago is
   refused: the earlier line already carries that job part.
3. Save the invoice.  If the save fails, the parts attached in step 2 are
   detached again.
"""

from __future__ import annotations

import logging

from shopdesk.application.attach_part import AttachPartHandler
from shopdesk.application.detach_part import DetachPartHandler
from shopdesk.application.dto import PartDetails
from shopdesk.domain.exceptions import (
    DomainException,
    DuplicateSubmission,
    EntityNotFoundError,
    ValidationError,
)
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.model.job_part import JobPartLink
from shopdesk.domain.model.line_item import LineItem, PartItem
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.result import Result
from shopdesk.domain.service.part_pricing import calculate_markup

logger = logging.getLogger(__name__)


class AddLineItemHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        attach: AttachPartHandler | None = None,
        detach: DetachPartHandler | None = None,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._attach = attach
        self._detach = detach

    def handle(self, invoice_id: str, *items: LineItem) -> Result[Invoice]:
        """Append one or more items, in order, in a single write.

        A labor-based service and its labor row should be added together
        so the invoice is never saved with only half of the pair.
        """
        try:
            invoice = self._invoice_repo.get_by_id(invoice_id)
            if invoice is None:
                raise EntityNotFoundError(f"Invoice '{invoice_id}' not found")
            for item in items:
                invoice.add_item(item)
        except DomainException as exc:
            return Result.failure(exc)

        attached: list[JobPartLink] = []
        for part in self._stocked_parts(invoice, items):
            result = self._attach_part(invoice, part)
            if not result.ok:
                self._undo(attached)
                return Result.failure(result.error)
            attached.append(result.value)

        saved = self._invoice_repo.save(invoice)
        if not saved.ok and attached:
            logger.warning("Invoice %s not saved (%s); returning %d attached part(s)",
                           invoice_id, saved.error, len(attached))
            self._undo(attached)
        return saved

    def _stocked_parts(self, invoice: Invoice, items: tuple[LineItem, ...]) -> list[PartItem]:
        if self._attach is None or invoice.job_id is None:
            return []
        return [
            item for item in items if isinstance(item, PartItem) and item.is_inventory_linked
        ]

    def _attach_part(self, invoice: Invoice, part: PartItem) -> Result[JobPartLink]:
        if not float(part.quantity).is_integer():
            return Result.failure(ValidationError(
                f"Inventory parts need a whole-number quantity, got {part.quantity}"
            ))
        result = self._attach.handle(  # type: ignore[union-attr]
            invoice.job_id,  # type: ignore[arg-type]
            part.stock_item_id,  # type: ignore[arg-type]
            int(part.quantity),
            invoice.shop_id,
            details=PartDetails(
                part_name=part.name,
                cost_price=part.cost_price or 0.0,
                sell_price=part.unit_price,
                markup_percent=calculate_markup(part.cost_price, part.unit_price),
            ),
            source=part.stock_source,  # type: ignore[arg-type]
        )
        if result.suppressed:
            return Result.failure(DuplicateSubmission(
                f"{part.name} x{int(part.quantity)} was just added to job {invoice.job_id}; "
                f"not adding it again"
            ))
        return result

    def _undo(self, attached: list[JobPartLink]) -> None:
        if self._detach is None:
            return
        for link in attached:
            undone = self._detach.handle(link.id)  # type: ignore[arg-type]
            if not undone.ok:
                logger.error("Could not return job part %s: %s", link.id, undone.error)
