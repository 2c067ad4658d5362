"""Application service: Show Invoice use case (query)."""

from __future__ import annotations

from shopdesk.application.dto import InvoiceDTO, LineItemDTO
from shopdesk.domain.exceptions import EntityNotFoundError
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.model.value_objects import format_currency
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.service.pricing import line_contributions


class ShowInvoiceHandler:

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def handle(self, invoice_id: str) -> InvoiceDTO:
        invoice = self._invoice_repo.get_by_id(invoice_id)
        if invoice is None:
            raise EntityNotFoundError(f"Invoice '{invoice_id}' not found")
        return self._to_dto(invoice)

    @staticmethod
    def _to_dto(invoice: Invoice) -> InvoiceDTO:
        totals = invoice.totals
        return InvoiceDTO(
            id=invoice.id,  # type: ignore[arg-type]
            job_id=invoice.job_id,
            status=invoice.status.value,
            version=invoice.version,
            items=[
                LineItemDTO(
                    id=item.id,
                    kind=item.kind,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=format_currency(item.unit_price),
                    amount=format_currency(amount),
                    priced=counted,
                    estimate_status=item.estimate_status.value,
                )
                for item, amount, counted in line_contributions(invoice.items)
            ],
            subtotal=format_currency(totals.subtotal),
            tax=format_currency(totals.tax),
            discount=format_currency(totals.discount),
            total=format_currency(totals.total),
        )
