"""Application service: Pay Invoice use case."""

from __future__ import annotations

from shopdesk.domain.exceptions import EntityNotFoundError, StoreError, ValidationError
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.result import Result


class PayInvoiceHandler:

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def handle(self, invoice_id: str, expected_version: int) -> Result[Invoice]:
        """Mark an invoice paid, based on the version the caller last saw.

        Only the status field is written, so the mutator may retry a
        version conflict against the newer version.
        """
        try:
            invoice = self._invoice_repo.get_by_id(invoice_id)
        except StoreError as exc:
            return Result.failure(exc)
        if invoice is None:
            return Result.failure(EntityNotFoundError(f"Invoice '{invoice_id}' not found"))
        try:
            invoice.mark_paid()
        except ValidationError as exc:
            return Result.failure(exc)

        return self._invoice_repo.patch(
            invoice_id, expected_version, {"status": invoice.status.value}
        )
