"""Application service: Create Invoice use case."""

from __future__ import annotations

from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.result import Result


class CreateInvoiceHandler:

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def handle(
        self,
        job_id: str,
        shop_id: str | None = None,
        tax_rate: float = 0.0,
        discount_rate: float = 0.0,
    ) -> Result[Invoice]:
        """Open an empty invoice for a job."""
        try:
            if not job_id or not job_id.strip():
                raise ValidationError("Job ID is required")
            invoice = Invoice(
                id=None,
                job_id=job_id.strip(),
                shop_id=shop_id,
                tax_rate=tax_rate,
                discount_rate=discount_rate,
            )
        except ValidationError as exc:
            return Result.failure(exc)
        return self._invoice_repo.add(invoice)
