"""InvoiceRepository over any RecordStore.

Invoices are versioned rows in the ``invoices`` table with their line
items embedded as a JSON array, so every write goes through the record
mutator.
"""

from __future__ import annotations

from typing import Any

from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.repository.record_store import RecordStore
from shopdesk.domain.result import Result
from shopdesk.domain.service.record_mutator import RecordMutator
from shopdesk.infrastructure.persistence.rows import (
    INVOICES,
    invoice_from_raw,
    invoice_to_raw,
)


class StoreInvoiceRepository(InvoiceRepository):

    def __init__(self, store: RecordStore, mutator: RecordMutator) -> None:
        self._store = store
        self._mutator = mutator

    # --- InvoiceRepository interface ------------------------------------------

    def get_by_id(self, invoice_id: str) -> Invoice | None:
        raw = self._store.fetch(INVOICES, invoice_id)
        return invoice_from_raw(raw) if raw is not None else None

    def add(self, invoice: Invoice) -> Result[Invoice]:
        return self._to_invoice(self._mutator.create(INVOICES, invoice_to_raw(invoice)))

    def save(self, invoice: Invoice) -> Result[Invoice]:
        result = self._mutator.update(
            INVOICES,
            invoice.id,  # type: ignore[arg-type]
            invoice.version,
            invoice_to_raw(invoice),
            max_retries=1,
        )
        return self._to_invoice(result)

    def patch(
        self, invoice_id: str, expected_version: int, fields: dict[str, Any]
    ) -> Result[Invoice]:
        return self._to_invoice(
            self._mutator.update(INVOICES, invoice_id, expected_version, fields)
        )

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_invoice(result: Result[dict]) -> Result[Invoice]:
        if not result.ok:
            return Result.failure(result.error)  # type: ignore[arg-type]
        return Result.success(invoice_from_raw(result.value))  # type: ignore[arg-type]
