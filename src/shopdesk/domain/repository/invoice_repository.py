"""Abstract repository for the Invoice aggregate.

Writes go through the record mutator, so every save returns a Result
and a concurrent modification comes back as ``VersionConflict``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.result import Result


class InvoiceRepository(ABC):

    @abstractmethod
    def get_by_id(self, invoice_id: str) -> Invoice | None:
        """Return an invoice by its ID, or None if not found."""

    @abstractmethod
    def add(self, invoice: Invoice) -> Result[Invoice]:
        """Persist a new invoice at version 1."""

    @abstractmethod
    def save(self, invoice: Invoice) -> Result[Invoice]:
        """Write the whole invoice back, guarded by ``invoice.version``.

        A single compare-and-swap attempt: re-applying a stale items list
        would overwrite whatever the other writer changed.
        """

    @abstractmethod
    def patch(
        self, invoice_id: str, expected_version: int, fields: dict[str, Any]
    ) -> Result[Invoice]:
        """Apply a field patch with the mutator's bounded retry."""
