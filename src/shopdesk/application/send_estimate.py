"""Application service: Send Estimate use case (staff action).

Moves every eligible, never-sent item to PENDING.  Sending again only
picks up items added since; approved and declined items are left alone.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from shopdesk.domain.exceptions import DomainException, EntityNotFoundError
from shopdesk.domain.model.line_item import LineItem
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.result import Result

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SendEstimateHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._now = now

    def handle(self, invoice_id: str) -> Result[list[LineItem]]:
        """Returns the items that were sent (possibly none)."""
        try:
            invoice = self._invoice_repo.get_by_id(invoice_id)
            if invoice is None:
                raise EntityNotFoundError(f"Invoice '{invoice_id}' not found")
            sent = invoice.send_estimate(self._now())
        except DomainException as exc:
            return Result.failure(exc)

        if not sent:
            logger.info("Invoice %s has no unsent estimate items", invoice_id)
            return Result.success([])

        saved = self._invoice_repo.save(invoice)
        if not saved.ok:
            return Result.failure(saved.error)
        logger.info("Sent %d estimate item(s) on invoice %s", len(sent), invoice_id)
        return Result.success(sent)
