"""Invoice aggregate.

The Invoice owns its ordered line items.  Totals are always derived from
the items through the pricing engine and are never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from shopdesk.domain.exceptions import EntityNotFoundError, ValidationError
from shopdesk.domain.model import estimate
from shopdesk.domain.model.line_item import EstimateStatus, LineItem
from shopdesk.domain.model.value_objects import Percentage
from shopdesk.domain.service import pricing


class InvoiceStatus(Enum):
    OPEN = "open"
    PAID = "paid"


@dataclass
class Invoice:
    """Aggregate root for invoices.

    ``version`` is the fencing token the store last reported for this
    invoice; saving passes it back so a concurrent write is detected
    instead of overwritten.
    """

    id: str | None
    job_id: str | None
    items: list[LineItem] = field(default_factory=list)
    tax_rate: float = 0.0
    discount_rate: float = 0.0
    status: InvoiceStatus = InvoiceStatus.OPEN
    version: int = 1
    shop_id: str | None = None
    number: int | None = None

    def __post_init__(self) -> None:
        # Percentage raises on out-of-range rates
        Percentage(self.tax_rate)
        Percentage(self.discount_rate)

    # --- Computed properties --------------------------------------------------

    @property
    def totals(self) -> pricing.InvoiceTotals:
        return pricing.compute_totals(self.items, self.tax_rate, self.discount_rate)

    @property
    def subtotal(self) -> float:
        return self.totals.subtotal

    @property
    def tax(self) -> float:
        return self.totals.tax

    @property
    def discount(self) -> float:
        return self.totals.discount

    @property
    def total(self) -> float:
        return self.totals.total

    # --- Items ----------------------------------------------------------------

    def add_item(self, item: LineItem) -> None:
        self._ensure_open()
        if any(existing.id == item.id for existing in self.items):
            raise ValidationError(f"Line item '{item.id}' is already on this invoice")
        self.items.append(item)

    def replace_items(self, items: list[LineItem]) -> None:
        """Swap in an edited item list, keeping its order."""
        self._ensure_open()
        ids = [item.id for item in items]
        if len(ids) != len(set(ids)):
            raise ValidationError("Line item ids must be unique on an invoice")
        self.items = list(items)

    def find_item(self, item_id: str) -> LineItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise EntityNotFoundError(f"Line item '{item_id}' not found on this invoice")

    # --- Estimate workflow ----------------------------------------------------

    def send_estimate(self, now: datetime) -> list[LineItem]:
        """Staff action: move every untouched eligible item to PENDING."""
        self._ensure_open()
        return [item for item in self.items if estimate.mark_sent(item, now)]

    def approve_estimate(self, item_id: str, now: datetime) -> LineItem:
        """Customer action: PENDING -> APPROVED."""
        item = self.find_item(item_id)
        estimate.mark_approved(item, now)
        return item

    def decline_estimate(self, item_id: str) -> LineItem:
        """Customer action: PENDING -> DECLINED.

        The declined row is dropped from the invoice entirely.  A labor row
        linked to it is left in place and keeps its own price.
        """
        item = self.find_item(item_id)
        estimate.mark_declined(item)
        self.items = [existing for existing in self.items if existing.id != item_id]
        return item

    def pending_estimate_items(self) -> list[LineItem]:
        return [
            item
            for item in self.items
            if item.estimate_status is EstimateStatus.PENDING
        ]

    # --- State transitions ----------------------------------------------------

    def mark_paid(self) -> None:
        if self.status is InvoiceStatus.PAID:
            raise ValidationError("Invoice is already paid")
        self.status = InvoiceStatus.PAID

    # --- Internal helpers -----------------------------------------------------

    def _ensure_open(self) -> None:
        if self.status is not InvoiceStatus.OPEN:
            raise ValidationError(
                f"Cannot change invoice in {self.status.value} status"
            )
