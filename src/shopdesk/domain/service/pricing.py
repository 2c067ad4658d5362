"""Invoice pricing engine.

Pure functions over an ordered list of line items.  The inclusion rules:

* A labor-based service is never priced itself; its cost sits on a
  linked labor row.
* A service paired with a labor row through ``linked_item_id`` (in either
  direction) is never priced itself either.
* Labor rows are de-duplicated: by ``linked_item_id`` when present, else
  by ``(name, quantity, unit_price)``.  Only the first occurrence counts,
  because the service picker can append the same labor charge twice.
* Everything else contributes ``quantity x unit_price``.

Items awaiting estimate approval (PENDING) are priced like any other item.
Accumulation never rounds; round only when displaying.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from shopdesk.domain.model.line_item import (
    LaborBasedPricing,
    LaborItem,
    LineItem,
    PartItem,
    ServiceItem,
)
from shopdesk.domain.model.value_objects import Percentage


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    tax: float
    discount: float
    total: float


class LineContribution(NamedTuple):
    item: LineItem
    amount: float
    counted: bool


def line_contributions(items: Iterable[LineItem]) -> Iterator[LineContribution]:
    """Yield every item with the amount it adds to the subtotal (0 if skipped)."""
    items = list(items)
    paired_services = _paired_service_ids(items)
    seen_labor: set[tuple] = set()

    for item in items:
        match item:
            case ServiceItem(pricing=LaborBasedPricing()):
                yield LineContribution(item, 0.0, False)
            case ServiceItem() if item.id in paired_services:
                yield LineContribution(item, 0.0, False)
            case LaborItem():
                key = _labor_key(item)
                if key in seen_labor:
                    yield LineContribution(item, 0.0, False)
                else:
                    seen_labor.add(key)
                    yield LineContribution(item, item.line_total, True)
            case PartItem() | ServiceItem():
                yield LineContribution(item, item.line_total, True)
            case _:
                raise TypeError(f"Unknown line item type: {type(item).__name__}")


def compute_subtotal(items: Iterable[LineItem]) -> float:
    subtotal = 0.0
    for contribution in line_contributions(items):
        subtotal += contribution.amount
    return subtotal


def compute_totals(
    items: Iterable[LineItem],
    tax_rate: float = 0.0,
    discount_rate: float = 0.0,
) -> InvoiceTotals:
    """Tax and discount are both percentages of the subtotal, not compounded."""
    subtotal = compute_subtotal(items)
    tax = Percentage(tax_rate).of(subtotal)
    discount = Percentage(discount_rate).of(subtotal)
    return InvoiceTotals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        total=subtotal + tax - discount,
    )


def compute_total(invoice) -> float:
    """Grand total for anything with ``items``, ``tax_rate`` and ``discount_rate``."""
    return compute_totals(invoice.items, invoice.tax_rate, invoice.discount_rate).total


# --- Internal helpers ---------------------------------------------------------


def _paired_service_ids(items: Sequence[LineItem]) -> set[str]:
    """Ids of services whose price lives on a labor row."""
    service_ids = {item.id for item in items if isinstance(item, ServiceItem)}
    labor_ids = {item.id for item in items if isinstance(item, LaborItem)}

    paired: set[str] = set()
    for item in items:
        if isinstance(item, LaborItem) and item.linked_item_id in service_ids:
            paired.add(item.linked_item_id)
        elif isinstance(item, ServiceItem) and item.linked_item_id in labor_ids:
            paired.add(item.id)
    return paired


def _labor_key(item: LaborItem) -> tuple:
    if item.linked_item_id is not None:
        return ("linked", item.linked_item_id)
    return ("row", item.name, item.quantity, item.unit_price)
