"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Money is pre-formatted.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PartDetails:
    """Input: optional overrides recorded on a new job-part row."""

    part_name: str | None = None
    part_number: str | None = None
    cost_price: float = 0.0
    sell_price: float = 0.0
    markup_percent: float = 0.0


@dataclass(frozen=True)
class LineItemDTO:
    """Output: a single line item as displayed to the user."""

    id: str
    kind: str
    name: str
    quantity: float
    unit_price: str  # formatted, e.g. "$15.00"
    amount: str  # what this row adds to the subtotal
    priced: bool  # False for rows whose cost is carried elsewhere
    estimate_status: str


@dataclass(frozen=True)
class InvoiceDTO:
    """Output: a complete invoice as displayed to the user."""

    id: str
    job_id: str | None
    status: str
    version: int
    items: list[LineItemDTO]
    subtotal: str
    tax: str
    discount: str
    total: str


@dataclass(frozen=True)
class JobPartDTO:
    id: str
    job_id: str
    item_id: str
    source: str
    part_name: str | None
    quantity: int
    deducted: bool
    created_at: str | None


@dataclass(frozen=True)
class StockLineDTO:
    item_id: str
    name: str
    source: str
    on_hand: int


@dataclass(frozen=True)
class TransactionDTO:
    created_at: str | None
    item_id: str
    source: str
    transaction_type: str
    quantity: int
    job_id: str | None
    notes: str | None
