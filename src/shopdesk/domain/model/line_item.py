"""Invoice line items.

A line item is one of three variants: ``PartItem``, ``LaborItem`` or
``ServiceItem``.  A service is either flat-rate or labor-based; a
labor-based service is a zero-price placeholder whose real cost lives in
a separate ``LaborItem`` pointing back at it through ``linked_item_id``.

The order of items on an invoice matters (a labor row follows the part or
service it was generated for), so items are kept in a plain list by the
Invoice aggregate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.inventory import StockSource


class EstimateStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


# ---------------------------------------------------------------------------
# Service pricing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlatPricing:
    """The service row's own unit price is what the customer pays."""


@dataclass(frozen=True)
class LaborBasedPricing:
    """Priced as hours x a named rate, carried by a linked labor row."""

    hours: float = 0.0
    rate_name: str | None = None


ServicePricing = FlatPricing | LaborBasedPricing


# ---------------------------------------------------------------------------
# Line item variants
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class LineItem(ABC):
    """Fields shared by every line item variant.

    Mutable: the estimate workflow stamps status and timestamps in place.
    """

    id: str
    name: str
    quantity: float = 1
    unit_price: float = 0.0
    group_name: str | None = None
    linked_item_id: str | None = None
    estimate_status: EstimateStatus = EstimateStatus.NONE
    estimate_sent_at: datetime | None = None
    estimate_approved_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Line item id is required")
        if self.quantity < 0:
            raise ValidationError(
                f"Quantity for '{self.name}' cannot be negative, got {self.quantity}"
            )
        if self.unit_price < 0:
            raise ValidationError(
                f"Unit price for '{self.name}' cannot be negative, got {self.unit_price}"
            )

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price

    @property
    @abstractmethod
    def kind(self) -> str:
        """Row type as stored: part, labor or service."""


@dataclass(kw_only=True)
class PartItem(LineItem):
    cost_price: float | None = None
    inventory_item_id: str | None = None
    folder_item_id: str | None = None

    @property
    def kind(self) -> str:
        return "part"

    @property
    def is_inventory_linked(self) -> bool:
        return self.inventory_item_id is not None or self.folder_item_id is not None

    @property
    def stock_source(self) -> StockSource | None:
        if self.inventory_item_id is not None:
            return StockSource.INVENTORY
        if self.folder_item_id is not None:
            return StockSource.FOLDER
        return None

    @property
    def stock_item_id(self) -> str | None:
        return self.inventory_item_id or self.folder_item_id


@dataclass(kw_only=True)
class LaborItem(LineItem):
    rate_name: str | None = None

    @property
    def kind(self) -> str:
        return "labor"


@dataclass(kw_only=True)
class ServiceItem(LineItem):
    pricing: ServicePricing = field(default_factory=FlatPricing)

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.is_labor_based and self.unit_price != 0:
            raise ValidationError(
                f"Labor-based service '{self.name}' must have a unit price of 0; "
                f"its cost belongs on the linked labor row"
            )

    @property
    def kind(self) -> str:
        return "service"

    @property
    def is_labor_based(self) -> bool:
        return isinstance(self.pricing, LaborBasedPricing)
