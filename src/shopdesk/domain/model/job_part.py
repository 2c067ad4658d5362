"""Job-part link: "this part is on this job".

Inserting a link is what makes the stock trigger deduct stock; deleting
it is what makes the trigger return it.  ``deducted`` is flipped by the
trigger only, never by the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.inventory import StockSource


@dataclass
class JobPartLink:

    id: str | None
    job_id: str
    item_id: str
    quantity: int
    source: StockSource = StockSource.INVENTORY
    shop_id: str | None = None
    part_name: str | None = None
    part_number: str | None = None
    cost_price: float = 0.0
    sell_price: float = 0.0
    markup_percent: float = 0.0
    deducted: bool = False
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError("Job part quantity must be positive")

    @property
    def inventory_item_id(self) -> str | None:
        return self.item_id if self.source is StockSource.INVENTORY else None

    @property
    def folder_item_id(self) -> str | None:
        return self.item_id if self.source is StockSource.FOLDER else None


class ChangeDirection(Enum):
    DEDUCT = "deduct"
    RETURN = "return"


@dataclass(frozen=True)
class InventoryChange:
    """Published after a job-part row is written so views can refresh."""

    item_id: str
    source: StockSource
    job_id: str
    quantity: int
    direction: ChangeDirection
    shop_id: str | None = None


class TransactionType(Enum):
    QUANTITY_DECREASE = "quantity_decrease"
    QUANTITY_INCREASE = "quantity_increase"


@dataclass(frozen=True)
class InventoryTransaction:
    """One audit-trail entry for a stock movement caused by a job."""

    id: str | None
    item_id: str
    source: StockSource
    transaction_type: TransactionType
    quantity: int
    shop_id: str | None = None
    job_id: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
