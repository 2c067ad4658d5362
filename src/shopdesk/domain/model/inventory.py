"""Stock levels as read by the client.

``quantity_on_hand`` is owned by the stock trigger that fires when a
job-part row is inserted or deleted.  The client only ever reads it to
fail fast before asking for a job-part insertion.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StockSource(Enum):
    """Which stock table an item lives in."""

    INVENTORY = "inventory"
    FOLDER = "folder"


@dataclass(frozen=True)
class StockLevel:
    """Snapshot of one stock row; may already be stale when used."""

    item_id: str
    name: str
    quantity_on_hand: int
    source: StockSource = StockSource.INVENTORY
    shop_id: str | None = None

    def covers(self, quantity: int) -> bool:
        return self.quantity_on_hand >= quantity

    def is_low(self, threshold: int) -> bool:
        return self.quantity_on_hand <= threshold
