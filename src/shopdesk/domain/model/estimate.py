"""Estimate approval state machine for invoice line items.

    NONE --send--> PENDING --approve--> APPROVED
                           --decline--> DECLINED

Only services and inventory-linked parts take part in the estimate flow.
Labor rows and parts typed in by staff stay at NONE forever.  APPROVED
and DECLINED are terminal for a send cycle, so re-sending an estimate
only picks up items that were never sent.
"""

from __future__ import annotations

from datetime import datetime

from shopdesk.domain.exceptions import InvalidTransition
from shopdesk.domain.model.line_item import (
    EstimateStatus,
    LineItem,
    PartItem,
    ServiceItem,
)

_ALLOWED: dict[EstimateStatus, frozenset[EstimateStatus]] = {
    EstimateStatus.NONE: frozenset({EstimateStatus.PENDING}),
    EstimateStatus.PENDING: frozenset({EstimateStatus.APPROVED, EstimateStatus.DECLINED}),
    EstimateStatus.APPROVED: frozenset(),
    EstimateStatus.DECLINED: frozenset(),
}


def can_transition(current: EstimateStatus, target: EstimateStatus) -> bool:
    return target in _ALLOWED[current]


def is_estimate_eligible(item: LineItem) -> bool:
    match item:
        case ServiceItem():
            return True
        case PartItem():
            return item.is_inventory_linked
        case _:
            return False


def mark_sent(item: LineItem, now: datetime) -> bool:
    """Move an eligible, untouched item to PENDING.

    Returns False (and leaves the item alone) when the item is not
    eligible or has already been through a send cycle.
    """
    if not is_estimate_eligible(item):
        return False
    if item.estimate_status is not EstimateStatus.NONE:
        return False
    item.estimate_status = EstimateStatus.PENDING
    item.estimate_sent_at = now
    return True


def mark_approved(item: LineItem, now: datetime) -> None:
    _check(item, EstimateStatus.APPROVED)
    item.estimate_status = EstimateStatus.APPROVED
    item.estimate_approved_at = now


def mark_declined(item: LineItem) -> None:
    _check(item, EstimateStatus.DECLINED)
    item.estimate_status = EstimateStatus.DECLINED


def _check(item: LineItem, target: EstimateStatus) -> None:
    if not can_transition(item.estimate_status, target):
        raise InvalidTransition(
            f"Cannot move '{item.name}' from {item.estimate_status.value} "
            f"to {target.value}"
        )
