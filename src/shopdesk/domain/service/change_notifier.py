"""Inventory change notifications for dependent views."""

from __future__ import annotations

import logging
from collections.abc import Callable

from shopdesk.domain.model.job_part import InventoryChange

logger = logging.getLogger(__name__)

Subscriber = Callable[[InventoryChange], None]


class ChangeNotifier:

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, change: InventoryChange) -> None:
        # Subscriber failures never fail the publishing operation
        for subscriber in list(self._subscribers):
            try:
                subscriber(change)
            except Exception:
                logger.exception("Inventory change subscriber failed for %s", change)
