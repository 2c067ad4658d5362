"""Integration tests for the inventory audit trail."""

import pytest

from shopdesk.application.attach_part import AttachPartHandler
from shopdesk.application.detach_part import DetachPartHandler
from shopdesk.application.record_inventory_transaction import InventoryTransactionRecorder
from shopdesk.application.show_inventory_transactions import ShowInventoryTransactionsHandler
from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.inventory import StockLevel, StockSource
from shopdesk.domain.model.job_part import TransactionType
from shopdesk.domain.service.change_notifier import ChangeNotifier
from shopdesk.domain.service.duplicate_guard import DuplicateSuppressionGuard
from shopdesk.infrastructure.persistence.store_inventory_transaction_repository import (
    StoreInventoryTransactionRepository,
)
from tests.fakes import (
    START,
    FakeClock,
    FakeInventoryRepository,
    FakeJobPartRepository,
    FakeRecordStore,
)


def _setup():
    clock = FakeClock()
    inventory = FakeInventoryRepository([
        StockLevel("item-1", "Oil filter", 10, shop_id="shop-1"),
        StockLevel("fold-1", "Spark plug", 4, StockSource.FOLDER, shop_id="shop-1"),
    ])
    job_parts = FakeJobPartRepository(inventory, now=clock.now)
    guard = DuplicateSuppressionGuard(job_parts, 5.0, clock=clock, now=clock.now)
    transactions = StoreInventoryTransactionRepository(FakeRecordStore(), now=clock.now)
    notifier = ChangeNotifier()
    notifier.subscribe(InventoryTransactionRecorder(transactions))
    attach = AttachPartHandler(job_parts, inventory, guard, notifier)
    detach = DetachPartHandler(job_parts, guard, notifier)
    return attach, detach, transactions, clock


class TestRecording:

    def test_attach_then_detach_newest_first(self):
        attach, detach, transactions, clock = _setup()
        link = attach.handle("job-1", "item-1", 2, "shop-1").unwrap()
        clock.advance(30)
        detach.handle(link.id)

        entries = transactions.list_for_shop("shop-1")

        assert [(e.transaction_type, e.quantity) for e in entries] == [
            (TransactionType.QUANTITY_INCREASE, 2),
            (TransactionType.QUANTITY_DECREASE, 2),
        ]
        assert entries[1].created_at == START
        assert entries[1].job_id == "job-1"
        assert entries[1].notes == "Attached to job job-1"

    def test_suppressed_duplicate_records_nothing(self):
        attach, _, transactions, _ = _setup()
        attach.handle("job-1", "item-1", 1, "shop-1")
        attach.handle("job-1", "item-1", 1, "shop-1")

        assert len(transactions.list_for_shop("shop-1")) == 1

    def test_failed_attach_records_nothing(self):
        attach, _, transactions, _ = _setup()
        attach.handle("job-1", "item-1", 50, "shop-1")

        assert transactions.list_for_shop("shop-1") == []


class TestFilters:

    def _history(self):
        attach, _, transactions, clock = _setup()
        attach.handle("job-1", "item-1", 1, "shop-1")
        clock.advance(10)
        attach.handle("job-2", "fold-1", 2, "shop-1", source=StockSource.FOLDER)
        clock.advance(10)
        attach.handle("job-2", "item-1", 3, "shop-1")
        return transactions

    def test_by_folder_item(self):
        [entry] = self._history().list_for_shop("shop-1", item_id="fold-1")
        assert entry.source is StockSource.FOLDER
        assert entry.quantity == 2

    def test_by_job(self):
        entries = self._history().list_for_shop("shop-1", job_id="job-2")
        assert [e.item_id for e in entries] == ["item-1", "fold-1"]

    def test_limit(self):
        entries = self._history().list_for_shop("shop-1", limit=1)
        assert [e.quantity for e in entries] == [3]

    def test_other_shop_sees_nothing(self):
        assert self._history().list_for_shop("shop-2") == []


class TestShowHistory:

    def test_formats_entries(self):
        attach, _, transactions, _ = _setup()
        attach.handle("job-1", "item-1", 2, "shop-1")

        [dto] = ShowInventoryTransactionsHandler(transactions).handle("shop-1")

        assert dto.created_at == "2024-03-01 09:00:00 UTC"
        assert dto.transaction_type == "quantity_decrease"
        assert dto.source == "inventory"

    def test_non_positive_limit_rejected(self):
        _, _, transactions, _ = _setup()
        with pytest.raises(ValidationError):
            ShowInventoryTransactionsHandler(transactions).handle("shop-1", limit=0)
