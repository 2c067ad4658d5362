"""Integration tests for the invoice and estimate use cases.

Runs the real RecordMutator and StoreInvoiceRepository over an in-memory
store so version conflicts behave as they do against the database.
"""

import pytest

from shopdesk.application.add_line_item import AddLineItemHandler
from shopdesk.application.attach_part import AttachPartHandler
from shopdesk.application.create_invoice import CreateInvoiceHandler
from shopdesk.application.detach_part import DetachPartHandler
from shopdesk.application.pay_invoice import PayInvoiceHandler
from shopdesk.application.reconcile_invoice_items import ReconcileInvoiceItemsHandler
from shopdesk.application.respond_to_estimate import RespondToEstimateHandler
from shopdesk.application.save_invoice_items import SaveInvoiceItemsHandler
from shopdesk.application.send_estimate import SendEstimateHandler
from shopdesk.application.show_invoice import ShowInvoiceHandler
from shopdesk.domain.exceptions import (
    DuplicateSubmission,
    EntityNotFoundError,
    InsufficientStock,
    InvalidTransition,
    StoreError,
    ValidationError,
    VersionConflict,
)
from shopdesk.domain.model.inventory import StockLevel
from shopdesk.domain.model.line_item import (
    EstimateStatus,
    LaborBasedPricing,
    LaborItem,
    PartItem,
    ServiceItem,
)
from shopdesk.domain.service.change_notifier import ChangeNotifier
from shopdesk.domain.service.duplicate_guard import DuplicateSuppressionGuard
from shopdesk.domain.service.record_mutator import RecordMutator
from shopdesk.infrastructure.persistence.store_invoice_repository import (
    StoreInvoiceRepository,
)
from tests.fakes import (
    FakeClock,
    FakeInventoryRepository,
    FakeJobPartRepository,
    FakeRecordStore,
    FakeSleep,
)


def _setup():
    store = FakeRecordStore()
    clock = FakeClock()
    repo = StoreInvoiceRepository(store, RecordMutator(store, sleep=FakeSleep(), now=clock.now))
    invoice = CreateInvoiceHandler(repo).handle("job-1", "shop-1", tax_rate=8).unwrap()
    AddLineItemHandler(repo).handle(
        invoice.id,
        PartItem(id="p1", name="Brake pads", quantity=2, unit_price=10,
                 inventory_item_id="item-1"),
        LaborItem(id="l1", name="Brake labor", quantity=1, unit_price=50, linked_item_id="svc1"),
        ServiceItem(id="svc1", name="Brake service", unit_price=0,
                    pricing=LaborBasedPricing(hours=1)),
    ).unwrap()
    return store, repo, clock, invoice.id


def _other_client_edits(store, invoice_id):
    store.bump("invoices", invoice_id, tax_rate=9)


class TestCreateAndShow:

    def test_new_invoice_is_version_one(self):
        store = FakeRecordStore()
        repo = StoreInvoiceRepository(store, RecordMutator(store, sleep=FakeSleep()))

        invoice = CreateInvoiceHandler(repo).handle("job-1").unwrap()

        assert invoice.version == 1
        assert invoice.items == []

    def test_blank_job_rejected(self):
        store = FakeRecordStore()
        repo = StoreInvoiceRepository(store, RecordMutator(store, sleep=FakeSleep()))
        assert isinstance(CreateInvoiceHandler(repo).handle(" ").error, ValidationError)

    def test_show_formats_totals_and_marks_unpriced_rows(self):
        _, repo, _, invoice_id = _setup()

        dto = ShowInvoiceHandler(repo).handle(invoice_id)

        assert dto.version == 2
        assert dto.subtotal == "$70.00"
        assert dto.tax == "$5.60"
        assert dto.total == "$75.60"
        assert [(item.id, item.priced) for item in dto.items] == [
            ("p1", True), ("l1", True), ("svc1", False),
        ]

    def test_show_missing_invoice_raises(self):
        _, repo, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            ShowInvoiceHandler(repo).handle("nope")

    def test_items_survive_the_round_trip_through_the_store(self):
        _, repo, _, invoice_id = _setup()

        service = repo.get_by_id(invoice_id).find_item("svc1")

        assert isinstance(service, ServiceItem)
        assert service.pricing == LaborBasedPricing(hours=1)


class TestEstimateHandlers:

    def test_send_then_approve(self):
        _, repo, clock, invoice_id = _setup()
        sent = SendEstimateHandler(repo, now=clock.now).handle(invoice_id).unwrap()
        assert [item.id for item in sent] == ["p1", "svc1"]

        clock.advance(60)
        invoice = RespondToEstimateHandler(repo, now=clock.now).approve(invoice_id, "p1").unwrap()

        item = invoice.find_item("p1")
        assert item.estimate_status is EstimateStatus.APPROVED
        assert item.estimate_approved_at == clock.now()

    def test_second_send_with_nothing_new_does_not_write(self):
        store, repo, clock, invoice_id = _setup()
        SendEstimateHandler(repo, now=clock.now).handle(invoice_id)
        writes = store.update_calls

        result = SendEstimateHandler(repo, now=clock.now).handle(invoice_id)

        assert result.ok and result.value == []
        assert store.update_calls == writes

    def test_decline_removes_item(self):
        _, repo, clock, invoice_id = _setup()
        SendEstimateHandler(repo, now=clock.now).handle(invoice_id)

        invoice = RespondToEstimateHandler(repo).decline(invoice_id, "p1").unwrap()

        assert [item.id for item in invoice.items] == ["l1", "svc1"]
        assert invoice.subtotal == pytest.approx(50)

    def test_invalid_transition_is_returned(self):
        _, repo, _, invoice_id = _setup()
        result = RespondToEstimateHandler(repo).approve(invoice_id, "p1")
        assert isinstance(result.error, InvalidTransition)

    def test_concurrent_edit_surfaces_as_conflict(self):
        store, repo, clock, invoice_id = _setup()
        SendEstimateHandler(repo, now=clock.now).handle(invoice_id)
        store.before_update = lambda table, record_id: _other_client_edits(store, record_id)

        result = RespondToEstimateHandler(repo).approve(invoice_id, "p1")

        assert isinstance(result.error, VersionConflict)
        # The other client's write is intact, ours is not blindly re-applied
        row = store.fetch("invoices", invoice_id)
        assert row["tax_rate"] == 9
        assert row["items"][0]["estimate_status"] == "pending"

    def test_store_outage_is_returned(self):
        store, repo, clock, invoice_id = _setup()
        store.fail_fetches = True
        result = SendEstimateHandler(repo, now=clock.now).handle(invoice_id)
        assert isinstance(result.error, StoreError)


class TestPayInvoice:

    def test_pay_bumps_version(self):
        _, repo, _, invoice_id = _setup()

        invoice = PayInvoiceHandler(repo).handle(invoice_id, 2).unwrap()

        assert invoice.status.value == "paid"
        assert invoice.version == 3

    def test_stale_version_is_retried(self):
        store, repo, _, invoice_id = _setup()
        _other_client_edits(store, invoice_id)

        invoice = PayInvoiceHandler(repo).handle(invoice_id, 2).unwrap()

        assert invoice.version == 4
        assert invoice.tax_rate == 9

    def test_already_paid_rejected(self):
        _, repo, _, invoice_id = _setup()
        PayInvoiceHandler(repo).handle(invoice_id, 2)

        result = PayInvoiceHandler(repo).handle(invoice_id, 3)

        assert isinstance(result.error, ValidationError)

    def test_paid_invoice_cannot_take_new_items(self):
        _, repo, _, invoice_id = _setup()
        PayInvoiceHandler(repo).handle(invoice_id, 2)

        result = AddLineItemHandler(repo).handle(
            invoice_id, ServiceItem(id="s9", name="Wash", unit_price=10)
        )

        assert isinstance(result.error, ValidationError)


class TestSaveInvoiceItems:

    def _handler(self, repo, clock):
        inventory = FakeInventoryRepository([StockLevel("item-1", "Brake pads", 10)])
        job_parts = FakeJobPartRepository(inventory, now=clock.now)
        guard = DuplicateSuppressionGuard(job_parts, 5.0, clock=clock, now=clock.now)
        attach = AttachPartHandler(job_parts, inventory, guard, ChangeNotifier())
        detach = DetachPartHandler(job_parts, guard, ChangeNotifier())
        attach.handle("job-1", "item-1", 2)
        reconcile = ReconcileInvoiceItemsHandler(job_parts, inventory, attach, detach)
        return SaveInvoiceItemsHandler(repo, reconcile), inventory

    def test_removing_a_part_saves_and_returns_stock(self):
        _, repo, clock, invoice_id = _setup()
        handler, inventory = self._handler(repo, clock)
        items = [item for item in repo.get_by_id(invoice_id).items if item.id != "p1"]

        saved = handler.handle(invoice_id, 2, items).unwrap()

        assert saved.invoice.version == 3
        assert [adj.action for adj in saved.adjustments] == ["detached"]
        assert saved.failed_adjustments == []
        assert inventory.on_hand("item-1") == 10

    def test_conflicting_save_leaves_stock_alone(self):
        store, repo, clock, invoice_id = _setup()
        handler, inventory = self._handler(repo, clock)
        items = [item for item in repo.get_by_id(invoice_id).items if item.id != "p1"]
        _other_client_edits(store, invoice_id)

        result = handler.handle(invoice_id, 2, items)

        assert result.conflict
        assert inventory.on_hand("item-1") == 8
        assert [item["id"] for item in store.fetch("invoices", invoice_id)["items"]] == [
            "p1", "l1", "svc1",
        ]


def _stock(clock):
    inventory = FakeInventoryRepository([StockLevel("item-1", "Brake pads", 10, shop_id="shop-1")])
    job_parts = FakeJobPartRepository(inventory, now=clock.now)
    guard = DuplicateSuppressionGuard(job_parts, 5.0, clock=clock, now=clock.now)
    attach = AttachPartHandler(job_parts, inventory, guard, ChangeNotifier())
    detach = DetachPartHandler(job_parts, guard, ChangeNotifier())
    reconcile = ReconcileInvoiceItemsHandler(job_parts, inventory, attach, detach)
    return inventory, job_parts, attach, detach, reconcile


class TestDeclineReturnsStock:

    def _declining(self):
        store, repo, clock, invoice_id = _setup()
        inventory, job_parts, attach, _, reconcile = _stock(clock)
        attach.handle("job-1", "item-1", 2, "shop-1")
        SendEstimateHandler(repo, now=clock.now).handle(invoice_id)
        return store, repo, invoice_id, inventory, job_parts, reconcile

    def test_declined_part_leaves_the_job(self):
        _, repo, invoice_id, inventory, job_parts, reconcile = self._declining()

        RespondToEstimateHandler(repo, reconcile=reconcile).decline(invoice_id, "p1").unwrap()

        assert job_parts.all() == []
        assert inventory.on_hand("item-1") == 10

    def test_approval_keeps_the_part(self):
        _, repo, invoice_id, inventory, job_parts, reconcile = self._declining()

        RespondToEstimateHandler(repo, reconcile=reconcile).approve(invoice_id, "p1").unwrap()

        assert len(job_parts.all()) == 1
        assert inventory.on_hand("item-1") == 8

    def test_declining_a_service_touches_no_stock(self):
        _, repo, invoice_id, inventory, job_parts, reconcile = self._declining()

        RespondToEstimateHandler(repo, reconcile=reconcile).decline(invoice_id, "svc1").unwrap()

        assert len(job_parts.all()) == 1
        assert inventory.on_hand("item-1") == 8

    def test_conflicting_decline_keeps_the_part(self):
        store, repo, invoice_id, inventory, job_parts, reconcile = self._declining()
        store.before_update = lambda table, record_id: _other_client_edits(store, record_id)

        result = RespondToEstimateHandler(repo, reconcile=reconcile).decline(invoice_id, "p1")

        assert result.conflict
        assert len(job_parts.all()) == 1
        assert inventory.on_hand("item-1") == 8



class TestAddStockedPart:

    def _setup(self):
        store, repo, clock, invoice_id = _setup()
        inventory, job_parts, attach, detach, _ = _stock(clock)
        handler = AddLineItemHandler(repo, attach=attach, detach=detach)
        return store, repo, handler, invoice_id, inventory, job_parts

    @staticmethod
    def _rotor(item_id="p2", quantity=1):
        return PartItem(id=item_id, name="Rotor", quantity=quantity, unit_price=80,
                        cost_price=50, inventory_item_id="item-1")

    def test_stocked_part_is_attached_to_the_job(self):
        _, _, handler, invoice_id, inventory, job_parts = self._setup()

        invoice = handler.handle(invoice_id, self._rotor()).unwrap()

        assert invoice.find_item("p2").unit_price == 80
        [link] = job_parts.all()
        assert (link.job_id, link.quantity, link.shop_id) == ("job-1", 1, "shop-1")
        assert link.sell_price == 80
        assert link.markup_percent == pytest.approx(60)
        assert inventory.on_hand("item-1") == 9

    def test_repeat_submission_adds_no_second_line(self):
        _, repo, handler, invoice_id, inventory, job_parts = self._setup()
        handler.handle(invoice_id, self._rotor("p2")).unwrap()

        result = handler.handle(invoice_id, self._rotor("p3"))

        assert isinstance(result.error, DuplicateSubmission)
        assert [item.id for item in repo.get_by_id(invoice_id).items] == [
            "p1", "l1", "svc1", "p2",
        ]
        assert len(job_parts.all()) == 1
        assert inventory.on_hand("item-1") == 9

    def test_failed_save_gives_the_stock_back(self):
        store, repo, handler, invoice_id, inventory, job_parts = self._setup()
        store.before_update = lambda table, record_id: _other_client_edits(store, record_id)

        result = handler.handle(invoice_id, self._rotor())

        assert result.conflict
        assert job_parts.all() == []
        assert inventory.on_hand("item-1") == 10

    def test_part_can_be_added_again_after_a_failed_save(self):
        store, _, handler, invoice_id, inventory, _ = self._setup()
        store.before_update = lambda table, record_id: _other_client_edits(store, record_id)
        handler.handle(invoice_id, self._rotor())
        store.before_update = None

        result = handler.handle(invoice_id, self._rotor())

        assert result.ok
        assert inventory.on_hand("item-1") == 9

    def test_shortage_adds_nothing(self):
        _, repo, handler, invoice_id, inventory, job_parts = self._setup()

        result = handler.handle(invoice_id, self._rotor(quantity=11))

        assert isinstance(result.error, InsufficientStock)
        assert repo.get_by_id(invoice_id).version == 2
        assert job_parts.all() == []

    def test_fractional_quantity_rejected(self):
        _, _, handler, invoice_id, _, job_parts = self._setup()

        result = handler.handle(invoice_id, self._rotor(quantity=1.5))

        assert isinstance(result.error, ValidationError)
        assert job_parts.all() == []

    def test_labor_lines_need_no_stock(self):
        _, _, handler, invoice_id, _, job_parts = self._setup()

        result = handler.handle(
            invoice_id, LaborItem(id="l2", name="Diagnosis", quantity=1, unit_price=90)
        )

        assert result.ok
        assert job_parts.all() == []
