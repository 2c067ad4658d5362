"""Unit tests for the estimate approval workflow on the Invoice aggregate."""

from datetime import timedelta

import pytest

from shopdesk.domain.exceptions import EntityNotFoundError, InvalidTransition, ValidationError
from shopdesk.domain.model.estimate import can_transition, is_estimate_eligible
from shopdesk.domain.model.invoice import Invoice, InvoiceStatus
from shopdesk.domain.model.line_item import (
    EstimateStatus,
    LaborBasedPricing,
    LaborItem,
    PartItem,
    ServiceItem,
)
from tests.fakes import START


def _invoice() -> Invoice:
    return Invoice(
        id="inv-1",
        job_id="job-1",
        items=[
            PartItem(id="p-stock", name="Oil filter", quantity=1, unit_price=12,
                     inventory_item_id="item-1"),
            PartItem(id="p-manual", name="Wiper blade", quantity=2, unit_price=8),
            LaborItem(id="l1", name="Brake labor", quantity=2, unit_price=60,
                      linked_item_id="svc1"),
            ServiceItem(id="svc1", name="Brake service", unit_price=0,
                        pricing=LaborBasedPricing(hours=2)),
            ServiceItem(id="wash", name="Car wash", unit_price=15),
        ],
        tax_rate=10,
    )


class TestTransitions:

    def test_allowed_paths(self):
        assert can_transition(EstimateStatus.NONE, EstimateStatus.PENDING)
        assert can_transition(EstimateStatus.PENDING, EstimateStatus.APPROVED)
        assert can_transition(EstimateStatus.PENDING, EstimateStatus.DECLINED)

    def test_terminal_states_go_nowhere(self):
        for target in EstimateStatus:
            assert not can_transition(EstimateStatus.APPROVED, target)
            assert not can_transition(EstimateStatus.DECLINED, target)

    def test_eligibility(self):
        items = {item.id: item for item in _invoice().items}
        assert is_estimate_eligible(items["p-stock"])
        assert is_estimate_eligible(items["wash"])
        assert not is_estimate_eligible(items["p-manual"])
        assert not is_estimate_eligible(items["l1"])


class TestSendEstimate:

    def test_sends_services_and_inventory_parts_only(self):
        invoice = _invoice()

        sent = invoice.send_estimate(START)

        assert [item.id for item in sent] == ["p-stock", "svc1", "wash"]
        for item in sent:
            assert item.estimate_status is EstimateStatus.PENDING
            assert item.estimate_sent_at == START
        assert invoice.find_item("p-manual").estimate_status is EstimateStatus.NONE

    def test_resend_only_picks_up_untouched_items(self):
        invoice = _invoice()
        invoice.send_estimate(START)
        invoice.approve_estimate("wash", START)
        invoice.decline_estimate("p-stock")
        invoice.add_item(ServiceItem(id="rotate", name="Tyre rotation", unit_price=25))

        later = START + timedelta(hours=1)
        sent = invoice.send_estimate(later)

        assert [item.id for item in sent] == ["rotate"]
        assert invoice.find_item("wash").estimate_status is EstimateStatus.APPROVED
        assert invoice.find_item("svc1").estimate_sent_at == START

    def test_paid_invoice_cannot_send(self):
        invoice = _invoice()
        invoice.mark_paid()
        with pytest.raises(ValidationError):
            invoice.send_estimate(START)


class TestApprove:

    def test_pending_to_approved_stamps_time(self):
        invoice = _invoice()
        invoice.send_estimate(START)

        item = invoice.approve_estimate("wash", START + timedelta(minutes=5))

        assert item.estimate_status is EstimateStatus.APPROVED
        assert item.estimate_approved_at == START + timedelta(minutes=5)

    def test_approving_unsent_item_rejected(self):
        with pytest.raises(InvalidTransition):
            _invoice().approve_estimate("wash", START)

    def test_approving_twice_rejected(self):
        invoice = _invoice()
        invoice.send_estimate(START)
        invoice.approve_estimate("wash", START)
        with pytest.raises(InvalidTransition):
            invoice.approve_estimate("wash", START)

    def test_unknown_item_rejected(self):
        with pytest.raises(EntityNotFoundError):
            _invoice().approve_estimate("nope", START)


class TestDecline:

    def test_declined_item_leaves_invoice_and_subtotal(self):
        invoice = _invoice()
        invoice.send_estimate(START)
        before = invoice.subtotal

        invoice.decline_estimate("wash")

        assert "wash" not in [item.id for item in invoice.items]
        assert before - invoice.subtotal == pytest.approx(15)

    def test_declining_labor_based_service_leaves_subtotal_unchanged(self):
        invoice = _invoice()
        invoice.send_estimate(START)
        before = invoice.subtotal

        invoice.decline_estimate("svc1")

        assert invoice.subtotal == pytest.approx(before)
        assert "l1" in [item.id for item in invoice.items]

    def test_declining_unsent_item_rejected(self):
        invoice = _invoice()
        with pytest.raises(InvalidTransition):
            invoice.decline_estimate("wash")
        assert "wash" in [item.id for item in invoice.items]


class TestInvoice:

    def test_totals_follow_items(self):
        invoice = _invoice()
        # 12 + 16 + 120 + 0 + 15
        assert invoice.subtotal == pytest.approx(163)
        assert invoice.total == pytest.approx(179.3)

    def test_duplicate_item_id_rejected(self):
        invoice = _invoice()
        with pytest.raises(ValidationError, match="already on this invoice"):
            invoice.add_item(ServiceItem(id="wash", name="Another wash", unit_price=1))

    def test_replace_items_rejects_duplicate_ids(self):
        invoice = _invoice()
        wash = invoice.find_item("wash")
        with pytest.raises(ValidationError):
            invoice.replace_items([wash, wash])

    def test_mark_paid_twice_rejected(self):
        invoice = _invoice()
        invoice.mark_paid()
        assert invoice.status is InvoiceStatus.PAID
        with pytest.raises(ValidationError, match="already paid"):
            invoice.mark_paid()

    def test_out_of_range_tax_rate_rejected(self):
        with pytest.raises(ValidationError):
            Invoice(id=None, job_id="job-1", tax_rate=120)

    def test_pending_items_listed(self):
        invoice = _invoice()
        invoice.send_estimate(START)
        assert [item.id for item in invoice.pending_estimate_items()] == [
            "p-stock", "svc1", "wash",
        ]
