"""Unit tests for the invoice pricing engine."""

import pytest

from shopdesk.domain.model.line_item import (
    EstimateStatus,
    LaborBasedPricing,
    LaborItem,
    LineItem,
    PartItem,
    ServiceItem,
)
from shopdesk.domain.model.value_objects import format_currency
from shopdesk.domain.service.pricing import (
    compute_subtotal,
    compute_total,
    compute_totals,
    line_contributions,
)


class _FeeItem(LineItem):

    @property
    def kind(self) -> str:
        return "fee"


def _brake_job():
    return [
        PartItem(id="p1", name="Brake pads", quantity=2, unit_price=10),
        LaborItem(id="l1", name="Brake labor", quantity=1, unit_price=50, linked_item_id="svc1"),
        ServiceItem(
            id="svc1", name="Brake service", unit_price=0,
            pricing=LaborBasedPricing(hours=1, rate_name="Standard"),
        ),
    ]


class TestSubtotal:

    def test_labor_based_service_counted_once_through_its_labor_row(self):
        totals = compute_totals(_brake_job(), tax_rate=8, discount_rate=0)

        assert totals.subtotal == pytest.approx(70)
        assert totals.tax == pytest.approx(5.6)
        assert format_currency(totals.total) == "$75.60"

    def test_labor_row_duplicated_by_linked_id_counted_once(self):
        items = _brake_job() + [
            LaborItem(id="l2", name="Brake labor", quantity=1, unit_price=50, linked_item_id="svc1"),
        ]
        assert compute_subtotal(items) == pytest.approx(70)

    def test_identical_unlinked_labor_rows_counted_once(self):
        items = [
            LaborItem(id="l1", name="Diagnosis", quantity=1.5, unit_price=80),
            LaborItem(id="l2", name="Diagnosis", quantity=1.5, unit_price=80),
        ]
        assert compute_subtotal(items) == pytest.approx(120)

    def test_labor_rows_differing_in_price_both_count(self):
        items = [
            LaborItem(id="l1", name="Diagnosis", quantity=1, unit_price=80),
            LaborItem(id="l2", name="Diagnosis", quantity=1, unit_price=90),
        ]
        assert compute_subtotal(items) == pytest.approx(170)

    def test_flat_service_paired_with_labor_row_is_not_priced_itself(self):
        items = [
            ServiceItem(id="s1", name="Alignment", unit_price=40),
            LaborItem(id="l1", name="Alignment labor", quantity=1, unit_price=60,
                      linked_item_id="s1"),
        ]
        assert compute_subtotal(items) == pytest.approx(60)

    def test_service_pointing_at_labor_row_is_not_priced_itself(self):
        items = [
            LaborItem(id="l1", name="Alignment labor", quantity=1, unit_price=60),
            ServiceItem(id="s1", name="Alignment", unit_price=40, linked_item_id="l1"),
        ]
        assert compute_subtotal(items) == pytest.approx(60)

    def test_standalone_flat_service_is_priced(self):
        items = [ServiceItem(id="s1", name="Car wash", quantity=2, unit_price=12.5)]
        assert compute_subtotal(items) == pytest.approx(25)

    def test_pending_estimate_items_count(self):
        items = [
            ServiceItem(id="s1", name="Car wash", unit_price=15,
                        estimate_status=EstimateStatus.PENDING),
        ]
        assert compute_subtotal(items) == pytest.approx(15)

    def test_empty_invoice_is_zero(self):
        assert compute_subtotal([]) == 0
        assert format_currency(compute_totals([]).total) == "$0.00"

    def test_no_intermediate_rounding(self):
        items = [PartItem(id=f"p{i}", name="Washer", quantity=1, unit_price=0.333)
                 for i in range(3)]
        assert compute_subtotal(items) == pytest.approx(0.999)

    def test_unknown_item_type_rejected(self):
        with pytest.raises(TypeError):
            compute_subtotal([_FeeItem(id="x", name="Mystery")])

    def test_base_line_item_is_abstract(self):
        with pytest.raises(TypeError):
            LineItem(id="x", name="Mystery")


class TestTotals:

    def test_tax_and_discount_are_both_taken_from_subtotal(self):
        items = [PartItem(id="p1", name="Tyre", quantity=4, unit_price=100)]
        totals = compute_totals(items, tax_rate=10, discount_rate=5)

        assert totals.tax == pytest.approx(40)
        assert totals.discount == pytest.approx(20)
        assert totals.total == pytest.approx(420)

    def test_compute_total_reads_rates_from_invoice(self):
        class _Invoice:
            items = _brake_job()
            tax_rate = 8
            discount_rate = 0

        assert compute_total(_Invoice()) == pytest.approx(75.6)


class TestLineContributions:

    def test_skipped_rows_are_marked_not_counted(self):
        contributions = list(line_contributions(_brake_job()))

        assert [(c.item.id, c.counted) for c in contributions] == [
            ("p1", True), ("l1", True), ("svc1", False),
        ]
        assert contributions[2].amount == 0

    def test_order_is_preserved(self):
        items = list(reversed(_brake_job()))
        assert [c.item.id for c in line_contributions(items)] == ["svc1", "l1", "p1"]
