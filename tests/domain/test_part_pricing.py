"""Unit tests for part retail and markup calculations."""

import pytest

from shopdesk.domain.service.part_pricing import (
    calculate_markup,
    calculate_retail,
    fill_prices,
)


class TestRetail:

    def test_markup_applied_to_cost(self):
        assert calculate_retail(40, 25) == pytest.approx(50)

    @pytest.mark.parametrize("markup", [None, 0, -10])
    def test_no_markup_sells_at_cost(self, markup):
        assert calculate_retail(40, markup) == 40

    @pytest.mark.parametrize("cost", [None, 0, -5])
    def test_no_cost_means_no_price(self, cost):
        assert calculate_retail(cost, 50) == 0


class TestMarkup:

    def test_markup_from_cost_and_retail(self):
        assert calculate_markup(40, 50) == pytest.approx(25)

    def test_selling_at_or_below_cost_is_zero(self):
        assert calculate_markup(40, 40) == 0
        assert calculate_markup(40, 30) == 0

    def test_no_cost_is_zero(self):
        assert calculate_markup(0, 30) == 0


class TestFillPrices:

    def test_sell_price_derived_from_markup(self):
        sell, markup = fill_prices(10, 0, 50)
        assert sell == pytest.approx(15)
        assert markup == 50

    def test_markup_derived_from_sell_price(self):
        sell, markup = fill_prices(10, 12, 0)
        assert sell == 12
        assert markup == pytest.approx(20)

    def test_both_given_are_kept(self):
        assert fill_prices(10, 30, 5) == (30, 5)
