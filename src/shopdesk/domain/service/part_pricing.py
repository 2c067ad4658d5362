"""Retail price and markup for stocked parts.

``retail = cost x (1 + markup / 100)``.  A part with no cost has no retail
price; a missing or negative markup sells at cost.
"""

from __future__ import annotations


def calculate_retail(cost: float | None, markup_percent: float | None) -> float:
    if not cost or cost <= 0:
        return 0.0
    if not markup_percent or markup_percent < 0:
        return cost
    return cost * (1 + markup_percent / 100)


def calculate_markup(cost: float | None, retail: float | None) -> float:
    """Markup percent that turns ``cost`` into ``retail``; 0 if selling at or below cost."""
    if not cost or cost <= 0:
        return 0.0
    if not retail or retail <= cost:
        return 0.0
    return (retail - cost) / cost * 100


def fill_prices(
    cost: float | None, sell_price: float | None, markup_percent: float | None
) -> tuple[float, float]:
    """Complete a (sell price, markup) pair from whichever of the two is known."""
    sell = sell_price or 0.0
    markup = markup_percent or 0.0
    if not sell:
        sell = calculate_retail(cost, markup)
    elif not markup:
        markup = calculate_markup(cost, sell)
    return sell, markup
