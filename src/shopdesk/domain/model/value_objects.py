"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.

Currency amounts are plain floats: totals accumulate without rounding
between line items and are only rounded for display (``format_currency``).
"""

from __future__ import annotations

from dataclasses import dataclass

from shopdesk.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity of stock.

    Enforces the invariant that you cannot attach zero or negative parts.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Percentage:
    """A rate between 0 and 100 inclusive (tax, discount, markup)."""

    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ValidationError(
                f"Percentage must be a number, got {type(self.value).__name__}"
            )
        if not 0 <= self.value <= 100:
            raise ValidationError(
                f"Percentage must be between 0 and 100, got {self.value}"
            )

    def of(self, amount: float) -> float:
        return amount * self.value / 100

    def __str__(self) -> str:
        return f"{self.value:g}%"


def format_currency(amount: float) -> str:
    """Round to cents for display only."""
    if amount < 0:
        return f"-${-amount:.2f}"
    return f"${abs(amount):.2f}"
