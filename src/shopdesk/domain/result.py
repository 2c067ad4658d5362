"""Typed outcome of a core operation.

Conflicts, stock shortages and store failures are returned to the caller
instead of raised, so UI layers can render a specific message for each.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from shopdesk.domain.exceptions import DomainException, VersionConflict

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a DomainException, never both.

    ``suppressed`` marks a duplicate call that was recognised and
    short-circuited.  It is still a success: from the caller's point of
    view the work is already done.
    """

    value: T | None = None
    error: DomainException | None = None
    suppressed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def conflict(self) -> bool:
        return isinstance(self.error, VersionConflict)

    def unwrap(self) -> T | None:
        """Return the value, raising the carried error if there is one."""
        if self.error is not None:
            raise self.error
        return self.value

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def success(value: T | None = None, suppressed: bool = False) -> Result[T]:
        return Result(value=value, suppressed=suppressed)

    @staticmethod
    def failure(error: DomainException) -> Result[T]:
        return Result(error=error)
