"""Domain-level exceptions.

All failures are expressed as subclasses of DomainException so the CLI
layer can catch them uniformly and display user-friendly messages.  Core
operations usually *return* these inside a ``Result`` rather than raising
them; see ``shopdesk.domain.result``.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Malformed input or a violated invariant."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransition(ValidationError):
    """An estimate status change that the state machine does not allow."""


class StoreError(DomainException):
    """Transport or server failure reported by the data store.

    Also carries rejections made by the stock trigger at commit time,
    which are authoritative over any client-side pre-check.
    """


class VersionConflict(DomainException):
    """The record changed under us and retries were exhausted."""

    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(
            "This record was modified by another user. "
            "Please refresh and try again."
        )
        self.table = table
        self.record_id = record_id


class InsufficientStock(DomainException):
    """Not enough stock on hand to cover the requested quantity."""

    def __init__(self, item_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient inventory for {item_name} "
            f"(need {requested}, have {available} available)"
        )
        self.item_name = item_name
        self.available = available
        self.requested = requested


class DuplicateSubmission(DomainException):
    """The same part was attached moments ago; the repeat was ignored."""
