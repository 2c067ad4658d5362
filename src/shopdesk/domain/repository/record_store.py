"""Abstract relational data store.

The only primitive the rest of the domain needs from the hosted store is
table-level CRUD plus *conditional* writes: ``update_where`` and
``delete_where`` report the rows they matched, and zero matched rows is
how a stale version is detected.

Defined in the domain layer so the domain never depends on
infrastructure.  Concrete implementations (Supabase, JSON files,
in-memory) live elsewhere.  Transport failures are raised as
``StoreError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Row = dict[str, Any]


class RecordStore(ABC):

    @abstractmethod
    def fetch(self, table: str, record_id: str) -> Row | None:
        """Return a single row by id, or None."""

    @abstractmethod
    def select(self, table: str, filters: dict[str, Any] | None = None) -> list[Row]:
        """Return every row whose columns equal the given filter values."""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored (with its id)."""

    @abstractmethod
    def update_where(
        self,
        table: str,
        record_id: str,
        values: Row,
        expected_version: int | None = None,
    ) -> list[Row]:
        """Apply ``values`` to the row if its version matches.

        Returns the updated rows; an empty list means nothing matched.
        ``expected_version=None`` writes unconditionally.
        """

    @abstractmethod
    def delete_where(
        self,
        table: str,
        record_id: str,
        expected_version: int | None = None,
    ) -> list[Row]:
        """Delete the row if its version matches and return what was deleted."""
