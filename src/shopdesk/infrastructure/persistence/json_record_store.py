"""JSON-file-backed implementation of RecordStore.

One file per table (``<data_dir>/<table>.json``) holding a list of rows.
Meant for local use and the CLI; it honours the same conditional-write
contract as the hosted store.
"""

from __future__ import annotations

import json
import re
import uuid
from pathlib import Path
from typing import Any

from shopdesk.domain.exceptions import StoreError
from shopdesk.domain.repository.record_store import RecordStore, Row

_TABLE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


class JsonRecordStore(RecordStore):

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir

    # --- RecordStore interface ------------------------------------------------

    def fetch(self, table: str, record_id: str) -> Row | None:
        for raw in self._load_raw(table):
            if raw.get("id") == record_id:
                return raw
        return None

    def select(self, table: str, filters: dict[str, Any] | None = None) -> list[Row]:
        filters = filters or {}
        return [
            raw
            for raw in self._load_raw(table)
            if all(raw.get(column) == value for column, value in filters.items())
        ]

    def insert(self, table: str, row: Row) -> Row:
        rows = self._load_raw(table)
        stored = dict(row)
        if stored.get("id") is None:
            stored["id"] = uuid.uuid4().hex
        if any(raw.get("id") == stored["id"] for raw in rows):
            raise StoreError(f"Duplicate key: {table}.id = {stored['id']}")
        rows.append(stored)
        self._persist_raw(table, rows)
        return dict(stored)

    def update_where(
        self,
        table: str,
        record_id: str,
        values: Row,
        expected_version: int | None = None,
    ) -> list[Row]:
        rows = self._load_raw(table)
        matched: list[Row] = []
        for raw in rows:
            if raw.get("id") == record_id and self._version_matches(raw, expected_version):
                raw.update(values)
                matched.append(dict(raw))
        if matched:
            self._persist_raw(table, rows)
        return matched

    def delete_where(
        self,
        table: str,
        record_id: str,
        expected_version: int | None = None,
    ) -> list[Row]:
        rows = self._load_raw(table)
        kept: list[Row] = []
        deleted: list[Row] = []
        for raw in rows:
            if raw.get("id") == record_id and self._version_matches(raw, expected_version):
                deleted.append(raw)
            else:
                kept.append(raw)
        if deleted:
            self._persist_raw(table, kept)
        return deleted

    # --- Helpers --------------------------------------------------------------

    @staticmethod
    def _version_matches(raw: Row, expected_version: int | None) -> bool:
        return expected_version is None or raw.get("version") == expected_version

    # --- File helpers ---------------------------------------------------------

    def _path(self, table: str) -> Path:
        if not _TABLE_NAME.match(table):
            raise StoreError(f"Invalid table name: {table!r}")
        return self._data_dir / f"{table}.json"

    def _load_raw(self, table: str) -> list[Row]:
        path = self._path(table)
        if not path.exists():
            return []
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read {path}: {exc}") from exc

    def _persist_raw(self, table: str, rows: list[Row]) -> None:
        path = self._path(table)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(rows, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Cannot write {path}: {exc}") from exc
