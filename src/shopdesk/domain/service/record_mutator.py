"""Domain service: optimistic-concurrency record mutator.

Every versioned row carries an integer ``version`` that starts at 1 and
goes up by exactly one per accepted write.  A write names the version it
was based on and only lands if the stored version still matches; the
store reporting zero matched rows is a version conflict, not an error.

Versions are fencing tokens, not timestamps, so clock skew between
clients cannot make a stale write succeed.  Retries are bounded; once
they run out the conflict is handed back to the caller, who decides
whether to reload.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from shopdesk.domain.exceptions import StoreError, ValidationError, VersionConflict
from shopdesk.domain.repository.record_store import RecordStore, Row
from shopdesk.domain.result import Result

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_SECONDS = 0.1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordMutator:

    def __init__(
        self,
        store: RecordStore,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_retries < 1:
            raise ValidationError("max_retries must be at least 1")
        self._store = store
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._now = now

    def create(self, table: str, record: Row) -> Result[Row]:
        """Insert a new row at version 1."""
        stamp = self._now().isoformat()
        row = {**record, "version": 1, "created_at": stamp, "updated_at": stamp}
        try:
            created = self._store.insert(table, row)
        except StoreError as exc:
            logger.error("Create failed on %s: %s", table, exc)
            return Result.failure(exc)
        logger.info("Created %s id=%s version=1", table, created.get("id"))
        return Result.success(created)

    def update(
        self,
        table: str,
        record_id: str,
        expected_version: int,
        patch: dict[str, Any],
        max_retries: int | None = None,
    ) -> Result[Row]:
        """Compare-and-swap update with bounded retry.

        On a version conflict the current version is re-fetched and the
        same patch is re-applied after ``backoff x attempt`` seconds.
        Returns ``VersionConflict`` once ``max_retries`` attempts have all
        lost the race.
        """
        attempts = self._max_retries if max_retries is None else max_retries
        if attempts < 1:
            return Result.failure(ValidationError("max_retries must be at least 1"))

        version = expected_version
        for attempt in range(1, attempts + 1):
            logger.debug(
                "Attempt %d/%d updating %s id=%s version=%s",
                attempt, attempts, table, record_id, version,
            )
            values = {
                **patch,
                "version": version + 1,
                "updated_at": self._now().isoformat(),
            }
            try:
                rows = self._store.update_where(
                    table, record_id, values, expected_version=version
                )
            except StoreError as exc:
                logger.error("Update failed on %s id=%s: %s", table, record_id, exc)
                return Result.failure(exc)

            if rows:
                logger.info(
                    "Updated %s id=%s to version %d", table, record_id, version + 1
                )
                return Result.success(rows[0])

            logger.warning(
                "Version conflict on %s id=%s (attempt %d/%d)",
                table, record_id, attempt, attempts,
            )
            if attempt >= attempts:
                break

            try:
                latest = self._store.fetch(table, record_id)
            except StoreError as exc:
                logger.error("Failed to fetch latest %s id=%s: %s", table, record_id, exc)
                return Result.failure(
                    StoreError("Failed to fetch latest record version")
                )
            if latest is None:
                return Result.failure(
                    StoreError("Failed to fetch latest record version")
                )

            version = latest["version"]
            logger.debug("Retrying %s id=%s with version %s", table, record_id, version)
            self._sleep(self._backoff_seconds * attempt)

        logger.error("Max retries reached for %s id=%s", table, record_id)
        return Result.failure(VersionConflict(table, record_id))

    def delete(self, table: str, record_id: str, expected_version: int) -> Result[None]:
        """Compare-and-swap delete.  No retry: deleting a newer version is
        never what the caller asked for."""
        try:
            rows = self._store.delete_where(
                table, record_id, expected_version=expected_version
            )
        except StoreError as exc:
            logger.error("Delete failed on %s id=%s: %s", table, record_id, exc)
            return Result.failure(exc)

        if not rows:
            logger.warning("Delete conflict on %s id=%s", table, record_id)
            return Result.failure(VersionConflict(table, record_id))

        logger.info("Deleted %s id=%s", table, record_id)
        return Result.success(None)
