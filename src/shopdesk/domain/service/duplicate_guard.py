"""Domain service: duplicate suppression for "attach part to job".

Two layers defend "attaching part P x Q to job J happens at most once per
user intent":

1. A process-local TTL cache keyed on ``(job, source, item, quantity)``.
   Catches a double click or a handler firing twice before the first
   store round-trip lands.
2. A store-side lookup for an identical job-part row created within the
   same window.  Catches retries from another process or tab, which the
   local cache cannot see.

Both layers share one window length.  Neither can tell a duplicate from a
genuine second attach of the same part and quantity, so the window is
kept short.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.inventory import StockSource
from shopdesk.domain.model.job_part import JobPartLink
from shopdesk.domain.repository.job_part_repository import JobPartRepository

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 5.0

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

AttachKey = tuple[str, str, str, int]


@dataclass
class _Entry(Generic[V]):
    expires_at: float
    value: V | None = None


class TtlCache(Generic[K, V]):
    """Key -> expiry map with an optional remembered value per key.

    Expired entries are dropped lazily on access.  Not thread-safe; one
    instance belongs to one event loop.
    """

    def __init__(
        self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        if ttl_seconds <= 0:
            raise ValidationError("TTL must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[K, _Entry[V]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def add(self, key: K, value: V | None = None) -> None:
        self._entries[key] = _Entry(self._clock() + self._ttl, value)

    def set_value(self, key: K, value: V) -> None:
        """Attach a value to a live key without extending its expiry."""
        entry = self._live_entry(key)
        if entry is not None:
            entry.value = value

    def get(self, key: K) -> V | None:
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    def discard(self, key: K) -> None:
        self._entries.pop(key, None)

    def purge(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __contains__(self, key: object) -> bool:
        return self._live_entry(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        self.purge()
        return len(self._entries)

    def _live_entry(self, key: K) -> _Entry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DuplicateSuppressionGuard:
    """Build once per process and inject wherever parts are attached."""

    def __init__(
        self,
        job_parts: JobPartRepository,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._job_parts = job_parts
        self._window = timedelta(seconds=window_seconds)
        self._recent: TtlCache[AttachKey, JobPartLink] = TtlCache(window_seconds, clock)
        self._now = now

    @staticmethod
    def key(job_id: str, source: StockSource, item_id: str, quantity: int) -> AttachKey:
        return (job_id, source.value, item_id, quantity)

    # --- Layer 1: process-local ----------------------------------------------

    def claim(self, key: AttachKey) -> bool:
        """Take ownership of ``key``.

        Returns False if an identical call is still inside the window, in
        which case the caller must not proceed.
        """
        if key in self._recent:
            logger.info("Suppressed duplicate attach %s (local)", key)
            return False
        self._recent.add(key)
        return True

    def remember(self, key: AttachKey, link: JobPartLink) -> None:
        """Record the outcome of a claimed call for later duplicates."""
        self._recent.set_value(key, link)

    def previous(self, key: AttachKey) -> JobPartLink | None:
        """The link created by the call that owns ``key``, if it finished."""
        return self._recent.get(key)

    def release(self, key: AttachKey) -> None:
        """Give up a claim so a corrected retry is not suppressed."""
        self._recent.discard(key)

    # --- Layer 2: store-side --------------------------------------------------

    def find_store_duplicate(
        self, job_id: str, source: StockSource, item_id: str, quantity: int
    ) -> JobPartLink | None:
        since = self._now() - self._window
        existing = self._job_parts.find_recent(job_id, source, item_id, quantity, since)
        if existing is not None:
            logger.info(
                "Found job part %s created at %s for job %s; not inserting again",
                existing.id, existing.created_at, job_id,
            )
        return existing
