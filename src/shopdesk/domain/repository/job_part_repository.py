"""Abstract repository for job-part links.

Inserting or deleting through this repository is what fires the stock
trigger, so implementations must surface a trigger rejection as
``StoreError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from shopdesk.domain.model.inventory import StockSource
from shopdesk.domain.model.job_part import JobPartLink


class JobPartRepository(ABC):

    @abstractmethod
    def get_by_id(self, link_id: str) -> JobPartLink | None:
        """Return a job-part link by its ID, or None if not found."""

    @abstractmethod
    def find_recent(
        self,
        job_id: str,
        source: StockSource,
        item_id: str,
        quantity: int,
        since: datetime,
    ) -> JobPartLink | None:
        """Return the newest identical link created at or after ``since``."""

    @abstractmethod
    def list_for_job(self, job_id: str) -> list[JobPartLink]:
        """Return every link on a job, newest first."""

    @abstractmethod
    def insert(self, link: JobPartLink) -> JobPartLink:
        """Persist a new link; the stock trigger deducts stock."""

    @abstractmethod
    def delete(self, link_id: str) -> JobPartLink | None:
        """Delete a link and return it; the stock trigger returns stock."""
