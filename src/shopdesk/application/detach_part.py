"""Application service: remove a part from a job.

Deleting the job-part row is the whole operation; the stock trigger
returns the quantity.  Crediting stock here as well would return it
twice.
"""

from __future__ import annotations

import logging

from shopdesk.domain.exceptions import EntityNotFoundError, StoreError
from shopdesk.domain.model.job_part import ChangeDirection, InventoryChange, JobPartLink
from shopdesk.domain.repository.job_part_repository import JobPartRepository
from shopdesk.domain.result import Result
from shopdesk.domain.service.change_notifier import ChangeNotifier
from shopdesk.domain.service.duplicate_guard import DuplicateSuppressionGuard

logger = logging.getLogger(__name__)


class DetachPartHandler:

    def __init__(
        self,
        job_part_repo: JobPartRepository,
        guard: DuplicateSuppressionGuard,
        notifier: ChangeNotifier,
    ) -> None:
        self._job_part_repo = job_part_repo
        self._guard = guard
        self._notifier = notifier

    def handle(self, link_id: str) -> Result[JobPartLink]:
        try:
            link = self._job_part_repo.get_by_id(link_id)
            if link is None:
                return Result.failure(
                    EntityNotFoundError(f"Job part '{link_id}' not found")
                )
            deleted = self._job_part_repo.delete(link_id)
        except StoreError as exc:
            logger.error("Removing job part %s failed: %s", link_id, exc)
            return Result.failure(exc)

        if deleted is None:
            # Someone else removed it between our read and delete
            return Result.failure(EntityNotFoundError(f"Job part '{link_id}' not found"))

        # A re-attach of the same part right after removal is deliberate
        self._guard.release(
            self._guard.key(link.job_id, link.source, link.item_id, link.quantity)
        )

        logger.info("Removed job part %s (%s x%d) from job %s",
                    link_id, link.part_name, link.quantity, link.job_id)
        self._notifier.publish(
            InventoryChange(
                item_id=link.item_id,
                source=link.source,
                job_id=link.job_id,
                quantity=link.quantity,
                direction=ChangeDirection.RETURN,
                shop_id=link.shop_id,
            )
        )
        return Result.success(deleted)
