"""Application service: Show Job Parts use case (query)."""

from __future__ import annotations

from shopdesk.application.dto import JobPartDTO
from shopdesk.domain.repository.job_part_repository import JobPartRepository


class ShowJobPartsHandler:

    def __init__(self, job_part_repo: JobPartRepository) -> None:
        self._job_part_repo = job_part_repo

    def handle(self, job_id: str) -> list[JobPartDTO]:
        return [
            JobPartDTO(
                id=link.id,  # type: ignore[arg-type]
                job_id=link.job_id,
                item_id=link.item_id,
                source=link.source.value,
                part_name=link.part_name,
                quantity=link.quantity,
                deducted=link.deducted,
                created_at=(
                    link.created_at.strftime("%Y-%m-%d %H:%M:%S UTC")
                    if link.created_at else None
                ),
            )
            for link in self._job_part_repo.list_for_job(job_id)
        ]
