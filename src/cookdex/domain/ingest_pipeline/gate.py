"""Per-cookbook ingestion status state machine.

    NONE -> PROCESSING -> {COMPLETED, COMPLETED_WITH_ERRORS, FAILED} -> NONE

The last edge is only taken by import confirmation. ``start`` is the single
serialization point between concurrent requests: the ``NONE -> PROCESSING``
compare-and-set runs in its own transaction and at most one caller wins it.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from cookdex.domain.errors import (
    AlreadyRunningError,
    InvalidArgumentError,
    NoPagesError,
    NotFoundError,
    ResultsPendingError,
)
from cookdex.domain.model import IngestionStatus
from cookdex.domain.views import IngestionSnapshot, ResultView

if TYPE_CHECKING:
    from uuid import UUID

    from cookdex.domain.ports.persistence import CookbookRepository
    from cookdex.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


def current_status(
    cookbooks: CookbookRepository,
    cookbook_id: UUID,
) -> tuple[IngestionStatus, str | None]:
    state = cookbooks.get_status(cookbook_id)
    if state is None:
        raise NotFoundError("Cookbook", cookbook_id)
    return state


def clear_status(cookbooks: CookbookRepository, cookbook_id: UUID) -> None:
    """Return the cookbook to NONE unless a run holds it.

    The reset only applies if the status is still the one just read, so a run
    started concurrently wins and the caller's transaction must roll back.
    """

    status, _ = current_status(cookbooks, cookbook_id)
    if status is IngestionStatus.PROCESSING:
        raise AlreadyRunningError(cookbook_id)
    if not cookbooks.compare_and_set_status(cookbook_id, status, IngestionStatus.NONE):
        raise AlreadyRunningError(cookbook_id)


@dataclass(slots=True)
class JobStatusGate:
    unit_of_work_factory: UnitOfWorkFactory

    def start(self, cookbook_id: UUID) -> None:
        """Move the cookbook to PROCESSING or explain why a run cannot begin."""

        with self.unit_of_work_factory() as uow:
            cookbooks = uow.repositories.cookbooks
            status, _ = current_status(cookbooks, cookbook_id)
            if status is IngestionStatus.PROCESSING:
                raise AlreadyRunningError(cookbook_id)
            if status.is_terminal:
                raise ResultsPendingError(cookbook_id)
            if not uow.repositories.pages.has_pages(cookbook_id):
                raise NoPagesError(cookbook_id)
            if not cookbooks.compare_and_set_status(
                cookbook_id,
                IngestionStatus.NONE,
                IngestionStatus.PROCESSING,
            ):
                raise AlreadyRunningError(cookbook_id)
            uow.commit()
        log.info("Ingestion started for cookbook %s", cookbook_id)

    def finish(
        self,
        cookbook_id: UUID,
        status: IngestionStatus,
        message: str | None = None,
    ) -> None:
        if not status.is_terminal:
            raise InvalidArgumentError(f"{status} is not a terminal ingestion status")
        with self.unit_of_work_factory() as uow:
            current_status(uow.repositories.cookbooks, cookbook_id)
            uow.repositories.cookbooks.set_terminal_status(cookbook_id, status, message)
            uow.commit()
        log.info(
            "Ingestion finished for cookbook %s as %s%s",
            cookbook_id,
            status.value,
            f": {message}" if message else "",
        )

    def clear(self, cookbook_id: UUID) -> None:
        with self.unit_of_work_factory() as uow:
            clear_status(uow.repositories.cookbooks, cookbook_id)
            uow.commit()

    def snapshot(self, cookbook_id: UUID) -> IngestionSnapshot:
        """Status, message, page count and pending results of a cookbook."""

        with self.unit_of_work_factory() as uow:
            status, message = current_status(uow.repositories.cookbooks, cookbook_id)
            total_pages = uow.repositories.pages.count_pages(cookbook_id)
            results = uow.repositories.results.list_results(cookbook_id)
            return IngestionSnapshot(
                cookbook_id=cookbook_id,
                status=status,
                error_message=message,
                total_pages=total_pages,
                results=tuple(ResultView.of(result) for result in results),
            )
