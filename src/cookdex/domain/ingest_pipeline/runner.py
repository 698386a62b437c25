"""Extract recipe tuples from every index page of a cookbook.

A run is entered after ``JobStatusGate.start`` moved the cookbook to
PROCESSING and always ends by recording exactly one terminal status. Pages are
processed one after another; a page that fails is recorded and skipped, it
never aborts the run. Transactions are short: one to read the pages, one to
drop stale results, one per page that produced tuples, one for the final
status. Extraction itself runs outside any transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from cookdex.domain.errors import ExtractionFailedError
from cookdex.domain.ingest_pipeline.gate import JobStatusGate
from cookdex.domain.model import (
    REVIEW_CONFIDENCE_THRESHOLD,
    ExtractionResult,
    IngestionStatus,
    utcnow,
)

if TYPE_CHECKING:
    from uuid import UUID

    from cookdex.domain.model import Clock, ExtractedEntry
    from cookdex.domain.ports.extraction import PageExtractor
    from cookdex.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)

NO_PAGES_MESSAGE: Final[str] = "No index pages found for cookbook"
ALL_PAGES_FAILED_MESSAGE: Final[str] = "All pages failed to process"


@dataclass(frozen=True, slots=True)
class PageImage:
    """Detached copy of an index page, safe to use outside a session."""

    page_order: int
    image_data: bytes
    content_type: str


@dataclass(frozen=True, slots=True)
class PageError:
    page_order: int
    message: str


@dataclass(slots=True)
class IngestionReport:
    """Outcome of one ingestion run."""

    cookbook_id: UUID
    status: IngestionStatus
    message: str | None = None
    total_pages: int = 0
    extracted: int = 0
    errors: list[PageError] = field(default_factory=list["PageError"])

    @property
    def failed_pages(self) -> int:
        return len(self.errors)


def summarize(total_pages: int, failed_pages: int) -> tuple[IngestionStatus, str | None]:
    """Terminal status and message for a run that attempted every page."""

    if total_pages == 0:
        return IngestionStatus.FAILED, NO_PAGES_MESSAGE
    if failed_pages == total_pages:
        return IngestionStatus.FAILED, ALL_PAGES_FAILED_MESSAGE
    if failed_pages > 0:
        message = f"{failed_pages} of {total_pages} pages failed"
        return IngestionStatus.COMPLETED_WITH_ERRORS, message
    return IngestionStatus.COMPLETED, None


@dataclass(slots=True)
class IngestionPipeline:
    unit_of_work_factory: UnitOfWorkFactory
    extractor: PageExtractor
    clock: Clock = utcnow
    review_threshold: float = REVIEW_CONFIDENCE_THRESHOLD

    @property
    def gate(self) -> JobStatusGate:
        return JobStatusGate(self.unit_of_work_factory)

    def run(self, cookbook_id: UUID) -> IngestionReport:
        pages = self._load_pages(cookbook_id)
        report = IngestionReport(
            cookbook_id=cookbook_id,
            status=IngestionStatus.PROCESSING,
            total_pages=len(pages),
        )
        if not pages:
            return self._finish(report)

        self._drop_stale_results(cookbook_id)
        log.info("Processing %s index page(s) for cookbook %s", len(pages), cookbook_id)

        for page in pages:
            try:
                entries = self.extractor.extract(page.image_data, page.content_type)
                report.extracted += self._persist_page(cookbook_id, page, entries)
            except ExtractionFailedError as exc:
                log.warning(
                    "Page %s of cookbook %s failed: %s", page.page_order, cookbook_id, exc.reason
                )
                report.errors.append(PageError(page.page_order, exc.reason))
            except Exception as exc:  # noqa: BLE001
                log.exception("Page %s of cookbook %s failed", page.page_order, cookbook_id)
                report.errors.append(PageError(page.page_order, str(exc)))

        return self._finish(report)

    def _load_pages(self, cookbook_id: UUID) -> list[PageImage]:
        with self.unit_of_work_factory() as uow:
            return [
                PageImage(
                    page_order=page.page_order,
                    image_data=bytes(page.image_data),
                    content_type=page.content_type,
                )
                for page in uow.repositories.pages.list_pages(cookbook_id)
            ]

    def _drop_stale_results(self, cookbook_id: UUID) -> None:
        with self.unit_of_work_factory() as uow:
            dropped = uow.repositories.results.delete_results(cookbook_id)
            uow.commit()
        if dropped:
            log.info("Dropped %s stale extraction result(s) for cookbook %s", dropped, cookbook_id)

    def _persist_page(
        self,
        cookbook_id: UUID,
        page: PageImage,
        entries: list[ExtractedEntry],
    ) -> int:
        if not entries:
            return 0
        now = self.clock()
        with self.unit_of_work_factory() as uow:
            for index, entry in enumerate(entries):
                uow.repositories.results.append_result(
                    ExtractionResult.from_entry(
                        entry,
                        cookbook_id=cookbook_id,
                        source_page=page.page_order,
                        entry_index=index,
                        created_at=now,
                        review_threshold=self.review_threshold,
                    )
                )
            uow.commit()
        return len(entries)

    def _finish(self, report: IngestionReport) -> IngestionReport:
        report.status, report.message = summarize(report.total_pages, report.failed_pages)
        self.gate.finish(report.cookbook_id, report.status, report.message)
        return report
