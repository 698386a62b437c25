"""Application orchestration entry points."""

from __future__ import annotations

from contextlib import ExitStack
from logging import getLogger
from typing import TYPE_CHECKING

from cookdex.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from cookdex.adapters.vision import VisionPageExtractor
from cookdex.config import get_ingestion_config
from cookdex.domain.errors import NotFoundError
from cookdex.domain.ingest_pipeline import (
    IngestionDispatcher,
    IngestionPipeline,
    JobStatusGate,
    confirm_import,
)
from cookdex.domain.ingredients import IngredientStore
from cookdex.domain.locking import IdentityLocks
from cookdex.domain.merge import MergeEngine
from cookdex.domain.model import Cookbook, IndexPage, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from cookdex.domain.ingest_pipeline import ConfirmedEntry, ImportSummary, IngestionReport
    from cookdex.domain.model import Clock, Ingredient
    from cookdex.domain.ports.extraction import PageExtractor
    from cookdex.domain.ports.unit_of_work import UnitOfWorkFactory
    from cookdex.domain.views import IngestionSnapshot


log = getLogger(__name__)

# shared by every identity edit, merge and confirmation of this process
IDENTITY_LOCKS = IdentityLocks()


def _resolve_unit_of_work(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyCatalogUnitOfWork


def build_ingredient_store(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> IngredientStore:
    return IngredientStore(
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        locks=IDENTITY_LOCKS,
        clock=clock,
    )


def merge_ingredients(
    target_id: UUID,
    source_ids: Iterable[UUID],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> Ingredient:
    """Fold ``source_ids`` into ``target_id`` and return the surviving ingredient."""

    engine = MergeEngine(
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        locks=IDENTITY_LOCKS,
        clock=clock,
    )
    return engine.merge(target_id, source_ids)


def create_cookbook(
    title: str,
    *,
    author: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> Cookbook:
    now = clock()
    cookbook = Cookbook(title=title, author=author, created_at=now, updated_at=now)
    with _resolve_unit_of_work(unit_of_work_factory)() as uow:
        uow.repositories.cookbooks.add(cookbook)
        uow.commit()
    log.info("Created cookbook %r (%s)", cookbook.title, cookbook.id)
    return cookbook


def add_index_page(
    cookbook_id: UUID,
    image_data: bytes,
    content_type: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> IndexPage:
    """Append an index page image after the cookbook's existing pages."""

    with _resolve_unit_of_work(unit_of_work_factory)() as uow:
        repositories = uow.repositories
        if repositories.cookbooks.get(cookbook_id) is None:
            raise NotFoundError("Cookbook", cookbook_id)
        page = IndexPage(
            cookbook_id=cookbook_id,
            page_order=repositories.pages.next_page_order(cookbook_id),
            image_data=image_data,
            content_type=content_type,
            created_at=clock(),
        )
        repositories.pages.add(page)
        uow.commit()
    log.info("Added index page %s to cookbook %s", page.page_order, cookbook_id)
    return page


def build_ingestion_pipeline(
    *,
    extractor: PageExtractor | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> IngestionPipeline:
    config = get_ingestion_config()
    return IngestionPipeline(
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        extractor=extractor or VisionPageExtractor(),
        clock=clock,
        review_threshold=config.review_threshold,
    )


def run_ingestion(
    cookbook_id: UUID,
    *,
    extractor: PageExtractor | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> IngestionReport:
    """Start an ingestion job on the worker pool and wait for its report.

    Without an explicit ``extractor`` a ``VisionPageExtractor`` is opened for
    this run and closed once the workers are done.
    """

    config = get_ingestion_config()
    with ExitStack() as stack:
        if extractor is None:
            extractor = stack.enter_context(VisionPageExtractor())
        pipeline = build_ingestion_pipeline(
            extractor=extractor,
            unit_of_work_factory=unit_of_work_factory,
        )
        dispatcher = stack.enter_context(
            IngestionDispatcher(pipeline, max_workers=config.max_workers)
        )
        future = dispatcher.start(cookbook_id)
        log.info("Ingestion started for cookbook %s", cookbook_id)
        report = future.result()

    log.info(
        "Finished ingestion for cookbook %s: status=%s, pages=%s, extracted=%s, failed=%s",
        cookbook_id,
        report.status.value,
        report.total_pages,
        report.extracted,
        report.failed_pages,
    )
    return report


def ingestion_snapshot(
    cookbook_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> IngestionSnapshot:
    return JobStatusGate(_resolve_unit_of_work(unit_of_work_factory)).snapshot(cookbook_id)


def confirm_cookbook_import(
    cookbook_id: UUID,
    entries: Iterable[ConfirmedEntry],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> ImportSummary:
    return confirm_import(
        cookbook_id,
        entries,
        unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory),
        locks=IDENTITY_LOCKS,
        clock=clock,
    )
