from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cookdex.domain.ingest_pipeline import IngestionPipeline, JobStatusGate
from cookdex.domain.ingest_pipeline.runner import (
    ALL_PAGES_FAILED_MESSAGE,
    NO_PAGES_MESSAGE,
    summarize,
)
from cookdex.domain.model import IngestionStatus
from tests.helpers.catalog import add_cookbook, add_pages
from tests.helpers.extractors import ScriptedExtractor, entry, failing_page

if TYPE_CHECKING:
    from collections.abc import Callable

    from cookdex.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from cookdex.domain.model import Cookbook

    UowFactory = Callable[[], SqlAlchemyCatalogUnitOfWork]


def _started_cookbook(uow_factory: UowFactory, pages: int) -> Cookbook:
    cookbook = add_cookbook(uow_factory)
    add_pages(uow_factory, cookbook.id, pages)
    JobStatusGate(uow_factory).start(cookbook.id)
    return cookbook


def test_one_failed_page_of_three_completes_with_errors(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = _started_cookbook(sqlite_unit_of_work, 3)
    extractor = ScriptedExtractor(
        entries_by_call={
            1: [entry("lemon", "Lemon Tart", 12), entry("butter", "Lemon Tart", 12, 0.5)],
            3: [entry("saffron", "Paella", 88)],
        },
        failures={2: failing_page("blurry scan")},
    )
    pipeline = IngestionPipeline(unit_of_work_factory=sqlite_unit_of_work, extractor=extractor)

    report = pipeline.run(cookbook.id)

    assert report.status is IngestionStatus.COMPLETED_WITH_ERRORS
    assert report.message == "1 of 3 pages failed"
    assert report.extracted == 3
    assert [(error.page_order, error.message) for error in report.errors] == [(2, "blurry scan")]

    snapshot = pipeline.gate.snapshot(cookbook.id)
    assert snapshot.status is IngestionStatus.COMPLETED_WITH_ERRORS
    assert snapshot.error_message == "1 of 3 pages failed"
    assert [(r.ingredient, r.recipe_name, r.needs_review) for r in snapshot.results] == [
        ("lemon", "Lemon Tart", False),
        ("butter", "Lemon Tart", True),
        ("saffron", "Paella", False),
    ]


def test_all_pages_failing_marks_run_failed(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = _started_cookbook(sqlite_unit_of_work, 2)
    extractor = ScriptedExtractor(failures={1: failing_page(), 2: RuntimeError("socket closed")})
    pipeline = IngestionPipeline(unit_of_work_factory=sqlite_unit_of_work, extractor=extractor)

    report = pipeline.run(cookbook.id)

    assert report.status is IngestionStatus.FAILED
    assert report.message == ALL_PAGES_FAILED_MESSAGE
    assert report.errors[1].message == "socket closed"
    snapshot = pipeline.gate.snapshot(cookbook.id)
    assert snapshot.status is IngestionStatus.FAILED
    assert snapshot.results == ()


def test_all_pages_succeeding_completes_without_message(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = _started_cookbook(sqlite_unit_of_work, 2)
    extractor = ScriptedExtractor(entries_by_call={2: [entry("thyme", "Roast Chicken", 5)]})
    pipeline = IngestionPipeline(unit_of_work_factory=sqlite_unit_of_work, extractor=extractor)

    report = pipeline.run(cookbook.id)

    assert report.status is IngestionStatus.COMPLETED
    assert report.message is None
    snapshot = pipeline.gate.snapshot(cookbook.id)
    assert snapshot.status is IngestionStatus.COMPLETED
    assert snapshot.error_message is None
    assert len(snapshot.results) == 1


def test_pages_are_processed_in_page_order(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = _started_cookbook(sqlite_unit_of_work, 3)
    extractor = ScriptedExtractor()
    pipeline = IngestionPipeline(unit_of_work_factory=sqlite_unit_of_work, extractor=extractor)

    pipeline.run(cookbook.id)

    assert [image[-1] for image, _ in extractor.calls] == [1, 2, 3]
    assert {content_type for _, content_type in extractor.calls} == {"image/png"}


def test_run_without_pages_fails(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = add_cookbook(sqlite_unit_of_work)
    extractor = ScriptedExtractor()
    pipeline = IngestionPipeline(unit_of_work_factory=sqlite_unit_of_work, extractor=extractor)

    report = pipeline.run(cookbook.id)

    assert report.status is IngestionStatus.FAILED
    assert report.message is not None
    assert "No index pages found" in report.message
    assert pipeline.gate.snapshot(cookbook.id).status is IngestionStatus.FAILED
    assert extractor.calls == []


def test_stale_results_are_dropped_before_a_new_run(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = _started_cookbook(sqlite_unit_of_work, 1)
    first = IngestionPipeline(
        unit_of_work_factory=sqlite_unit_of_work,
        extractor=ScriptedExtractor(entries_by_call={1: [entry("old", "Old Dish", 1)]}),
    )
    first.run(cookbook.id)
    first.gate.clear(cookbook.id)
    first.gate.start(cookbook.id)

    second = IngestionPipeline(
        unit_of_work_factory=sqlite_unit_of_work,
        extractor=ScriptedExtractor(entries_by_call={1: [entry("new", "New Dish", 1)]}),
    )
    second.run(cookbook.id)

    results = second.gate.snapshot(cookbook.id).results
    assert [result.ingredient for result in results] == ["new"]


def test_review_threshold_is_configurable(sqlite_unit_of_work: UowFactory) -> None:
    cookbook = _started_cookbook(sqlite_unit_of_work, 1)
    pipeline = IngestionPipeline(
        unit_of_work_factory=sqlite_unit_of_work,
        extractor=ScriptedExtractor(entries_by_call={1: [entry("fig", "Fig Jam", 3, 0.9)]}),
        review_threshold=0.95,
    )

    pipeline.run(cookbook.id)

    assert pipeline.gate.snapshot(cookbook.id).results[0].needs_review is True


@pytest.mark.parametrize(
    ("total", "failed", "expected"),
    [
        (0, 0, (IngestionStatus.FAILED, NO_PAGES_MESSAGE)),
        (3, 3, (IngestionStatus.FAILED, ALL_PAGES_FAILED_MESSAGE)),
        (3, 1, (IngestionStatus.COMPLETED_WITH_ERRORS, "1 of 3 pages failed")),
        (3, 0, (IngestionStatus.COMPLETED, None)),
    ],
)
def test_summarize(total: int, failed: int, expected: tuple[IngestionStatus, str | None]) -> None:
    assert summarize(total, failed) == expected
