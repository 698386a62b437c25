"""Run ingestion jobs on a worker pool.

The request path only performs the gate's compare-and-set and hands the run to
the pool; the returned future resolves to the run's report. Each task has its
own error boundary: an unexpected exception is logged with its traceback and
recorded as FAILED with the exception message, so a job never stays in
PROCESSING because a worker died.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from logging import getLogger
from typing import TYPE_CHECKING, Final

from cookdex.domain.ingest_pipeline.gate import JobStatusGate
from cookdex.domain.ingest_pipeline.runner import IngestionReport
from cookdex.domain.model import IngestionStatus

if TYPE_CHECKING:
    from concurrent.futures import Executor, Future
    from types import TracebackType
    from uuid import UUID

    from cookdex.domain.ingest_pipeline.runner import IngestionPipeline

log = getLogger(__name__)

DEFAULT_MAX_WORKERS: Final[int] = 2


class IngestionDispatcher:
    def __init__(
        self,
        pipeline: IngestionPipeline,
        *,
        executor: Executor | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.pipeline = pipeline
        self.gate = JobStatusGate(pipeline.unit_of_work_factory)
        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="cookdex-ingest",
        )

    def __enter__(self) -> IngestionDispatcher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    def start(self, cookbook_id: UUID) -> Future[IngestionReport]:
        """Claim the cookbook through the gate and schedule the run."""

        self.gate.start(cookbook_id)
        return self.submit(cookbook_id)

    def submit(self, cookbook_id: UUID) -> Future[IngestionReport]:
        """Schedule a run for a cookbook the gate already moved to PROCESSING."""

        return self._executor.submit(self._run_guarded, cookbook_id)

    def shutdown(self, *, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _run_guarded(self, cookbook_id: UUID) -> IngestionReport:
        try:
            return self.pipeline.run(cookbook_id)
        except Exception as exc:
            log.exception("Ingestion run for cookbook %s failed", cookbook_id)
            message = str(exc) or type(exc).__name__
            self.gate.finish(cookbook_id, IngestionStatus.FAILED, message)
            return IngestionReport(
                cookbook_id=cookbook_id,
                status=IngestionStatus.FAILED,
                message=message,
            )
