"""
Automatic analysis on change request lifecycle events.

Events are queued and handled by a fixed number of worker tasks, so event
delivery never waits on the language model. Jobs for the same change
request run one at a time.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

import structlog

from codesuggest.config import Settings
from codesuggest.models import AnalysisRequest, FileDiff
from codesuggest.services.analysis_service import AnalysisService
from codesuggest.services.suggestion_store import SuggestionStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChangeRequestEvent:
    """A change request was opened or received new commits."""

    change_request_id: int
    repository_id: int
    project_key: str = ""
    repo_slug: str = ""
    title: str = ""

    @property
    def scope(self) -> Tuple[int, int]:
        return (self.change_request_id, self.repository_id)

    @property
    def repo_full_name(self) -> str:
        return f"{self.project_key}/{self.repo_slug}"

    @property
    def number(self) -> int:
        return self.change_request_id


class DiffSource(Protocol):
    """Extracts the file diffs of a change request from the host."""

    async def get_file_diffs(self, event: ChangeRequestEvent) -> List[FileDiff]:
        ...


@dataclass(frozen=True)
class AnalysisJob:
    event: ChangeRequestEvent
    replace_existing: bool = False


class ReanalysisTrigger:
    """Queues analysis jobs for lifecycle events and runs them on a bounded pool."""

    def __init__(
        self,
        diff_source: DiffSource,
        analysis_service: AnalysisService,
        store: SuggestionStore,
        settings: Settings,
        workers: Optional[int] = None,
    ):
        self.diff_source = diff_source
        self.analysis_service = analysis_service
        self.store = store
        self.settings = settings
        self.worker_count = max(1, workers or settings.analysis_workers)

        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self._scope_locks: Dict[Tuple[int, int], asyncio.Lock] = {}
        self._scope_users: Dict[Tuple[int, int], int] = {}

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        """Start the worker tasks."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"analysis-worker-{i}")
            for i in range(self.worker_count)
        ]
        logger.info("Analysis workers started", workers=self.worker_count)

    async def stop(self) -> None:
        """Finish queued jobs, then stop the workers."""
        if not self.running:
            return
        await self._queue.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Analysis workers stopped")

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    def on_opened(self, event: ChangeRequestEvent) -> bool:
        """
        Handle a newly opened change request.

        Returns:
            True if an analysis job was queued.
        """
        if not self.settings.auto_analysis_enabled:
            logger.debug("Automatic analysis disabled", change_request_id=event.change_request_id)
            return False

        logger.info(
            "Change request opened, queueing analysis",
            change_request_id=event.change_request_id,
            repository_id=event.repository_id,
            title=event.title,
        )
        self._submit(AnalysisJob(event=event))
        return True

    def on_updated(self, event: ChangeRequestEvent) -> bool:
        """
        Handle new commits on a change request.

        Existing suggestions are deleted before the new analysis is saved.

        Returns:
            True if a re-analysis job was queued.
        """
        if not self.settings.auto_analysis_enabled:
            return False

        logger.info(
            "Change request updated, queueing re-analysis",
            change_request_id=event.change_request_id,
            repository_id=event.repository_id,
            title=event.title,
        )
        self._submit(AnalysisJob(event=event, replace_existing=True))
        return True

    def _submit(self, job: AnalysisJob) -> None:
        if not self.running:
            raise RuntimeError("ReanalysisTrigger is not started")
        self._queue.put_nowait(job)

    @asynccontextmanager
    async def _scope_lock(self, scope: Tuple[int, int]):
        """Hold the lock of one scope; it is dropped once no job uses or awaits it."""
        lock = self._scope_locks.get(scope)
        if lock is None:
            lock = self._scope_locks[scope] = asyncio.Lock()
        self._scope_users[scope] = self._scope_users.get(scope, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._scope_users[scope] -= 1
            if not self._scope_users[scope]:
                del self._scope_users[scope]
                del self._scope_locks[scope]

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.run_job(job)
            except Exception:
                logger.exception("Analysis job crashed", worker=index)
            finally:
                self._queue.task_done()

    async def run_job(self, job: AnalysisJob) -> None:
        """Run one job: optional delete, then analyze and save, under the scope lock."""
        event = job.event
        async with self._scope_lock(event.scope):
            if job.replace_existing:
                self.store.delete_all(event.change_request_id, event.repository_id)
            await self._analyze_and_save(event)

    async def _analyze_and_save(self, event: ChangeRequestEvent) -> None:
        try:
            file_diffs = await self.diff_source.get_file_diffs(event)
            if not file_diffs:
                logger.info("No files to analyze", change_request_id=event.change_request_id)
                return

            request = AnalysisRequest(
                change_request_id=event.change_request_id,
                repository_id=event.repository_id,
                project_key=event.project_key,
                repo_slug=event.repo_slug,
                file_diffs=file_diffs,
            )
            response = await self.analysis_service.analyze(request)

            if response.success and response.suggestions:
                self.store.save(event.change_request_id, event.repository_id, response.suggestions)
                logger.info(
                    "Analysis complete",
                    change_request_id=event.change_request_id,
                    suggestions=len(response.suggestions),
                    elapsed_ms=response.elapsed_ms,
                )
            else:
                logger.info(
                    "Analysis complete without suggestions",
                    change_request_id=event.change_request_id,
                    success=response.success,
                    error=response.error,
                )
        except Exception as e:
            logger.error(
                "Analysis job failed",
                change_request_id=event.change_request_id,
                repository_id=event.repository_id,
                error=str(e),
                exc_info=True,
            )
