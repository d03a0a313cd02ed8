"""Background flood computations with supersede-on-resubmit semantics.

Exact flood fills at high resolution are too slow for an interactive
caller's event loop, so they run on a thread pool.  Every submission
gets a new generation number and cancellation token; submitting again
cancels the previous token, and a result that arrives for an older
generation is discarded rather than published.
"""

import asyncio
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from flood_engine.config import settings
from flood_engine.errors import ComputationCancelled
from flood_engine.flood.generator import FloodGenerator
from flood_engine.flood.types import CancelToken, FloodResult
from flood_engine.models import JobStatus

logger = logging.getLogger(__name__)


@dataclass
class FloodJob:
    """One submitted computation."""

    water_level: float
    generation: int
    job_id: UUID = field(default_factory=uuid4)
    status: JobStatus = JobStatus.PENDING
    token: CancelToken = field(default_factory=CancelToken)
    result: FloodResult | None = None
    error: str | None = None


class FloodJobRunner:
    """Runs FloodGenerator calls off the event loop, newest level wins."""

    def __init__(
        self,
        generator: FloodGenerator,
        executor: ThreadPoolExecutor | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.generator = generator
        self._executor = executor or ThreadPoolExecutor(max_workers=settings.max_concurrent_jobs)
        self._owns_executor = executor is None
        self._timeout = settings.job_timeout_seconds if timeout_seconds is None else timeout_seconds
        self._generation = 0
        self._current: FloodJob | None = None
        self._latest: FloodResult | None = None
        self._active_jobs: set[UUID] = set()

    @property
    def active_jobs(self) -> int:
        return len(self._active_jobs)

    def latest(self) -> FloodResult | None:
        """Most recent result that was not superseded."""
        return self._latest

    async def submit(self, water_level: float) -> FloodJob:
        """Compute *water_level* in the background and wait for it.

        Any computation still in flight is cancelled and its result
        discarded once this one is submitted.
        """
        self._generation += 1
        job = FloodJob(water_level=water_level, generation=self._generation)

        previous = self._current
        if previous is not None and previous.status in (JobStatus.PENDING, JobStatus.RUNNING):
            logger.info(
                "Water level %.2f m supersedes in-flight job %s (%.2f m)",
                water_level,
                previous.job_id,
                previous.water_level,
            )
            previous.token.cancel()
        self._current = job

        self._active_jobs.add(job.job_id)
        try:
            await self._execute_job(job)
        finally:
            self._active_jobs.discard(job.job_id)
        return job

    async def _execute_job(self, job: FloodJob) -> None:
        loop = asyncio.get_running_loop()
        job.status = JobStatus.RUNNING
        logger.info("Executing flood job %s at %.2f m", job.job_id, job.water_level)

        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.generator.generate, job.water_level, job.token),
                timeout=self._timeout,
            )
        except ComputationCancelled:
            job.status = JobStatus.SUPERSEDED
            logger.info("Flood job %s cancelled before finishing", job.job_id)
            return
        except asyncio.TimeoutError:
            job.token.cancel()
            job.status = JobStatus.FAILED
            job.error = f"Timed out after {self._timeout}s"
            logger.warning("Flood job %s timed out after %ss", job.job_id, self._timeout)
            return
        except Exception as e:
            logger.exception("Flood job %s failed", job.job_id)
            job.status = JobStatus.FAILED
            job.error = str(e)
            return

        if job.generation != self._generation:
            job.status = JobStatus.SUPERSEDED
            logger.info("Discarding superseded result for job %s", job.job_id)
            return

        job.result = result
        job.status = JobStatus.COMPLETED
        self._latest = result
        logger.info("Flood job %s completed (%d cells)", job.job_id, len(result.flooded))

    async def precompute(self, levels: Iterable[float]) -> dict[float, FloodResult]:
        """Compute several levels concurrently without touching ``latest``."""
        loop = asyncio.get_running_loop()
        levels = list(levels)
        results = await asyncio.gather(
            *(loop.run_in_executor(self._executor, self.generator.generate, level) for level in levels)
        )
        return dict(zip(levels, results))

    def shutdown(self) -> None:
        """Cancel in-flight work and release the thread pool if owned."""
        if self._current is not None:
            self._current.token.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
