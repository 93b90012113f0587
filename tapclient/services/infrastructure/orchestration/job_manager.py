"""
Job Manager - Register asynchronous jobs, cap how many run at once, and wait
on or cancel them.

The admission gate and wait_for_completion are bounded polling loops
(GATE_POLL_INTERVAL granularity) rather than condition variables. Waiters are
admitted in no particular order once a slot frees up.
"""

import asyncio
from threading import RLock
from typing import Dict, List, Optional, Set

from tapclient.config import DEFAULT_MAX_PARALLEL, GATE_POLL_INTERVAL
from tapclient.core import JobFailure, ServiceErrorStatus, ServiceTimedOut, get_logger
from tapclient.models.status import JobStatus

from .async_job import AsyncJob

logger = get_logger(__name__, component="job_manager")


class JobManager:
    """Owns the registry of jobs and launches their run loops."""

    def __init__(
        self,
        max_parallel: int = DEFAULT_MAX_PARALLEL,
        poll_interval: float = GATE_POLL_INTERVAL,
    ):
        self.max_parallel = max_parallel
        self.poll_interval = poll_interval

        self._jobs: Dict[str, AsyncJob] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._lock = RLock()

    @property
    def max_parallel(self) -> int:
        return self._max_parallel

    @max_parallel.setter
    def max_parallel(self, value: int) -> None:
        if value < 1:
            raise ValueError("max_parallel must be at least 1")
        self._max_parallel = value

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_process(self, job: AsyncJob) -> None:
        """Register a job, replacing any job with the same id."""
        with self._lock:
            self._jobs[job.id] = job
        logger.debug(f"Registered job {job.id}", extra={"job_id": job.id})

    def remove_process(self, job_id: str) -> Optional[AsyncJob]:
        """Drop a job from the registry and return it."""
        with self._lock:
            return self._jobs.pop(job_id, None)

    def get_process(self, job_id: str) -> Optional[AsyncJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def get_all_processes(self) -> List[AsyncJob]:
        with self._lock:
            return list(self._jobs.values())

    def get_pending_processes(self) -> List[AsyncJob]:
        pending = [job for job in self.get_all_processes() if job.status == JobStatus.PENDING]
        logger.debug("Pending jobs", extra={"job_ids": [job.id for job in pending]})
        return pending

    def active_count(self) -> int:
        """Number of run loops this manager launched that have not exited yet.

        Counted from the launched tasks, so a running job still holds its slot
        after it has been removed from the registry.
        """
        return sum(1 for task in list(self._tasks) if not task.done())

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def start_process(self, job_id: str) -> None:
        """
        Launch the run loop of a registered job.

        Waits while max_parallel jobs are active, then schedules the loop as
        its own task and returns without awaiting it. Failures of the loop
        only show up in the job's status.
        """
        job = self.get_process(job_id)
        if job is None:
            return

        while self.active_count() >= self.max_parallel:
            await asyncio.sleep(self.poll_interval)

        # No await between the capacity check and the claim, so concurrent
        # callers on the same event loop cannot both take the last slot.
        if not job.mark_started():
            logger.warning(f"Job {job_id} was already started", extra={"job_id": job_id})
            return

        logger.debug(f"Starting job {job_id}", extra={"job_id": job_id})
        task = asyncio.create_task(self._supervise(job), name=f"tap-job-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        # a task cancelled before its first step never reaches run()'s cleanup
        task.add_done_callback(lambda _task: job.mark_finished())

    async def _supervise(self, job: AsyncJob) -> None:
        try:
            await job.run()
        except JobFailure as exc:
            logger.warning(
                f"Job {job.id} ended with {type(exc).__name__}",
                extra={"job_id": job.id, "status": job.status.value},
            )
        except asyncio.CancelledError:
            logger.info(f"Job {job.id} task cancelled", extra={"job_id": job.id})
            raise
        except Exception:
            logger.exception(f"Unexpected failure in job {job.id}", extra={"job_id": job.id})
            job.mark_failed()

    async def cancel_process(self, job_id: str) -> None:
        job = self.get_process(job_id)
        if job is not None:
            job.cancel()

    async def wait_for_completion(self, job_id: str) -> None:
        """
        Wait until a job reaches a terminal status.

        Returns normally for COMPLETED and CANCELED, and for a cancelled job
        whose loop has exited. An unknown id is logged and ignored.

        Raises:
            ServiceErrorStatus: The job ended in ERROR
            ServiceTimedOut: The job ended in TIMEOUT
        """
        job = self.get_process(job_id)
        if job is None:
            logger.error(f"Job {job_id} not found", extra={"job_id": job_id})
            return

        while True:
            status = job.status

            if status == JobStatus.COMPLETED:
                logger.debug(f"Job {job_id} completed", extra={"job_id": job_id})
                return
            if status.is_failure():
                if status == JobStatus.TIMEOUT:
                    logger.error(f"Job {job_id} timed out", extra={"job_id": job_id})
                    raise ServiceTimedOut(job)
                logger.error(f"Job {job_id} failed", extra={"job_id": job_id})
                raise ServiceErrorStatus(job)
            if status == JobStatus.CANCELED or (job.cancel_requested and job.is_finished):
                logger.warning(f"Job {job_id} canceled", extra={"job_id": job_id, "status": status.value})
                return

            await asyncio.sleep(self.poll_interval)

    async def monitor_processes(self) -> None:
        """Log the status of every job until cancelled."""
        while True:
            for job in self.get_all_processes():
                logger.debug(f"Job {job.id}: {job.status.value}", extra={"job_id": job.id})
            await asyncio.sleep(self.poll_interval)

    async def shutdown(self) -> None:
        """Cancel every job and stop the run loops that are still going."""
        for job in self.get_all_processes():
            if not job.status.is_terminal():
                job.cancel()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
