"""
AsyncJob - one asynchronous query executed on a remote UWS job service.

The job replays its submission request once, discovers the job URL (303
redirect first, <jobId> in the response body as a fallback for non-compliant
services), switches the remote job to RUN and then polls its phase until the
job completes, fails, times out or is cancelled.

Only the job's own run loop writes status and result; cancel() only raises a
flag that the loop checks between polls.
"""

import asyncio
import threading
import time
import uuid
from datetime import UTC, datetime
from typing import Optional

import httpx

from tapclient.config import (
    DEFAULT_JOB_TIMEOUT,
    FORM_CONTENT_TYPE,
    HTTP_TIMEOUT,
    JOB_ID_CLOSE_TAG,
    JOB_ID_OPEN_TAG,
    PHASE_PATH,
    PHASE_POLL_INTERVAL,
    RESULT_PATH,
    RUN_PHASE_BODY,
)
from tapclient.core import (
    LogTimer,
    ServiceErrorStatus,
    ServiceTimedOut,
    SubmissionFailure,
    get_logger,
)
from tapclient.core.logging import job_id_var
from tapclient.models.jobs import JobSnapshot
from tapclient.models.status import JobStatus, status_from_phase
from tapclient.services.infrastructure.http import RequestDescriptor

logger = get_logger(__name__, component="async_job")


def extract_job_id(body: str) -> Optional[str]:
    """Return the text between the first <jobId> and the following </jobId>."""
    start = body.find(JOB_ID_OPEN_TAG)
    if start == -1:
        return None
    start += len(JOB_ID_OPEN_TAG)

    end = body.find(JOB_ID_CLOSE_TAG, start)
    if end == -1:
        return None

    job_id = body[start:end].strip()
    return job_id or None


def _raise_for_error(response: httpx.Response) -> None:
    # UWS endpoints commonly answer with 303 back to the job, which is fine
    if response.status_code >= 400:
        response.raise_for_status()


class AsyncJob:
    """A single remote job and the state machine driving it."""

    def __init__(
        self,
        request: RequestDescriptor,
        id: Optional[str] = None,
        timeout: float = DEFAULT_JOB_TIMEOUT,
        poll_interval: float = PHASE_POLL_INTERVAL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.id = id or str(uuid.uuid4())
        self.request = request
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.created_at = datetime.now(UTC)

        self._client = client
        self._created_monotonic = time.monotonic()
        self._lock = threading.Lock()

        self._status = JobStatus.PENDING
        self._updated_at = self.created_at
        self._remote_job_id: Optional[str] = None
        self._job_url: Optional[str] = None
        self._result: Optional[bytes] = None
        self._cancel_requested = False
        self._started = False
        self._finished = False

    def __repr__(self) -> str:
        return f"AsyncJob(id={self.id!r}, status={self.status.value}, remote_job_id={self.remote_job_id!r})"

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def status(self) -> JobStatus:
        with self._lock:
            return self._status

    @property
    def result(self) -> Optional[bytes]:
        with self._lock:
            return self._result

    @property
    def remote_job_id(self) -> Optional[str]:
        with self._lock:
            return self._remote_job_id

    @property
    def job_url(self) -> Optional[str]:
        with self._lock:
            return self._job_url

    @property
    def updated_at(self) -> datetime:
        with self._lock:
            return self._updated_at

    @property
    def cancel_requested(self) -> bool:
        with self._lock:
            return self._cancel_requested

    @property
    def is_active(self) -> bool:
        """True from launch until the run loop has exited."""
        with self._lock:
            return self._started and not self._finished

    @property
    def is_finished(self) -> bool:
        with self._lock:
            return self._finished

    def elapsed(self) -> float:
        """Seconds since the job was created."""
        return time.monotonic() - self._created_monotonic

    def snapshot(self) -> JobSnapshot:
        with self._lock:
            return JobSnapshot(
                id=self.id,
                remote_job_id=self._remote_job_id,
                job_url=self._job_url,
                status=self._status,
                created_at=self.created_at,
                updated_at=self._updated_at,
                cancel_requested=self._cancel_requested,
                has_result=self._result is not None,
                result_size=len(self._result) if self._result is not None else None,
            )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Ask the run loop to stop at its next poll boundary."""
        with self._lock:
            if self._cancel_requested:
                return
            self._cancel_requested = True
        logger.info("Cancellation requested", extra={"job_id": self.id})

    def mark_started(self) -> bool:
        """Claim the job for a run loop. Returns False if it was already claimed."""
        with self._lock:
            if self._started:
                return False
            self._started = True
            return True

    def mark_finished(self) -> None:
        with self._lock:
            self._finished = True

    def mark_failed(self) -> bool:
        """Move a job whose loop died unexpectedly to ERROR."""
        return self._transition(JobStatus.ERROR)

    def _transition(self, status: JobStatus, result: Optional[bytes] = None) -> bool:
        with self._lock:
            if self._status.is_terminal():
                logger.warning(
                    "Ignoring transition out of terminal status",
                    extra={"job_id": self.id, "status": self._status.value, "requested": status.value},
                )
                return False
            self._status = status
            if status == JobStatus.COMPLETED:
                self._result = result
            self._updated_at = datetime.now(UTC)
        logger.debug(f"Job {self.id} is {status.value}")
        return True

    def _set_location(self, job_url: str) -> None:
        job_url = job_url.rstrip("/")
        with self._lock:
            self._job_url = job_url
            self._remote_job_id = job_url.rsplit("/", 1)[-1]
            self._updated_at = datetime.now(UTC)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """
        Drive the job from submission to a terminal status.

        Transport failures and undiscoverable job locations end the job in
        ERROR without raising.

        Raises:
            ServiceErrorStatus: The remote job reported ERROR or an unknown phase
            ServiceTimedOut: The job outlived its timeout
        """
        self.mark_started()
        token = job_id_var.set(self.id)
        try:
            if self._client is not None:
                await self._run_with(self._client)
            else:
                async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
                    await self._run_with(client)
        finally:
            self.mark_finished()
            job_id_var.reset(token)

    async def _run_with(self, client: httpx.AsyncClient) -> None:
        try:
            job_url = await self._submit(client)
            await self._start(client, job_url)
            await self._poll(client, job_url)
        except SubmissionFailure as exc:
            logger.error(
                f"Job {self.id} failed because of an invalid submission response",
                extra={"job_id": self.id, "status_code": exc.status_code},
            )
            self._transition(JobStatus.ERROR)
        except httpx.HTTPError as exc:
            logger.error(
                f"Job {self.id} failed on a transport error",
                extra={"job_id": self.id, "error": str(exc), "error_type": type(exc).__name__},
            )
            self._transition(JobStatus.ERROR)

    async def _submit(self, client: httpx.AsyncClient) -> str:
        response = await client.send(self.request.build(client), follow_redirects=False)
        logger.debug(
            f"Job {self.id} submitted",
            extra={"job_id": self.id, "status_code": response.status_code},
        )

        job_url = self._discover_job_url(response)
        if job_url is None:
            raise SubmissionFailure(self, response.status_code)

        self._set_location(job_url)
        return job_url

    def _discover_job_url(self, response: httpx.Response) -> Optional[str]:
        if response.status_code == 303:
            location = response.headers.get("Location")
            if location:
                return str(httpx.URL(self.request.url).join(location))

        if response.is_success:
            remote_id = extract_job_id(response.text)
            if remote_id:
                logger.debug(
                    f"Job {self.id} found remote job id {remote_id} in the response body",
                    extra={"job_id": self.id},
                )
                return f"{self.request.base_url}/{remote_id}"

        return None

    async def _start(self, client: httpx.AsyncClient, job_url: str) -> None:
        logger.debug(f"Job {self.id} starting remote job {job_url}", extra={"job_id": self.id})
        response = await client.post(
            f"{job_url}/{PHASE_PATH}",
            content=RUN_PHASE_BODY,
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )
        _raise_for_error(response)
        self._transition(JobStatus.EXECUTING)

    async def _poll(self, client: httpx.AsyncClient, job_url: str) -> None:
        phase_url = f"{job_url}/{PHASE_PATH}"

        while True:
            if self.cancel_requested:
                logger.info(
                    f"Job {self.id} stopped polling after cancellation",
                    extra={"job_id": self.id, "status": self.status.value},
                )
                return

            if self.elapsed() > self.timeout:
                self._transition(JobStatus.TIMEOUT)
                logger.error(
                    f"Job {self.id} timed out",
                    extra={"job_id": self.id, "timeout_seconds": self.timeout},
                )
                raise ServiceTimedOut(self)

            response = await client.get(phase_url)
            _raise_for_error(response)
            phase = response.text.strip()
            status = status_from_phase(phase)
            logger.debug(f"Job {self.id} phase: {phase}", extra={"job_id": self.id})

            if status == JobStatus.COMPLETED:
                await self._fetch_result(client, job_url)
                return

            if status in (JobStatus.ERROR, JobStatus.UNKNOWN):
                self._transition(JobStatus.ERROR)
                logger.error(
                    f"Job {self.id} failed with remote phase {phase!r}",
                    extra={"job_id": self.id, "phase": phase},
                )
                raise ServiceErrorStatus(self)

            self._transition(status)

            if status in (JobStatus.CANCELED, JobStatus.TIMEOUT):
                logger.warning(
                    f"Job {self.id} ended remotely with phase {phase}",
                    extra={"job_id": self.id, "phase": phase},
                )
                return

            await asyncio.sleep(self.poll_interval)

    async def _fetch_result(self, client: httpx.AsyncClient, job_url: str) -> None:
        with LogTimer(logger, f"fetch result of job {self.id}"):
            response = await client.get(f"{job_url}/{RESULT_PATH}")
            _raise_for_error(response)
        self._transition(JobStatus.COMPLETED, result=response.content)
        logger.info(
            f"Job {self.id} completed",
            extra={"job_id": self.id, "result_bytes": len(response.content)},
        )
