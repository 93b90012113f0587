"""
Core Exceptions
Standardized exceptions raised by the TAP client.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from tapclient.services.infrastructure.orchestration.async_job import AsyncJob


class TAPError(Exception):
    """Base exception for all client errors."""
    pass


class ServiceError(TAPError):
    """A request to the service returned a non-success HTTP status."""

    def __init__(self, response_code: int, response_body: str):
        self.response_code = response_code
        self.response_body = response_body
        super().__init__(f"Service returned HTTP {response_code}: {response_body}")


class JobFailure(TAPError):
    """Base exception for failures that carry the job they happened to."""

    def __init__(self, job: "AsyncJob", message: Optional[str] = None):
        self.job = job
        super().__init__(message or f"Job {job.id} failed")


class SubmissionFailure(JobFailure):
    """The service response did not reveal where the created job lives."""

    def __init__(self, job: "AsyncJob", status_code: Optional[int]):
        self.status_code = status_code
        super().__init__(job, f"Job {job.id} submission failed, status code: {status_code}")


class ServiceErrorStatus(JobFailure):
    """The remote job reported an ERROR or unrecognized phase."""

    def __init__(self, job: "AsyncJob"):
        super().__init__(job, f"Job {job.id} finished with status {job.status.value}")


class ServiceTimedOut(JobFailure):
    """The job did not reach a terminal phase within its timeout."""

    def __init__(self, job: "AsyncJob"):
        super().__init__(job, f"Job {job.id} timed out after {job.timeout}s")
