"""Job orchestration - asynchronous job lifecycle and management."""

from .async_job import AsyncJob, extract_job_id
from .job_manager import JobManager
from tapclient.models.status import JobStatus

__all__ = ["AsyncJob", "JobManager", "JobStatus", "extract_job_id"]
