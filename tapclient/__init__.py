"""
tapclient - asynchronous client for TAP / UWS query services

Usage:
    from tapclient import ADQLQuery, TAPService

    async with TAPService("https://example.org/tap") as service:
        job = await service.async_query(ADQLQuery("SELECT TOP 10 * FROM ivoa.obscore"))
        await service.manager.wait_for_completion(job.id)
        votable = job.result
"""

from .core import (
    TAPError,
    ServiceError,
    ServiceErrorStatus,
    ServiceTimedOut,
    SubmissionFailure,
)
from .models import ADQLQuery, JobStatus, QueryLanguage, RawQuery, TAPQuery
from .services import AsyncJob, JobManager, TAPService
from .services.infrastructure.http import HTTPMethod, SyncMethod, TAPParameter

__version__ = "1.0.0"

__all__ = [
    "TAPError",
    "ServiceError",
    "ServiceErrorStatus",
    "ServiceTimedOut",
    "SubmissionFailure",
    "ADQLQuery",
    "JobStatus",
    "QueryLanguage",
    "RawQuery",
    "TAPQuery",
    "AsyncJob",
    "JobManager",
    "TAPService",
    "HTTPMethod",
    "SyncMethod",
    "TAPParameter",
]
