"""
TAP Service

Entry point for talking to a TAP (Table Access Protocol) service. Builds the
submission request for a query and runs it either synchronously on the
service, or asynchronously as a managed AsyncJob.
"""

from typing import Mapping, Optional

import httpx

from tapclient.config import DEFAULT_JOB_TIMEOUT, HTTP_TIMEOUT, PHASE_POLL_INTERVAL
from tapclient.core import LogTimer, ServiceError, get_logger
from tapclient.models.query import TAPQuery
from tapclient.services.infrastructure.http import (
    HTTPMethod,
    RequestDescriptor,
    SyncMethod,
    TAPParameter,
    make_request,
)
from tapclient.services.infrastructure.orchestration import AsyncJob, JobManager

logger = get_logger(__name__, service="tap")


class TAPService:
    """Client for a single TAP service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_JOB_TIMEOUT,
        manager: Optional[JobManager] = None,
        client: Optional[httpx.AsyncClient] = None,
        poll_interval: float = PHASE_POLL_INTERVAL,
    ):
        """
        Args:
            base_url: Base URL of the TAP service (without /sync or /async)
            timeout: Client-side timeout in seconds for asynchronous jobs
            manager: Job manager to register jobs with, a private one by default
            client: Shared HTTP client; one is created (and owned) if omitted
            poll_interval: Seconds between phase polls of asynchronous jobs
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.manager = manager or JobManager()
        self._owns_manager = manager is None

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def __aenter__(self) -> "TAPService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_manager:
            await self.manager.shutdown()
        if self._owns_client:
            await self._client.aclose()

    def get_process(self, job_id: str) -> Optional[AsyncJob]:
        return self.manager.get_process(job_id)

    async def cancel_process(self, job_id: str) -> None:
        await self.manager.cancel_process(job_id)

    async def sync_query(
        self,
        query: TAPQuery,
        sync_method: SyncMethod,
        http_method: HTTPMethod = HTTPMethod.POST,
        parameters: Optional[Mapping] = None,
    ) -> Optional[bytes]:
        """
        Run a query and return its result.

        With SyncMethod.SYNCHRONOUS the service itself answers with the
        result. With SyncMethod.ASYNCHRONOUS the query runs as a remote job
        that is polled until it finishes.

        Raises:
            ServiceError: The synchronous endpoint answered with a non-2xx status
            ServiceErrorStatus: The asynchronous job failed
            ServiceTimedOut: The asynchronous job timed out
        """
        request = make_request(
            self.base_url,
            sync_method,
            http_method,
            self._query_parameters(query, parameters),
        )

        if sync_method == SyncMethod.SYNCHRONOUS:
            return await self._run_synchronous_request(request)

        job = await self._run_asynchronous_request(None, request, await_completion=True)
        return job.result

    async def async_query(
        self,
        query: TAPQuery,
        id: Optional[str] = None,
        http_method: HTTPMethod = HTTPMethod.POST,
        parameters: Optional[Mapping] = None,
        timeout: Optional[float] = None,
    ) -> AsyncJob:
        """
        Submit a query as a remote job and return without waiting for it.

        Watch the returned job's status, or await
        manager.wait_for_completion(job.id), then read job.result.
        """
        request = make_request(
            self.base_url,
            SyncMethod.ASYNCHRONOUS,
            http_method,
            self._query_parameters(query, parameters),
        )
        return await self._run_asynchronous_request(id, request, timeout=timeout)

    @staticmethod
    def _query_parameters(query: TAPQuery, parameters: Optional[Mapping]) -> dict:
        merged = {
            (key.value if isinstance(key, TAPParameter) else str(key)): value
            for key, value in (parameters or {}).items()
        }
        merged[TAPParameter.LANGUAGE.value] = query.query_language.identifier
        merged[TAPParameter.QUERY.value] = query.query
        return merged

    async def _run_synchronous_request(self, request: RequestDescriptor) -> bytes:
        with LogTimer(logger, f"synchronous query to {request.url}"):
            response = await self._client.send(request.build(self._client), follow_redirects=True)

        if not response.is_success:
            raise ServiceError(
                response_code=response.status_code,
                response_body=f"Invalid Response: {response.status_code}",
            )
        return response.content

    async def _run_asynchronous_request(
        self,
        id: Optional[str],
        request: RequestDescriptor,
        await_completion: bool = False,
        timeout: Optional[float] = None,
    ) -> AsyncJob:
        job = AsyncJob(
            request,
            id=id,
            timeout=timeout if timeout is not None else self.timeout,
            poll_interval=self.poll_interval,
            client=self._client,
        )
        self.manager.add_process(job)
        await self.manager.start_process(job.id)
        if await_completion:
            await self.manager.wait_for_completion(job.id)
        return job
