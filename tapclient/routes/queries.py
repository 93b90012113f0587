"""
Query routes.

Submit queries as asynchronous TAP jobs and inspect, cancel or download them
through the service's job manager.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..core import get_logger
from ..models import JobSnapshot, JobStatus, QueryRequest, RawQuery
from ..services import AsyncJob, TAPService

router = APIRouter(prefix="/queries", tags=["queries"])
logger = get_logger(__name__, service="gateway")


def get_tap_service(request: Request) -> TAPService:
    service = getattr(request.app.state, "tap_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="TAP_SERVICE_URL is not configured")
    return service


def _get_job_or_404(service: TAPService, job_id: str) -> AsyncJob:
    job = service.get_process(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return job


@router.post("", response_model=JobSnapshot, status_code=202)
async def submit_query(body: QueryRequest, service: TAPService = Depends(get_tap_service)):
    """
    Submit a query; returns once the job has been admitted and launched.

    While max_parallel jobs are running the request waits in the admission
    gate, so a full gate delays the 202 until a slot frees up. Clients with
    short timeouts should raise max_parallel or retry.
    """
    if body.id and service.get_process(body.id) is not None:
        raise HTTPException(status_code=409, detail=f"Job {body.id} already exists")

    job = await service.async_query(
        RawQuery(query=body.query, language=body.language),
        id=body.id,
        parameters=body.parameters,
        timeout=body.timeout,
    )
    logger.info(f"Submitted job {job.id}", extra={"job_id": job.id})
    return job.snapshot()


@router.get("", response_model=List[JobSnapshot])
async def list_queries(
    status: Optional[JobStatus] = None,
    service: TAPService = Depends(get_tap_service),
):
    if status == JobStatus.PENDING:
        jobs = service.manager.get_pending_processes()
    else:
        jobs = service.manager.get_all_processes()

    snapshots = [job.snapshot() for job in jobs]
    if status is not None:
        snapshots = [snapshot for snapshot in snapshots if snapshot.status == status]
    return sorted(snapshots, key=lambda s: s.created_at)


@router.get("/{job_id}", response_model=JobSnapshot)
async def get_query(job_id: str, service: TAPService = Depends(get_tap_service)):
    return _get_job_or_404(service, job_id).snapshot()


@router.post("/{job_id}/cancel", response_model=JobSnapshot)
async def cancel_query(job_id: str, service: TAPService = Depends(get_tap_service)):
    job = _get_job_or_404(service, job_id)
    await service.cancel_process(job_id)
    return job.snapshot()


@router.delete("/{job_id}", response_model=JobSnapshot)
async def remove_query(job_id: str, service: TAPService = Depends(get_tap_service)):
    """Forget a job. Running jobs are cancelled first."""
    job = _get_job_or_404(service, job_id)
    if not job.status.is_terminal():
        job.cancel()
    service.manager.remove_process(job_id)
    return job.snapshot()


@router.get("/{job_id}/result")
async def get_query_result(job_id: str, service: TAPService = Depends(get_tap_service)):
    job = _get_job_or_404(service, job_id)
    result = job.result
    if result is None:
        raise HTTPException(
            status_code=409,
            detail=f"Job {job_id} has no result (status: {job.status.value})",
        )
    return Response(content=result, media_type="application/octet-stream")
