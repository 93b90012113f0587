"""
Schemas describing jobs

JobSnapshot is the consistent read-only view of an AsyncJob handed out to
callers; the gateway serializes it directly as its job response.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .status import JobStatus


class JobSnapshot(BaseModel):
    """Point-in-time view of a job"""
    id: str
    remote_job_id: Optional[str] = None
    job_url: Optional[str] = None
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    cancel_requested: bool = False
    has_result: bool = False
    result_size: Optional[int] = None


class QueryRequest(BaseModel):
    """Request to submit an asynchronous query"""
    query: str = Field(min_length=1)
    language: str = "adql"
    id: Optional[str] = None
    parameters: Dict[str, str] = {}  # Extra TAP parameters, e.g. {"MAXREC": "100"}
    timeout: Optional[float] = Field(default=None, gt=0)


class ParallelismSettings(BaseModel):
    """Maximum number of jobs the manager runs at once"""
    max_parallel: int = Field(ge=1)
