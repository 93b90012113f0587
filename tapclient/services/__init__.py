"""
Services package

Infrastructure (Technical Concerns):
    - infrastructure/http: Submission request construction
    - infrastructure/orchestration: Async job lifecycle and job management

Facade:
    - tap_service: Synchronous and asynchronous queries against a TAP service
"""

from .infrastructure.orchestration import AsyncJob, JobManager
from .tap_service import TAPService

__all__ = [
    "AsyncJob",
    "JobManager",
    "TAPService",
]
