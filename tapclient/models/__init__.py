"""
Data models: job statuses, queries and API schemas
"""

from .status import JobStatus, TERMINAL_STATUSES, status_from_phase
from .query import QueryLanguage, TAPQuery, ADQLQuery, RawQuery
from .jobs import JobSnapshot, QueryRequest, ParallelismSettings

__all__ = [
    "JobStatus",
    "TERMINAL_STATUSES",
    "status_from_phase",
    "QueryLanguage",
    "TAPQuery",
    "ADQLQuery",
    "RawQuery",
    "JobSnapshot",
    "QueryRequest",
    "ParallelismSettings",
]
