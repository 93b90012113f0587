"""
Job status constants and enumerations.

The status vocabulary follows the UWS phase names reported by TAP services,
plus TIMEOUT and UNKNOWN which only ever originate on the client side.
"""

from enum import Enum
from typing import Optional


class JobStatus(Enum):
    """Enumeration of all possible job statuses."""

    PENDING = "PENDING"
    QUEUED = "QUEUED"
    EXECUTING = "EXECUTING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"
    CANCELED = "CANCELED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"

    def is_terminal(self) -> bool:
        """Check if this status is a terminal state (no further progress)."""
        return self in TERMINAL_STATUSES

    def is_failure(self) -> bool:
        """Check if waiting on a job in this status should raise."""
        return self in (JobStatus.ERROR, JobStatus.UNKNOWN, JobStatus.TIMEOUT)


TERMINAL_STATUSES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.ERROR,
    JobStatus.CANCELED,
    JobStatus.TIMEOUT,
    JobStatus.UNKNOWN,
})

# Phase tokens other than the enum values that some services send
PHASE_ALIASES = {
    "ABORTED": JobStatus.CANCELED,
}


def status_from_phase(phase: Optional[str]) -> JobStatus:
    """
    Map a phase token returned by GET {job}/phase to a status.

    Args:
        phase: Raw phase text, surrounding whitespace allowed

    Returns:
        The matching status, UNKNOWN for anything unrecognized
    """
    if phase is None:
        return JobStatus.UNKNOWN

    token = phase.strip().upper()
    if token in PHASE_ALIASES:
        return PHASE_ALIASES[token]

    try:
        status = JobStatus(token)
    except ValueError:
        return JobStatus.UNKNOWN

    return status


__all__ = [
    "JobStatus",
    "TERMINAL_STATUSES",
    "PHASE_ALIASES",
    "status_from_phase",
]
